class NotifierError(Exception):
    """Base class for failures that abort a whole notifier run."""


class DriverProfileNotFound(NotifierError):
    """Raised when the driver's display profile cannot be loaded."""

    def __init__(self, driver_id: str, message: str = "Driver profile not found"):
        self.driver_id = driver_id
        super().__init__(message)


class RiderDirectoryError(NotifierError):
    """Raised when the opted-in rider directory cannot be fetched."""
