from typing import Optional
import asyncio
import logging

from ..enums import DriverStateEnum
from .exceptions import DriverProfileNotFound, RiderDirectoryError
from .notification_dispatcher import NotificationDispatcher
from .notification_schema import DispatchResult, DriverAvailabilityEvent
from .rider_selection import select_candidates
from .zip_distance import ZipDistanceResolver

logger = logging.getLogger(__name__)

NO_NOTIFICATIONS_NEEDED = "No notifications needed"
NO_RIDERS_TO_NOTIFY = "No riders to notify"


class ProximityNotifier:
    """Fans a driver's availability out to opted-in riders near the driver's ZIP."""

    def __init__(
        self,
        directory,
        dispatcher: NotificationDispatcher,
        resolver: ZipDistanceResolver,
        radius_miles: float = 25.0,
        directory_timeout_seconds: Optional[float] = 10.0,
    ):
        self.directory = directory
        self.dispatcher = dispatcher
        self.resolver = resolver
        self.radius_miles = radius_miles
        self.directory_timeout_seconds = directory_timeout_seconds

    async def _load_driver_name(self, driver_id: str) -> str:
        if not driver_id:
            raise DriverProfileNotFound(driver_id)

        try:
            profile = await asyncio.wait_for(
                self.directory.get_driver_profile(driver_id),
                timeout=self.directory_timeout_seconds,
            )
        except Exception as e:
            logger.error(f"Error fetching driver profile {driver_id}: {e!r}")
            raise DriverProfileNotFound(driver_id) from e

        if profile is None or not profile.full_name:
            logger.error(f"Driver profile {driver_id} not found")
            raise DriverProfileNotFound(driver_id)
        return profile.full_name

    async def _load_riders(self):
        try:
            return await asyncio.wait_for(
                self.directory.list_opted_in_riders(),
                timeout=self.directory_timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            logger.error("Timed out fetching riders")
            raise RiderDirectoryError("Timed out fetching riders") from e
        except Exception as e:
            logger.error(f"Error fetching riders: {e}")
            raise RiderDirectoryError(str(e) or "Error fetching riders") from e

    async def notify(self, event: DriverAvailabilityEvent) -> DispatchResult:
        logger.info(
            f"Processing driver availability: {event.driver_id}, state: {event.state.value if event.state else None}, zip: {event.current_zip}"
        )

        # Only a driver becoming available at a known ZIP fans out
        if event.state != DriverStateEnum.AVAILABLE or not event.current_zip:
            return DispatchResult(message=NO_NOTIFICATIONS_NEEDED)

        driver_name = await self._load_driver_name(event.driver_id)

        riders = await self._load_riders()
        if not riders:
            return DispatchResult(message=NO_RIDERS_TO_NOTIFY)

        candidates = select_candidates(event.current_zip, riders, self.resolver, self.radius_miles)
        if not candidates:
            return DispatchResult(message=NO_RIDERS_TO_NOTIFY)

        result = await self.dispatcher.dispatch(candidates, event, driver_name)
        logger.info(
            f"Driver {event.driver_id}: sent {result.notifications_sent} notifications ({result.riders_checked} riders checked)"
        )
        return result
