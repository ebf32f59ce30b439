from pydantic import BaseModel, field_validator
from typing import Optional
from .enums import DriverStateEnum, ProximityReasonEnum
from .utils.zip_distance import normalize_zip


def _clean_zip(value):
    # ZIP+4 collapses to the 5-digit ZIP; anything else is only stripped
    if value is None:
        return None
    value = str(value).strip()
    if not value:
        return None
    return normalize_zip(value) or value


# Body posted when a driver's availability changes
class DriverAvailabilityRequest(BaseModel):
    # Missing fields fall through to the notifier: no state is a no-op,
    # no driver id fails the profile lookup
    driver_id: str = ""
    current_zip: Optional[str] = None
    state: Optional[DriverStateEnum] = None

    @field_validator('current_zip', mode='before')
    def clean_current_zip(cls, value):
        return _clean_zip(value)

    @field_validator('state', mode='before')
    def unknown_state_as_none(cls, value):
        if isinstance(value, str) and value in {state.value for state in DriverStateEnum}:
            return value
        return None

    class Config:
        json_schema_extra = {
            "example": {
                "driver_id": "6f1c2a9e-2b7d-4c1e-9d55-0c8f4b2a7e10",
                "current_zip": "30303",
                "state": "available"
            }
        }


class DriverAvailabilityResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    notifications_sent: int = 0
    riders_checked: int = 0


class ErrorResponse(BaseModel):
    error: str


# Schema for a driver updating their own status
class DriverStatusUpdateRequest(BaseModel):
    state: DriverStateEnum
    current_zip: Optional[str] = None

    @field_validator('current_zip', mode='before')
    def clean_current_zip(cls, value):
        return _clean_zip(value)


class DriverStatusResponse(BaseModel):
    message: str
    driver_id: str
    state: DriverStateEnum
    current_zip: Optional[str] = None
    notifications_queued: bool = False


class NearbyZipResponse(BaseModel):
    zip: str
    distance_miles: Optional[float] = None
    reason: ProximityReasonEnum
