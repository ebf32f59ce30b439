from pydantic import BaseModel, Field
from typing import List, Optional
from ..enums import DriverStateEnum, NotificationTypeEnum


class DriverAvailabilityEvent(BaseModel):
    driver_id: str
    current_zip: Optional[str] = None
    state: Optional[DriverStateEnum] = None


class DriverProfile(BaseModel):
    full_name: str
    photo_url: Optional[str] = None


class RiderCandidate(BaseModel):
    rider_id: str
    postal_code: Optional[str] = None
    display_name: Optional[str] = None


class NotificationRecord(BaseModel):
    user_id: str  # Recipient rider
    related_user_id: str  # Driver the notification is about
    type: NotificationTypeEnum = NotificationTypeEnum.DRIVER_AVAILABLE
    title: str
    message: str
    link: Optional[str] = None


class DispatchResult(BaseModel):
    notifications_sent: int = 0
    riders_checked: int = 0
    notified_rider_ids: List[str] = Field(default_factory=list)
    message: Optional[str] = None  # Explains a no-op run
