from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
from datetime import datetime, timezone
import logging
import re

from ..database import get_async_db
from ..enums import DriverStateEnum
from ..models import DriverStatus, Profile
from ..schemas import DriverStatusUpdateRequest, DriverStatusResponse
from ..utils.dependencies import get_notifier
from ..utils.driver_available_notifier import ProximityNotifier
from ..utils.notification_schema import DriverAvailabilityEvent

logger = logging.getLogger(__name__)

router = APIRouter()

ZIP_REGEX = re.compile(r"^\d{5}$")


async def notify_riders_in_background(notifier: ProximityNotifier, event: DriverAvailabilityEvent):
    """Notifications are non-critical for the status update, so failures are only logged."""
    try:
        result = await notifier.notify(event)
        logger.info(
            f"Notifications sent to {result.notifications_sent} riders ({result.riders_checked} checked) for driver {event.driver_id}"
        )
    except Exception as e:
        logger.error(f"Error sending driver availability notifications for {event.driver_id}: {e}")


@router.put("/{driver_id}/availability", response_model=DriverStatusResponse, status_code=status.HTTP_200_OK)
async def update_driver_availability(
    driver_id: str,
    payload: DriverStatusUpdateRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_async_db),
    notifier: ProximityNotifier = Depends(get_notifier),
):
    """
    Update a driver's availability state and current ZIP.

    When the driver becomes available, nearby riders are notified in the background.
    """
    if payload.current_zip and not ZIP_REGEX.match(payload.current_zip):
        raise HTTPException(status_code=400, detail="Enter a valid ZIP (5 digits, e.g., 30117)")

    if payload.state == DriverStateEnum.AVAILABLE and not payload.current_zip:
        raise HTTPException(status_code=400, detail="A current ZIP is required to become available")

    try:
        driver = await db.get(Profile, driver_id)
        if not driver:
            raise HTTPException(status_code=404, detail="Driver not found")

        driver_status = await db.get(DriverStatus, driver_id)
        if driver_status is None:
            driver_status = DriverStatus(user_id=driver_id)

        driver_status.state = payload.state.value
        driver_status.current_zip = payload.current_zip
        driver_status.updated_at = datetime.now(timezone.utc)
        db.add(driver_status)
        await db.commit()

    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error updating availability for driver {driver_id}: {e}")
        raise HTTPException(status_code=500, detail=f"Database error: {str(e)}")

    notifications_queued = payload.state == DriverStateEnum.AVAILABLE
    if notifications_queued:
        event = DriverAvailabilityEvent(
            driver_id=driver_id,
            current_zip=payload.current_zip,
            state=payload.state,
        )
        background_tasks.add_task(notify_riders_in_background, notifier, event)

    return DriverStatusResponse(
        message="Availability updated successfully",
        driver_id=driver_id,
        state=payload.state,
        current_zip=payload.current_zip,
        notifications_queued=notifications_queued,
    )
