from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import JSONResponse
import logging

from ..schemas import DriverAvailabilityRequest, DriverAvailabilityResponse, ErrorResponse
from ..utils.dependencies import get_notifier
from ..utils.driver_available_notifier import ProximityNotifier
from ..utils.exceptions import NotifierError
from ..utils.notification_schema import DriverAvailabilityEvent

logger = logging.getLogger(__name__)

router = APIRouter()


@router.options("/driver-available", include_in_schema=False)
async def driver_available_preflight():
    return Response(status_code=status.HTTP_200_OK)


@router.post(
    "/driver-available",
    response_model=DriverAvailabilityResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def send_driver_available_notification(
    request: DriverAvailabilityRequest,
    notifier: ProximityNotifier = Depends(get_notifier),
):
    """
    Notify opted-in riders near a driver who just became available.

    Args:
        request (DriverAvailabilityRequest): Driver id, current ZIP and availability state.

    Returns:
        dict: Notifications sent and riders checked, or a no-op message.
    """
    event = DriverAvailabilityEvent(
        driver_id=request.driver_id,
        current_zip=request.current_zip,
        state=request.state,
    )

    try:
        result = await notifier.notify(event)
    except NotifierError as e:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": str(e)})
    except Exception as e:
        logger.exception("Error in send-driver-available-notification")
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": str(e)})

    return DriverAvailabilityResponse(
        message=result.message,
        notifications_sent=result.notifications_sent,
        riders_checked=result.riders_checked,
    )
