from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional
import asyncio
import logging

from ..enums import NotificationTypeEnum
from .notification_schema import DispatchResult, DriverAvailabilityEvent, NotificationRecord, RiderCandidate
from .zip_distance import ZipDistanceResolver, format_distance_text

logger = logging.getLogger(__name__)

DRIVER_AVAILABLE_TITLE = "Driver Available Near You"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class NotificationDispatcher:
    """
    Writes "driver available" notifications for candidate riders, skipping riders
    already notified about the same driver within the debounce window.

    The duplicate check and the insert are separate statements, so two overlapping
    runs for the same driver can both insert. This is accepted; the window is
    best-effort.
    """

    def __init__(
        self,
        store,
        resolver: ZipDistanceResolver,
        debounce_minutes: int = 30,
        max_concurrency: int = 10,
        timeout_seconds: Optional[float] = 5.0,
        link_template: str = "/profile/{driver_id}",
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.resolver = resolver
        self.debounce_minutes = debounce_minutes
        self.max_concurrency = max(1, max_concurrency)
        self.timeout_seconds = timeout_seconds
        self.link_template = link_template
        self.clock = clock

    def build_record(self, rider: RiderCandidate, event: DriverAvailabilityEvent, driver_name: str) -> NotificationRecord:
        distance = self.resolver.distance(rider.postal_code, event.current_zip)
        distance_text = format_distance_text(distance)
        return NotificationRecord(
            user_id=rider.rider_id,
            related_user_id=event.driver_id,
            type=NotificationTypeEnum.DRIVER_AVAILABLE,
            title=DRIVER_AVAILABLE_TITLE,
            message=f"{driver_name} is now available near you (ZIP {event.current_zip}, {distance_text}).",
            link=self.link_template.format(driver_id=event.driver_id),
        )

    async def _notify_rider(self, rider: RiderCandidate, event: DriverAvailabilityEvent, driver_name: str, threshold: datetime) -> bool:
        already_notified = await self.store.has_recent(
            rider.rider_id,
            event.driver_id,
            NotificationTypeEnum.DRIVER_AVAILABLE.value,
            threshold,
        )
        if already_notified:
            logger.info(
                f"Skipping notification for rider {rider.rider_id} - already notified within {self.debounce_minutes} minutes"
            )
            return False

        await self.store.insert(self.build_record(rider, event, driver_name))
        logger.info(f"Sent notification to rider {rider.rider_id}")
        return True

    async def _guarded_notify(self, semaphore: asyncio.Semaphore, rider: RiderCandidate, event, driver_name, threshold) -> bool:
        async with semaphore:
            try:
                return await asyncio.wait_for(
                    self._notify_rider(rider, event, driver_name, threshold),
                    timeout=self.timeout_seconds,
                )
            except asyncio.TimeoutError:
                logger.error(f"Timed out creating notification for rider {rider.rider_id}")
            except Exception as e:
                logger.error(f"Error creating notification for rider {rider.rider_id}: {e}")
            return False

    async def dispatch(self, candidates: List[RiderCandidate], event: DriverAvailabilityEvent, driver_name: str) -> DispatchResult:
        """
        Notify every candidate rider about the driver in event.

        Args:
            candidates (List[RiderCandidate]): Riders selected as nearby.
            event (DriverAvailabilityEvent): The availability event being fanned out.
            driver_name (str): Driver display name embedded in the message.

        Returns:
            DispatchResult: Successful inserts and the number of riders checked.
        """
        threshold = self.clock() - timedelta(minutes=self.debounce_minutes)
        semaphore = asyncio.Semaphore(self.max_concurrency)

        outcomes = await asyncio.gather(
            *(self._guarded_notify(semaphore, rider, event, driver_name, threshold) for rider in candidates)
        )

        notified = [rider.rider_id for rider, sent in zip(candidates, outcomes) if sent]
        return DispatchResult(
            notifications_sent=len(notified),
            riders_checked=len(candidates),
            notified_rider_ids=notified,
        )
