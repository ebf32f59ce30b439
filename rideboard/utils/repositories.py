from datetime import datetime
from typing import List, Optional
from sqlalchemy.future import select
import logging

from ..models import Profile, Notification
from .notification_schema import DriverProfile, RiderCandidate, NotificationRecord

logger = logging.getLogger(__name__)


class ProfileDirectory:
    """Read-only access to driver profiles and the opted-in rider directory."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    async def get_driver_profile(self, driver_id: str) -> Optional[DriverProfile]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Profile.full_name, Profile.photo_url).filter(Profile.id == driver_id)
            )
            row = result.first()

        if row is None:
            return None
        return DriverProfile(full_name=row.full_name, photo_url=row.photo_url)

    async def list_opted_in_riders(self) -> List[RiderCandidate]:
        """Riders with notify_new_driver enabled and a profile ZIP on file."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(Profile.id, Profile.profile_zip, Profile.full_name)
                .filter(Profile.notify_new_driver.is_(True))
                .filter(Profile.profile_zip.isnot(None))
            )
            rows = result.all()

        return [
            RiderCandidate(rider_id=str(row.id), postal_code=row.profile_zip, display_name=row.full_name)
            for row in rows
        ]


class NotificationStore:
    """Existence checks and inserts against the notifications table.

    Every call opens its own session so calls can run concurrently.
    """

    def __init__(self, session_factory):
        self.session_factory = session_factory

    async def has_recent(self, user_id: str, related_user_id: str, notification_type: str, since: datetime) -> bool:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Notification.id)
                .filter(Notification.user_id == user_id)
                .filter(Notification.related_user_id == related_user_id)
                .filter(Notification.type == notification_type)
                .filter(Notification.created_at >= since)
                .limit(1)
            )
            return result.first() is not None

    async def insert(self, record: NotificationRecord) -> None:
        async with self.session_factory() as session:
            notification = Notification(
                user_id=record.user_id,
                related_user_id=record.related_user_id,
                type=record.type.value,
                title=record.title,
                message=record.message,
                link=record.link,
            )
            session.add(notification)
            try:
                await session.commit()
            except Exception:
                await session.rollback()
                raise
