"""
Tests for the SQLAlchemy-backed collaborators, using a mocked AsyncSession.
"""
from datetime import datetime, timezone
from types import SimpleNamespace
import unittest
from unittest.mock import AsyncMock, MagicMock

from sqlalchemy.ext.asyncio import AsyncSession

from rideboard.enums import NotificationTypeEnum
from rideboard.models import Notification
from rideboard.utils.notification_schema import NotificationRecord
from rideboard.utils.repositories import NotificationStore, ProfileDirectory


def session_factory_for(session):
    factory = MagicMock()
    factory.return_value.__aenter__.return_value = session
    factory.return_value.__aexit__.return_value = False
    return factory


def make_session(first=None, rows=None):
    session = MagicMock(spec=AsyncSession)
    result = MagicMock()
    result.first.return_value = first
    result.all.return_value = rows or []
    session.execute = AsyncMock(return_value=result)
    return session


class TestProfileDirectory(unittest.IsolatedAsyncioTestCase):

    async def test_driver_profile_found(self):
        session = make_session(first=SimpleNamespace(full_name="Dana Driver", photo_url=None))
        directory = ProfileDirectory(session_factory_for(session))

        profile = await directory.get_driver_profile("D1")

        self.assertEqual(profile.full_name, "Dana Driver")
        self.assertIsNone(profile.photo_url)
        session.execute.assert_awaited_once()

    async def test_driver_profile_missing(self):
        directory = ProfileDirectory(session_factory_for(make_session(first=None)))
        self.assertIsNone(await directory.get_driver_profile("D404"))

    async def test_opted_in_riders_mapped_to_candidates(self):
        rows = [
            SimpleNamespace(id="R1", profile_zip="30308", full_name="Riley"),
            SimpleNamespace(id="R2", profile_zip="30399", full_name="Robin"),
        ]
        directory = ProfileDirectory(session_factory_for(make_session(rows=rows)))

        riders = await directory.list_opted_in_riders()

        self.assertEqual([r.rider_id for r in riders], ["R1", "R2"])
        self.assertEqual(riders[1].postal_code, "30399")
        self.assertEqual(riders[0].display_name, "Riley")

    async def test_directory_errors_propagate(self):
        session = make_session()
        session.execute.side_effect = RuntimeError("connection refused")
        directory = ProfileDirectory(session_factory_for(session))

        with self.assertRaises(RuntimeError):
            await directory.list_opted_in_riders()


class TestNotificationStore(unittest.IsolatedAsyncioTestCase):

    def record(self):
        return NotificationRecord(
            user_id="R1",
            related_user_id="D1",
            type=NotificationTypeEnum.DRIVER_AVAILABLE,
            title="Driver Available Near You",
            message="Dana Driver is now available near you (ZIP 30303, ~2 mi away).",
            link="/profile/D1",
        )

    async def test_has_recent(self):
        since = datetime(2026, 3, 2, 16, 30, tzinfo=timezone.utc)

        found = NotificationStore(session_factory_for(make_session(first=SimpleNamespace(id="N1"))))
        self.assertTrue(await found.has_recent("R1", "D1", "driver_available", since))

        missing = NotificationStore(session_factory_for(make_session(first=None)))
        self.assertFalse(await missing.has_recent("R1", "D1", "driver_available", since))

    async def test_has_recent_query_filters(self):
        session = make_session(first=None)
        store = NotificationStore(session_factory_for(session))

        await store.has_recent("R1", "D1", "driver_available", datetime(2026, 3, 2, tzinfo=timezone.utc))

        statement = session.execute.await_args[0][0]
        sql = str(statement)
        for column in ("user_id", "related_user_id", "type", "created_at"):
            self.assertIn(f"notifications.{column}", sql)
        self.assertIn("LIMIT", sql)

    async def test_insert_adds_and_commits(self):
        session = make_session()
        store = NotificationStore(session_factory_for(session))

        await store.insert(self.record())

        added = session.add.call_args[0][0]
        self.assertIsInstance(added, Notification)
        self.assertEqual(added.user_id, "R1")
        self.assertEqual(added.related_user_id, "D1")
        self.assertEqual(added.type, "driver_available")
        self.assertEqual(added.link, "/profile/D1")
        session.commit.assert_awaited_once()

    async def test_insert_failure_rolls_back_and_raises(self):
        session = make_session()
        session.commit.side_effect = RuntimeError("insert violates foreign key")
        store = NotificationStore(session_factory_for(session))

        with self.assertRaises(RuntimeError):
            await store.insert(self.record())
        session.rollback.assert_awaited_once()


def test_notification_table_has_no_unused_columns():
    assert set(Notification.__table__.columns.keys()) == {
        "id", "user_id", "related_user_id", "type", "title", "message", "link", "read", "created_at",
    }
