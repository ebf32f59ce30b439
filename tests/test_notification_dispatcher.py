"""
Unit tests for NotificationDispatcher.

Covers message construction, the debounce window, per-rider failure isolation,
timeouts and the concurrency cap.
"""
import unittest

from rideboard.enums import DriverStateEnum, NotificationTypeEnum
from rideboard.utils.notification_dispatcher import DRIVER_AVAILABLE_TITLE, NotificationDispatcher
from rideboard.utils.notification_schema import DriverAvailabilityEvent

from fakes import FakeClock, FakeNotificationStore, bundled_resolver, rider


def available_event(driver_id="D1", current_zip="30303"):
    return DriverAvailabilityEvent(driver_id=driver_id, current_zip=current_zip, state=DriverStateEnum.AVAILABLE)


class TestNotificationDispatcher(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.clock = FakeClock()
        self.store = FakeNotificationStore(self.clock)
        self.dispatcher = NotificationDispatcher(self.store, bundled_resolver(), clock=self.clock)

    async def test_record_contents(self):
        result = await self.dispatcher.dispatch([rider("R1", "30308")], available_event(), "Dana Driver")

        self.assertEqual(result.notifications_sent, 1)
        self.assertEqual(result.riders_checked, 1)
        self.assertEqual(result.notified_rider_ids, ["R1"])

        record = self.store.records[0]
        self.assertEqual(record.user_id, "R1")
        self.assertEqual(record.related_user_id, "D1")
        self.assertEqual(record.type, NotificationTypeEnum.DRIVER_AVAILABLE)
        self.assertEqual(record.title, DRIVER_AVAILABLE_TITLE)
        self.assertEqual(record.message, "Dana Driver is now available near you (ZIP 30303, ~2 mi away).")
        self.assertEqual(record.link, "/profile/D1")

    async def test_unknown_distance_reads_nearby(self):
        await self.dispatcher.dispatch([rider("R2", "30399")], available_event(), "Dana Driver")
        self.assertEqual(
            self.store.records[0].message,
            "Dana Driver is now available near you (ZIP 30303, nearby).",
        )

    async def test_custom_link_template(self):
        dispatcher = NotificationDispatcher(
            self.store, bundled_resolver(), clock=self.clock, link_template="/drivers/{driver_id}"
        )
        await dispatcher.dispatch([rider("R1", "30308")], available_event(), "Dana Driver")
        self.assertEqual(self.store.records[0].link, "/drivers/D1")

    async def test_second_dispatch_within_window_is_debounced(self):
        candidates = [rider("R1", "30308"), rider("R2", "30399")]
        first = await self.dispatcher.dispatch(candidates, available_event(), "Dana Driver")
        self.clock.advance(minutes=5)
        second = await self.dispatcher.dispatch(candidates, available_event(), "Dana Driver")

        self.assertEqual(first.notifications_sent, 2)
        self.assertEqual(second.notifications_sent, 0)
        self.assertEqual(second.riders_checked, 2)
        self.assertEqual(len(self.store.records), 2)

    async def test_dispatch_after_window_notifies_again(self):
        candidates = [rider("R1", "30308")]
        await self.dispatcher.dispatch(candidates, available_event(), "Dana Driver")
        self.clock.advance(minutes=31)
        result = await self.dispatcher.dispatch(candidates, available_event(), "Dana Driver")

        self.assertEqual(result.notifications_sent, 1)
        self.assertEqual(len(self.store.records), 2)

    async def test_debounce_is_per_driver(self):
        candidates = [rider("R1", "30308")]
        await self.dispatcher.dispatch(candidates, available_event(driver_id="D1"), "Dana Driver")
        result = await self.dispatcher.dispatch(candidates, available_event(driver_id="D2"), "Sam Driver")
        self.assertEqual(result.notifications_sent, 1)

    async def test_failed_insert_does_not_stop_other_riders(self):
        store = FakeNotificationStore(self.clock, fail_for={"R1"})
        dispatcher = NotificationDispatcher(store, bundled_resolver(), clock=self.clock)
        candidates = [rider("R1", "30308"), rider("R2", "30310"), rider("R3", "30399")]

        result = await dispatcher.dispatch(candidates, available_event(), "Dana Driver")

        self.assertEqual(result.notifications_sent, 2)
        self.assertEqual(result.riders_checked, 3)
        self.assertEqual(sorted(result.notified_rider_ids), ["R2", "R3"])
        self.assertEqual({record.user_id for record in store.records}, {"R2", "R3"})

    async def test_failed_duplicate_check_skips_only_that_rider(self):
        store = FakeNotificationStore(self.clock, check_fail_for={"R1"})
        dispatcher = NotificationDispatcher(store, bundled_resolver(), clock=self.clock)
        candidates = [rider("R1", "30308"), rider("R2", "30310"), rider("R3", "30399")]

        with self.assertLogs("rideboard.utils.notification_dispatcher", level="ERROR") as logs:
            result = await dispatcher.dispatch(candidates, available_event(), "Dana Driver")

        self.assertEqual(result.notifications_sent, 2)
        self.assertEqual(result.riders_checked, 3)
        self.assertEqual(sorted(result.notified_rider_ids), ["R2", "R3"])
        self.assertEqual({record.user_id for record in store.records}, {"R2", "R3"})
        self.assertTrue(any("rider R1" in line for line in logs.output))

    async def test_timeout_counts_as_failure(self):
        store = FakeNotificationStore(self.clock, delay=0.5)
        dispatcher = NotificationDispatcher(store, bundled_resolver(), clock=self.clock, timeout_seconds=0.01)

        result = await dispatcher.dispatch([rider("R1", "30308")], available_event(), "Dana Driver")

        self.assertEqual(result.notifications_sent, 0)
        self.assertEqual(result.riders_checked, 1)
        self.assertEqual(store.records, [])

    async def test_concurrency_is_bounded(self):
        store = FakeNotificationStore(self.clock, delay=0.01)
        dispatcher = NotificationDispatcher(store, bundled_resolver(), clock=self.clock, max_concurrency=2)
        candidates = [rider(f"R{i}", "30308") for i in range(6)]

        result = await dispatcher.dispatch(candidates, available_event(), "Dana Driver")

        self.assertEqual(result.notifications_sent, 6)
        self.assertLessEqual(store.max_in_flight, 2)
        self.assertGreaterEqual(store.max_in_flight, 1)

    async def test_no_candidates(self):
        result = await self.dispatcher.dispatch([], available_event(), "Dana Driver")
        self.assertEqual(result.notifications_sent, 0)
        self.assertEqual(result.riders_checked, 0)
