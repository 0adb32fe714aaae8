from __future__ import annotations

import asyncio
import unittest

from telegram.error import Forbidden

from gamebot.dispatcher import GatheringDispatcher
from gamebot.registry import SubscriptionRegistry
from gamebot.user_store import Subscriber
from gamebot.utils import category_key
from tests.fakes import FakeTransport, GatedSleep, transport_error


GROUP = -100777


class GatheringDispatcherTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.registry = SubscriptionRegistry()
        await self.registry.join(category_key(GROUP, "PUBG"), Subscriber(1, "Alice"))
        await self.registry.join(category_key(GROUP, "PUBG"), Subscriber(2, "Bob"))
        self.transport = FakeTransport()
        self.sleep = GatedSleep()
        self.dispatcher = GatheringDispatcher(self.registry, self.transport, sleep=self.sleep)

    async def test_dispatch_now_sends_and_pins(self):
        message = await self.dispatcher.dispatch_now(GROUP, "pubg", "Drop in", "carol")
        self.assertIsNotNone(message)
        self.assertEqual(len(self.transport.sent), 1)
        chat_id, text = self.transport.sent[0]
        self.assertEqual(chat_id, GROUP)
        self.assertIn("<b>PUBG</b>", text)
        self.assertIn('tg://user?id=1"', text)
        self.assertIn('tg://user?id=2"', text)
        self.assertEqual(self.transport.pinned, [message.message_id])

    async def test_pin_failure_is_not_fatal(self):
        self.transport.pin_ok = False
        message = await self.dispatcher.dispatch_now(GROUP, "PUBG", "Drop in", "carol")
        self.assertIsNotNone(message)
        self.assertEqual(len(self.transport.sent), 1)

    async def test_send_failure_is_swallowed(self):
        self.transport.send_error = transport_error()
        self.assertIsNone(await self.dispatcher.dispatch_now(GROUP, "PUBG", "Drop in", "carol"))
        self.transport.send_error = Forbidden("kicked")
        self.assertIsNone(await self.dispatcher.dispatch_now(GROUP, "PUBG", "Drop in", "carol"))
        self.assertEqual(self.transport.pinned, [])

    async def test_unknown_category_announces_without_mentions(self):
        await self.dispatcher.dispatch_now(GROUP, "CS2", "Go", "carol")
        self.assertNotIn("tg://user", self.transport.sent[0][1])

    async def test_delayed_dispatch_fires_once_after_delay(self):
        task = await self.dispatcher.dispatch_delayed(GROUP, "PUBG", "Drop in", "Scheduled System", 5)
        self.assertIsNotNone(task)
        await asyncio.sleep(0)
        self.assertEqual(self.sleep.requested, [300])
        self.assertEqual(self.transport.sent, [])
        self.assertEqual(self.dispatcher.pending_count, 1)

        self.sleep.release()
        await task
        await asyncio.sleep(0)
        self.assertEqual(len(self.transport.sent), 1)
        self.assertIn("Invited by: Scheduled System", self.transport.sent[0][1])
        self.assertEqual(self.dispatcher.pending_count, 0)

    async def test_delayed_dispatch_uses_members_at_fire_time(self):
        task = await self.dispatcher.dispatch_delayed(GROUP, "PUBG", "Drop in", "Scheduled System", 1)
        await self.registry.join(category_key(GROUP, "PUBG"), Subscriber(3, "Carol"))
        self.sleep.release()
        await task
        self.assertIn('tg://user?id=3"', self.transport.sent[0][1])

    async def test_zero_or_negative_delay_dispatches_immediately(self):
        for delay in (0, -3):
            task = await self.dispatcher.dispatch_delayed(GROUP, "PUBG", "Now", "carol", delay)
            self.assertIsNone(task)
        self.assertEqual(len(self.transport.sent), 2)
        self.assertEqual(self.sleep.requested, [])
        self.assertEqual(self.dispatcher.pending_count, 0)

    async def test_failure_while_waiting_is_logged(self):
        dispatcher = GatheringDispatcher(self.registry, self.transport)
        with self.assertLogs(level="ERROR") as logs:
            task = await dispatcher.dispatch_delayed(GROUP, "PUBG", "Drop in", "Scheduled System", 10**400)
            await task
        self.assertIsNone(task.exception())
        self.assertIs(logs.records[0].exc_info[0], OverflowError)
        self.assertEqual(self.transport.sent, [])

    async def test_scheduled_task_can_be_cancelled(self):
        task = await self.dispatcher.dispatch_delayed(GROUP, "PUBG", "Drop in", "Scheduled System", 10)
        await asyncio.sleep(0)
        task.cancel()
        with self.assertRaises(asyncio.CancelledError):
            await task
        self.assertEqual(self.transport.sent, [])


if __name__ == "__main__":
    unittest.main()
