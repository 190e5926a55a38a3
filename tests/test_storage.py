"""Tests for tiered schedule persistence."""
import json
import unittest

from custom_components.timer24h.const import (
    SYNC_LOCAL,
    SYNC_SYNCED,
    SYNC_UNSAVED,
    TIER_DOCUMENT,
    TIER_LOCAL,
    TIER_NOTIFICATION,
)
from custom_components.timer24h.exceptions import StoreMalformed
from custom_components.timer24h.grid import slots_from_labels
from custom_components.timer24h.storage import (
    DocumentTier,
    LocalTier,
    NotificationTier,
    PersistenceTierChain,
    decode_snapshot,
    encode_snapshot,
    make_snapshot,
)
from custom_components.timer24h.types import Timer24hConfig

from timer_fakes import FakeHost

KEY = "timer_24h_card_1700000000000_042"


def _chain(host, **overrides):
    config = Timer24hConfig(storage_key=KEY, **overrides)
    tiers = [DocumentTier(host.documents), NotificationTier(host.messages), LocalTier(host.local)]
    return PersistenceTierChain(tiers, config, lambda: host.alive)


class TestSnapshotCodec(unittest.TestCase):

    def test_document_shape(self):
        snapshot = make_snapshot(slots_from_labels(["07:00"]), timestamp=1234)
        document = json.loads(encode_snapshot(snapshot))
        self.assertEqual(set(document), {"timeSlots", "timestamp"})
        self.assertEqual(document["timestamp"], 1234)
        self.assertEqual(len(document["timeSlots"]), 48)
        self.assertIn({"hour": 7, "minute": 0, "active": True}, document["timeSlots"])

    def test_decode_rejects_garbage(self):
        for text in ("not json", "[]", '{"timestamp": 1}', '{"timeSlots": [1, 2, 3]}'):
            with self.assertRaises(StoreMalformed, msg=text):
                decode_snapshot(text)

    def test_decode_tolerates_bad_timestamp(self):
        snapshot = make_snapshot(slots_from_labels([]), timestamp=5)
        document = json.loads(encode_snapshot(snapshot))
        document["timestamp"] = "yesterday"
        self.assertEqual(decode_snapshot(json.dumps(document)).timestamp, 0)


class TestPersistenceTierChain(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.host = FakeHost()
        self.snapshot = make_snapshot(slots_from_labels(["10:00"]), timestamp=1)

    async def test_write_stops_at_first_tier(self):
        chain = _chain(self.host)
        self.assertEqual(await chain.async_write(self.snapshot), TIER_DOCUMENT)
        self.assertIn(KEY, self.host.documents.data)
        self.assertEqual(self.host.messages.messages, {})
        self.assertEqual(self.host.local.data, {})
        self.assertEqual(chain.sync_status, SYNC_SYNCED)

    async def test_write_falls_through_to_notification(self):
        self.host.documents.fail = True
        chain = _chain(self.host)
        self.assertEqual(await chain.async_write(self.snapshot), TIER_NOTIFICATION)
        self.assertIn(KEY, self.host.messages.messages)
        self.assertEqual(chain.sync_status, SYNC_SYNCED)

    async def test_write_falls_through_to_local(self):
        self.host.documents.fail = True
        self.host.messages.fail = True
        chain = _chain(self.host)
        self.assertEqual(await chain.async_write(self.snapshot), TIER_LOCAL)
        self.assertIn(f"timer-24h-{KEY}", self.host.local.data)
        self.assertEqual(chain.sync_status, SYNC_LOCAL)

    async def test_local_fallback_disabled(self):
        self.host.documents.fail = True
        self.host.messages.fail = True
        chain = _chain(self.host, allow_local_fallback=False)
        with self.assertLogs("custom_components.timer24h.storage", level="ERROR"):
            self.assertIsNone(await chain.async_write(self.snapshot))
        self.assertEqual(self.host.local.data, {})
        self.assertEqual(chain.sync_status, SYNC_UNSAVED)

    async def test_dead_session_goes_straight_to_local(self):
        self.host.alive = False
        chain = _chain(self.host)
        self.assertEqual(await chain.async_write(self.snapshot), TIER_LOCAL)
        self.assertEqual(self.host.documents.writes, 0)

    async def test_save_state_off_skips_remote(self):
        chain = _chain(self.host, save_state=False)
        self.assertEqual(await chain.async_write(self.snapshot), TIER_LOCAL)
        self.assertFalse(chain.remote_available())

    async def test_missing_key_uses_default_local_key(self):
        config = Timer24hConfig(storage_key=None)
        chain = PersistenceTierChain([LocalTier(self.host.local)], config, lambda: True)
        await chain.async_write(self.snapshot)
        self.assertIn("timer-24h-default", self.host.local.data)

    async def test_read_falls_through_absent_tiers(self):
        await LocalTier(self.host.local).async_write(KEY, self.snapshot)
        chain = _chain(self.host)
        loaded = await chain.async_read()
        self.assertEqual(loaded, self.snapshot)
        self.assertEqual(chain.last_tier, TIER_LOCAL)

    async def test_read_uses_notification_when_document_absent(self):
        other = make_snapshot(slots_from_labels(["22:30"]), timestamp=1)
        await NotificationTier(self.host.messages).async_write(KEY, self.snapshot)
        await LocalTier(self.host.local).async_write(KEY, other)
        chain = _chain(self.host)
        loaded = await chain.async_read()
        self.assertEqual(loaded, self.snapshot)
        self.assertEqual(chain.last_tier, TIER_NOTIFICATION)
        self.assertEqual(chain.sync_status, SYNC_SYNCED)
        self.assertEqual(self.host.documents.reads, 1)

    async def test_read_skips_malformed_tier(self):
        self.host.documents.data[KEY] = "{broken"
        await NotificationTier(self.host.messages).async_write(KEY, self.snapshot)
        chain = _chain(self.host)
        with self.assertLogs("custom_components.timer24h.storage", level="WARNING"):
            loaded = await chain.async_read()
        self.assertEqual(loaded, self.snapshot)
        self.assertEqual(chain.last_tier, TIER_NOTIFICATION)

    async def test_read_remote_only_ignores_local(self):
        await LocalTier(self.host.local).async_write(KEY, self.snapshot)
        chain = _chain(self.host)
        self.assertIsNone(await chain.async_read(remote_only=True))

    async def test_read_nothing_saved(self):
        self.assertIsNone(await _chain(self.host).async_read())


class TestNotificationTier(unittest.IsolatedAsyncioTestCase):

    async def test_uses_storage_key_as_message_id(self):
        host = FakeHost()
        tier = NotificationTier(host.messages)
        snapshot = make_snapshot(slots_from_labels(["01:30"]), timestamp=9)
        await tier.async_write(KEY, snapshot)
        host.messages.messages["other"] = "unrelated"
        self.assertEqual(await tier.async_read(KEY), snapshot)
        self.assertIsNone(await tier.async_read("missing"))


if __name__ == "__main__":
    unittest.main()
