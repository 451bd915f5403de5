"""
Tests for LocalSessionStore: round trips through a temp directory and
recovery from unreadable payloads.
"""

import json
import tempfile
import unittest
from datetime import datetime, timezone
from pathlib import Path

from microbot.models import ChatSession, Message, Role
from microbot.persistence.session_store import (
    SESSIONS_KEY,
    SIDEBAR_KEY,
    LocalSessionStore,
    loads_sessions,
)


def sample_sessions():
    asked = datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)
    return (
        ChatSession(
            title="Router help",
            timestamp=asked,
            preview="router reset kaise karein",
            messages=(
                Message(role=Role.USER, content="router reset kaise karein", timestamp=asked),
                Message(
                    role=Role.ASSISTANT,
                    content="Sorry, I encountered an error: rate limited.",
                    timestamp=asked,
                    error=True,
                ),
            ),
        ),
        ChatSession(),
    )


class LocalSessionStoreTestCase(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp.name) / "store"
        self.store = LocalSessionStore(self.root)

    def tearDown(self):
        self.tmp.cleanup()

    def write(self, key, text):
        self.root.mkdir(parents=True, exist_ok=True)
        (self.root / f"{key}.json").write_text(text, encoding="utf-8")

    def test_missing_files_give_defaults(self):
        self.assertEqual(self.store.load(), ((), True))

    def test_round_trip(self):
        sessions = sample_sessions()
        self.store.save(sessions)
        self.store.save_preference(False)

        loaded, collapsed = LocalSessionStore(self.root).load()

        self.assertEqual(loaded, sessions)
        self.assertFalse(collapsed)
        self.assertTrue(loaded[0].messages[1].error)
        self.assertEqual(loaded[0].timestamp.tzinfo, timezone.utc)

    def test_saved_payload_shape(self):
        self.store.save(sample_sessions())
        raw = json.loads((self.root / f"{SESSIONS_KEY}.json").read_text(encoding="utf-8"))

        self.assertIsInstance(raw, list)
        self.assertEqual(
            set(raw[0]), {"id", "title", "timestamp", "preview", "messages"}
        )
        self.assertEqual(raw[0]["messages"][0]["role"], "user")
        self.assertEqual(raw[0]["timestamp"], "2024-05-01T09:30:00+00:00")

    def test_save_leaves_no_partial_file(self):
        self.store.save(sample_sessions())
        self.assertEqual(
            sorted(p.name for p in self.root.iterdir()), [f"{SESSIONS_KEY}.json"]
        )

    def test_corrupt_sessions_start_empty(self):
        self.write(SESSIONS_KEY, "{this is not json")
        self.write(SIDEBAR_KEY, "false")

        with self.assertLogs("microbot.persistence.session_store", level="ERROR"):
            sessions, collapsed = self.store.load()

        self.assertEqual(sessions, ())
        self.assertFalse(collapsed)

    def test_non_list_payload_starts_empty(self):
        self.write(SESSIONS_KEY, json.dumps({"id": "abc"}))
        with self.assertLogs("microbot.persistence.session_store", level="ERROR"):
            sessions, _ = self.store.load()
        self.assertEqual(sessions, ())

    def test_session_missing_fields_starts_empty(self):
        self.write(SESSIONS_KEY, json.dumps([{"title": "no id"}]))
        with self.assertLogs("microbot.persistence.session_store", level="ERROR"):
            sessions, _ = self.store.load()
        self.assertEqual(sessions, ())

    def test_non_boolean_preference_is_ignored(self):
        self.write(SIDEBAR_KEY, '"yes"')
        with self.assertLogs("microbot.persistence.session_store", level="WARNING"):
            _, collapsed = self.store.load()
        self.assertTrue(collapsed)

    def test_corrupt_preference_keeps_sessions(self):
        self.store.save(sample_sessions())
        self.write(SIDEBAR_KEY, "not json")
        with self.assertLogs("microbot.persistence.session_store", level="ERROR"):
            sessions, collapsed = self.store.load()
        self.assertEqual(len(sessions), 2)
        self.assertTrue(collapsed)


class LoadsSessionsTestCase(unittest.TestCase):
    def test_accepts_zulu_timestamps(self):
        text = json.dumps(
            [
                {
                    "id": "s1",
                    "title": "Laptops",
                    "timestamp": "2024-05-01T09:30:00.000Z",
                    "preview": "Best laptop?",
                    "messages": [
                        {
                            "id": "m1",
                            "role": "user",
                            "content": "Best laptop?",
                            "timestamp": "2024-05-01T09:30:00.000Z",
                        }
                    ],
                }
            ]
        )
        (session,) = loads_sessions(text)

        self.assertEqual(session.timestamp, datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc))
        self.assertFalse(session.messages[0].error)


if __name__ == "__main__":
    unittest.main()
