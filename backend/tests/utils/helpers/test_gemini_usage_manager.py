import unittest
from datetime import datetime, timedelta

from backend.app.utils.helpers.gemini_usage_manager import GeminiUsageManager
from backend.app.utils.system_utils.exceptions import AIServiceUnavailableError


# Test the request slots and quotas
class TestGeminiUsageManagerSlots(unittest.IsolatedAsyncioTestCase):

    # Test acquiring and releasing a slot updates the counters
    async def test_acquire_and_release(self):
        manager = GeminiUsageManager(request_delay=0)

        await manager.acquire_request_slot("policy")

        self.assertEqual(manager.daily_requests, 1)

        self.assertEqual(manager.concurrent_requests, 1)

        self.assertEqual(manager.request_history[0]["operation"], "policy")

        await manager.release_request_slot()

        self.assertEqual(manager.concurrent_requests, 0)

    # Test the daily quota refuses further calls
    async def test_daily_quota(self):
        manager = GeminiUsageManager(max_daily_requests=1, request_delay=0)
        await manager.acquire_request_slot()
        await manager.release_request_slot()

        with self.assertRaises(AIServiceUnavailableError):
            await manager.acquire_request_slot()

    # Test the quota is reset after a day
    async def test_daily_reset(self):
        manager = GeminiUsageManager(max_daily_requests=1, request_delay=0)
        manager.daily_requests = 1
        manager.last_reset_time = datetime.now() - timedelta(days=1, minutes=1)

        await manager.acquire_request_slot()

        self.assertEqual(manager.daily_requests, 1)

        self.assertEqual(len(manager.request_history), 1)

    # Test the concurrency limit refuses calls while slots are taken
    async def test_concurrency_limit(self):
        manager = GeminiUsageManager(max_concurrent_requests=1, request_delay=0)
        await manager.acquire_request_slot()

        with self.assertRaises(AIServiceUnavailableError):
            await manager.acquire_request_slot()

        await manager.release_request_slot()
        await manager.release_request_slot()

        self.assertEqual(manager.concurrent_requests, 0)


# Test the context truncation and the summary
class TestGeminiUsageManagerText(unittest.TestCase):

    # Test texts are cut at the last space before the limit
    def test_truncate_text(self):
        manager = GeminiUsageManager(text_truncation_limit=12)

        self.assertEqual(manager.truncate_text("registre des traitements"), "registre")

        self.assertEqual(manager.truncate_text("court"), "court")

        self.assertEqual(manager.truncate_text("abcdefghij", limit=4), "abcd")

        self.assertIsNone(manager.truncate_text(None))

    # Test the summary exposes the counters
    def test_usage_summary(self):
        summary = GeminiUsageManager(max_daily_requests=10).get_usage_summary()

        self.assertEqual(summary["max_daily_requests"], 10)

        self.assertEqual(summary["daily_requests"], 0)

        self.assertIn("last_reset_time", summary)


if __name__ == "__main__":
    unittest.main()
