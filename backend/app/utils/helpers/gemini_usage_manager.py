"""
This module provides the GeminiUsageManager class, which guards the calls the
compliance services make to the Gemini API.

It enforces a daily request quota and a concurrency limit, keeps a minimal
spacing between calls, and trims the context texts (reference documents,
existing assessments) that are pasted into prompts.
"""

import asyncio
from datetime import datetime
from typing import Any, Dict, Optional
from weakref import WeakKeyDictionary

from backend.app.utils.logging.logger import log_info, log_warning
from backend.app.utils.system_utils.exceptions import AIServiceUnavailableError

# asyncio locks are bound to an event loop; keep one lock per running loop.
_gemini_locks = WeakKeyDictionary()


class GeminiUsageManager:
    """
    Tracks and limits the usage of the Gemini API.

    A request slot must be acquired before every call and released after it,
    whatever the outcome of the call.
    """

    def __init__(
            self,
            max_daily_requests: int = 5000,
            max_concurrent_requests: int = 5,
            request_delay: float = 0.1,
            text_truncation_limit: int = 8000
    ):
        """
        Args:
            max_daily_requests: Maximum number of calls per rolling day.
            max_concurrent_requests: Maximum number of calls in flight.
            request_delay: Minimum delay in seconds between two calls.
            text_truncation_limit: Maximum length of a context text.
        """
        self.daily_requests = 0
        self.max_daily_requests = max_daily_requests
        self.concurrent_requests = 0
        self.max_concurrent_requests = max_concurrent_requests
        self.request_delay = request_delay
        self.text_truncation_limit = text_truncation_limit
        self.last_reset_time = datetime.now()
        self._last_request_time = datetime.now()
        # Operation names of today's calls, for the health endpoint.
        self.request_history = []

    @property
    def request_lock(self) -> asyncio.Lock:
        """Lock of the running event loop, created on first use."""
        loop = asyncio.get_running_loop()
        if loop not in _gemini_locks:
            _gemini_locks[loop] = asyncio.Lock()
        return _gemini_locks[loop]

    async def acquire_request_slot(self, operation: str = "generation") -> None:
        """
        Reserve a slot for one Gemini call.

        Args:
            operation: Name of the service operation, kept in the history.

        Raises:
            AIServiceUnavailableError: If the daily quota or the concurrency limit is reached.
        """
        async with self.request_lock:
            current_time = datetime.now()
            # The quota is reset once a full day has elapsed.
            if (current_time - self.last_reset_time).days >= 1:
                self.daily_requests = 0
                self.last_reset_time = current_time
                self.request_history = []
            if self.daily_requests >= self.max_daily_requests:
                log_warning(f"[GEMINI] Daily quota of {self.max_daily_requests} requests reached")
                raise AIServiceUnavailableError(
                    "Quota journalier du service IA atteint. Veuillez réessayer demain."
                )
            if self.concurrent_requests >= self.max_concurrent_requests:
                log_warning(f"[GEMINI] {self.concurrent_requests} requests already in flight")
                raise AIServiceUnavailableError(
                    "Service IA temporairement surchargé. Veuillez réessayer dans quelques instants."
                )
            elapsed = (current_time - self._last_request_time).total_seconds()
            if elapsed < self.request_delay:
                await asyncio.sleep(self.request_delay - elapsed)
            self.daily_requests += 1
            self.concurrent_requests += 1
            self._last_request_time = datetime.now()
            self.request_history.append({
                "timestamp": current_time,
                "operation": operation,
                "daily_requests": self.daily_requests
            })
            log_info(f"[GEMINI] Slot acquired for {operation} ({self.daily_requests} today)")

    async def release_request_slot(self) -> None:
        """Free the slot taken by `acquire_request_slot`."""
        async with self.request_lock:
            self.concurrent_requests = max(0, self.concurrent_requests - 1)

    def truncate_text(self, text: Optional[str], limit: Optional[int] = None) -> Optional[str]:
        """
        Cut a context text at the last space before the limit.

        Args:
            text: Text to cut.
            limit: Maximum length; the manager's limit when omitted.

        Returns:
            The text itself when short enough, the cut text otherwise.
        """
        if text is None:
            return None
        limit = limit or self.text_truncation_limit
        if len(text) <= limit:
            return text
        truncated = text[:limit]
        last_space = truncated.rfind(" ")
        return truncated[:last_space] if last_space != -1 else truncated

    def get_usage_summary(self) -> Dict[str, Any]:
        return {
            "daily_requests": self.daily_requests,
            "max_daily_requests": self.max_daily_requests,
            "concurrent_requests": self.concurrent_requests,
            "max_concurrent_requests": self.max_concurrent_requests,
            "request_history_length": len(self.request_history),
            "last_reset_time": self.last_reset_time.isoformat()
        }


gemini_usage_manager = GeminiUsageManager()
