"""
Process-wide advisory warnings, emitted at most once per distinct message.

One ``AdvisoryLog`` may be shared by sessions running in several threads;
insertion into its seen-set is guarded by a lock.
"""

from __future__ import annotations

import logging
import threading

logger = logging.getLogger(__name__)


class AdvisoryLog:
    """Deduplicating sink for non-fatal warnings."""

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled
        self._seen: set[str] = set()
        self._lock = threading.Lock()

    def warn(self, message: str) -> bool:
        """Log *message* unless it was logged before.

        Returns True if the message was emitted by this call.
        """
        with self._lock:
            if message in self._seen:
                return False
            self._seen.add(message)
        if self.enabled:
            logger.warning("%s", message)
        return self.enabled

    def seen(self, message: str) -> bool:
        with self._lock:
            return message in self._seen

    def __len__(self) -> int:
        with self._lock:
            return len(self._seen)

    def clear(self) -> None:
        with self._lock:
            self._seen.clear()


# Shared by sessions that are not given a log explicitly.
DEFAULT_ADVISORIES = AdvisoryLog()
