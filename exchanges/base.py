"""Base order book snapshot source"""
import asyncio
import logging
from abc import ABC, abstractmethod

from config import MAX_FETCH_ATTEMPTS, RETRY_DELAY

logger = logging.getLogger(__name__)


class SnapshotFetchError(Exception):
    """Raised when a snapshot cannot be retrieved or is not usable"""


class SnapshotSource(ABC):
    """Base class for anything that can hand the engine a raw order book snapshot"""

    def __init__(self, name: str, max_attempts: int = MAX_FETCH_ATTEMPTS, retry_delay: float = RETRY_DELAY):
        self.name = name
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self.fetch_count = 0
        self.failure_count = 0

    @abstractmethod
    async def _fetch(self) -> dict:
        """Fetch one raw snapshot - source specific"""
        pass

    async def fetch_snapshot(self) -> dict:
        """
        Fetch a snapshot, retrying transient failures.

        Raises:
            SnapshotFetchError: after max_attempts failed attempts
        """
        last_error: Exception = SnapshotFetchError("no attempt made")
        for attempt in range(1, self.max_attempts + 1):
            try:
                snapshot = await self._fetch()
                self.fetch_count += 1
                return snapshot
            except (SnapshotFetchError, asyncio.TimeoutError, OSError) as e:
                last_error = e
                self.failure_count += 1
                logger.warning(f"[{self.name}] Fetch failed (attempt {attempt}/{self.max_attempts}): {e}")
                if attempt < self.max_attempts:
                    await asyncio.sleep(self.retry_delay)

        raise SnapshotFetchError(f"[{self.name}] giving up after {self.max_attempts} attempts: {last_error}")

    async def close(self):
        """Release any resources held by the source"""
        pass
