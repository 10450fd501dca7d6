"""Request-generation guard against stale responses.

Each search for a view key gets a new token. A response is current only if
no newer token was issued for that key while it was being computed.
"""

import itertools
import threading

import structlog

from lawcrm.exceptions import StaleResponseError

logger = structlog.get_logger(__name__)


class RequestGenerationGuard:
    """Monotonic per-key generation counter."""

    def __init__(self) -> None:
        self._counter = itertools.count(1)
        self._latest: dict[str, int] = {}
        self._lock = threading.Lock()

    def issue(self, key: str) -> int:
        with self._lock:
            token = next(self._counter)
            self._latest[key] = token
            return token

    def is_current(self, key: str, token: int) -> bool:
        return self._latest.get(key) == token

    def ensure_current(self, key: str, token: int) -> None:
        if not self.is_current(key, token):
            logger.info("Discarding stale response", key=key, token=token, latest=self._latest.get(key))
            raise StaleResponseError(key)
