"""
Receive-order handoff.

The order screen publishes "receive this order"; the receipt screen picks it up
exactly once. One slot per process: a newer publish replaces an unread one and
reading clears it.
"""
import threading
from typing import Optional

from loguru import logger


class HandoffChannel:
    def __init__(self):
        self._lock = threading.Lock()
        self._po_id: Optional[int] = None

    def publish(self, po_id: int) -> None:
        with self._lock:
            if self._po_id is not None and self._po_id != po_id:
                logger.debug(f"Handoff for order {self._po_id} replaced by order {po_id}")
            self._po_id = po_id

    def consume_once(self) -> Optional[int]:
        with self._lock:
            po_id, self._po_id = self._po_id, None
            return po_id

    def peek(self) -> Optional[int]:
        with self._lock:
            return self._po_id

    def clear(self) -> None:
        with self._lock:
            self._po_id = None


_channel = HandoffChannel()


def get_handoff_channel() -> HandoffChannel:
    """FastAPI dependency; tests override it with a fresh channel."""
    return _channel
