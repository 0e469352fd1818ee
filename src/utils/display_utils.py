"""
Display/widget refresh signal emitted after each context commit
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional

import pytz

logger = logging.getLogger(__name__)


class DisplayRefreshSignal:
    """Fire-and-forget "invalidate all" broadcast to display consumers"""

    def __init__(self):
        self.version = 0
        self.last_invalidated_at: Optional[datetime] = None
        self._subscribers: List[Callable[[], None]] = []

    def subscribe(self, callback: Callable[[], None]) -> None:
        self._subscribers.append(callback)

    def invalidate_all(self) -> None:
        self.version += 1
        self.last_invalidated_at = datetime.now(pytz.utc)
        logger.debug(f"Display invalidated (version {self.version})")

        for callback in self._subscribers:
            try:
                callback()
            except Exception as e:
                # Consumers must never break the commit that triggered them
                logger.error(f"Display subscriber failed: {e}")
