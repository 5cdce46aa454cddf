from collections import OrderedDict
from typing import Callable, List, Optional

from logging_config import get_logger

logger = get_logger(__name__)


class WaitingQueue:
    """FIFO of connection ids waiting for a partner.

    Backed by an OrderedDict so membership checks and removal of an
    arbitrary entry are O(1) while insertion order is kept.
    """

    def __init__(self):
        self._entries: "OrderedDict[str, None]" = OrderedDict()

    def enqueue(self, connection_id: str) -> bool:
        if connection_id in self._entries:
            return False
        self._entries[connection_id] = None
        return True

    def dequeue_oldest(self, is_live: Callable[[str], bool]) -> Optional[str]:
        """Pop the oldest live entry, discarding stale ones on the way."""
        while self._entries:
            connection_id, _ = self._entries.popitem(last=False)
            if is_live(connection_id):
                return connection_id
            logger.debug(f"Pruned stale queue entry {connection_id}")
        return None

    def remove(self, connection_id: str) -> bool:
        if connection_id not in self._entries:
            return False
        del self._entries[connection_id]
        return True

    def snapshot(self) -> List[str]:
        return list(self._entries)

    def __contains__(self, connection_id: str) -> bool:
        return connection_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)
