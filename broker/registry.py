import uuid
from typing import Dict, Optional

from broker.connection import ClientChannel, Connection
from logging_config import get_logger

logger = get_logger(__name__)


class ConnectionRegistry:
    """Every live connection, keyed by connection id."""

    def __init__(self):
        self._connections: Dict[str, Connection] = {}

    def register(self, channel: ClientChannel) -> str:
        connection_id = uuid.uuid4().hex
        self._connections[connection_id] = Connection(id=connection_id, channel=channel)
        logger.debug(f"Registered connection {connection_id} (online: {len(self._connections)})")
        return connection_id

    def unregister(self, connection_id: str) -> Optional[Connection]:
        """Drop a connection. Unknown ids are ignored."""
        connection = self._connections.pop(connection_id, None)
        if connection:
            logger.debug(f"Unregistered connection {connection_id} (online: {len(self._connections)})")
        return connection

    def exists(self, connection_id: str) -> bool:
        return connection_id in self._connections

    def get(self, connection_id: str) -> Optional[Connection]:
        return self._connections.get(connection_id)

    def count(self) -> int:
        return len(self._connections)
