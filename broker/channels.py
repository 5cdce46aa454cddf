import asyncio
import json
from typing import Optional

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from logging_config import get_logger

logger = get_logger(__name__)

_CLOSE = object()


class WebSocketChannel:
    """ClientChannel backed by a FastAPI WebSocket.

    ``send`` only enqueues; ``pump`` drains the outbox in order on the event
    loop, so broker operations never await socket I/O.
    """

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket
        self.outbox: asyncio.Queue = asyncio.Queue()
        self.closed = False
        self.connection_id: Optional[str] = None

    def send(self, message: dict):
        if self.closed:
            return
        self.outbox.put_nowait(message)

    def close(self):
        if self.closed:
            return
        self.closed = True
        self.outbox.put_nowait(_CLOSE)

    async def pump(self):
        """Writer task: deliver queued messages until closed."""
        try:
            while True:
                message = await self.outbox.get()
                if message is _CLOSE:
                    break
                await self.websocket.send_text(json.dumps(message))
        except asyncio.CancelledError:
            logger.debug(f"Writer task cancelled for connection {self.connection_id}")
            raise
        except Exception as e:
            # socket is gone, the reader side will run the disconnect cleanup
            self.closed = True
            logger.warning(f"Error sending to connection {self.connection_id}: {e}")
        finally:
            if (
                self.websocket.application_state == WebSocketState.CONNECTED
                and self.websocket.client_state == WebSocketState.CONNECTED
            ):
                try:
                    await self.websocket.close()
                except Exception as e:
                    logger.debug(f"Error closing WebSocket: {e}")
