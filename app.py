from contextlib import asynccontextmanager
from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from routers.stats import stats_router
from backend import RedisBackend, create_redis_client
from broker.channels import WebSocketChannel
from broker.service import Broker
from constants import CORS_ORIGINS, LOG_LEVEL, LOG_FILE, ROOM_ID_MODE, REDIS_ENABLED
import asyncio
import json
from logging_config import get_logger, setup_logging

# Setup logging
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    mirror_task = None
    redis_backend = app.state.redis_backend
    if redis_backend is not None:
        mirror_task = asyncio.create_task(redis_backend.run())
    try:
        yield
    finally:
        if mirror_task:
            mirror_task.cancel()
            try:
                await mirror_task
            except asyncio.CancelledError:
                pass


app = FastAPI(lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(stats_router)

# One broker per process. Broker operations never await, so the event loop
# serializes them.
app.state.broker = Broker(room_id_mode=ROOM_ID_MODE)
app.state.redis_backend = None

if REDIS_ENABLED:
    app.state.redis_backend = RedisBackend(create_redis_client())
    app.state.broker.add_listener(app.state.redis_backend.on_broker_event)

logger.info("FastAPI application initialized")


def decode_frame(message: dict):
    """Return the JSON object carried by a text or binary frame, or None."""
    data = message.get("text")
    if data is None and message.get("bytes") is not None:
        try:
            data = message["bytes"].decode("utf-8")
        except UnicodeDecodeError:
            return None
    if data is None:
        return None
    try:
        return json.loads(data)
    except json.JSONDecodeError:
        return None


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """Broker endpoint. Frames are JSON objects: {"event": ..., "data": ...}."""
    broker: Broker = websocket.app.state.broker
    await websocket.accept()

    channel = WebSocketChannel(websocket)
    writer = asyncio.create_task(channel.pump())
    connection_id = broker.connect(channel)
    channel.connection_id = connection_id

    try:
        while True:
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                logger.info(f"WebSocket disconnected normally for connection {connection_id}")
                break
            message = decode_frame(frame)
            if message is None:
                logger.warning(f"Dropped undecodable frame from connection {connection_id}")
                continue
            broker.handle(connection_id, message)
    except Exception as e:
        logger.error(f"Error receiving message from connection {connection_id}: {e}", exc_info=True)
    finally:
        broker.disconnect(connection_id)
        channel.close()
        try:
            await writer
        except Exception as e:
            logger.debug(f"Writer task for connection {connection_id} ended with error: {e}")
