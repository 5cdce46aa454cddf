import redis
import json
from datetime import datetime
import asyncio
from constants import REDIS_HOST, REDIS_PORT, REDIS_PASSWORD, REDIS_SOCKET_TIMEOUT, STATS_BACKLOG, STATS_TTL, INSTANCE_ID
from redis_keys import REDIS_STATS_KEY, REDIS_LOBBY_CHANNEL
from logging_config import get_logger

logger = get_logger(__name__)


def create_redis_client() -> redis.Redis:
    try:
        client = redis.Redis(
            host=REDIS_HOST,
            port=REDIS_PORT,
            password=REDIS_PASSWORD,
            decode_responses=True,
            socket_timeout=REDIS_SOCKET_TIMEOUT,
            socket_connect_timeout=REDIS_SOCKET_TIMEOUT,
        )
        # Test connection
        client.ping()
        logger.info(f"Redis client connected successfully to {REDIS_HOST}:{REDIS_PORT}")
    except Exception as e:
        logger.error(f"Failed to connect to Redis at {REDIS_HOST}:{REDIS_PORT}: {e}", exc_info=True)
        raise
    return client


class RedisBackend:
    """Mirrors lobby counters into Redis for dashboards and other instances.

    Nothing written here is ever read back into the broker.
    """

    def __init__(self, redis_client: redis.Redis, instance_id: str = INSTANCE_ID, ttl: int = STATS_TTL, backlog: int = STATS_BACKLOG):
        self.redis_client = redis_client
        self.pending: asyncio.Queue = asyncio.Queue(maxsize=backlog)
        self.instance_id = instance_id
        self.ttl = ttl
        logger.info(f"Initializing RedisBackend stats mirror for instance {instance_id}")

    def get_stats_key(self) -> str:
        return REDIS_STATS_KEY.format(instance=self.instance_id)

    def write_stats(self, stats: dict):
        key = self.get_stats_key()
        mapping = {k: str(v) for k, v in stats.items()}
        mapping["updated_at"] = datetime.now().isoformat()
        self.redis_client.hset(key, mapping=mapping)
        if self.ttl:
            self.redis_client.expire(key, self.ttl)
        logger.debug(f"Wrote stats to {key}: {stats}")
        return True

    def read_stats(self, instance_id: str = None):
        key = REDIS_STATS_KEY.format(instance=instance_id or self.instance_id)
        stats = self.redis_client.hgetall(key)
        if not stats:
            return None
        result = {}
        for k, v in stats.items():
            try:
                result[k] = json.loads(v)
            except (json.JSONDecodeError, TypeError):
                result[k] = v
        return result

    def publish_event(self, event: str, stats: dict):
        """Publish a lobby event to the shared channel."""
        message = {
            "event": event,
            "instance": self.instance_id,
            "timestamp": datetime.now().isoformat(),
            **stats,
        }
        subscribers = self.redis_client.publish(REDIS_LOBBY_CHANNEL, json.dumps(message))
        logger.debug(f"Published lobby event {event} to {REDIS_LOBBY_CHANNEL}, {subscribers} subscribers")
        return True

    def ping(self) -> bool:
        try:
            return bool(self.redis_client.ping())
        except Exception as e:
            logger.error(f"Redis ping failed: {e}", exc_info=True)
            return False

    def mirror(self, event: str, stats: dict):
        """Write one snapshot and publish its event. Blocking; run in an executor."""
        try:
            self.write_stats(stats)
            self.publish_event(event, stats)
        except Exception as e:
            logger.error(f"Failed to mirror broker event {event} to Redis: {e}", exc_info=True)

    def on_broker_event(self, event: str, stats: dict):
        """Broker listener. Only queues the snapshot, Redis is written by ``run``."""
        try:
            self.pending.put_nowait((event, stats))
        except asyncio.QueueFull:
            logger.warning(f"Redis mirror backlog full, dropped broker event {event}")

    async def flush(self):
        """Write every queued snapshot, then return."""
        loop = asyncio.get_running_loop()
        while not self.pending.empty():
            event, stats = self.pending.get_nowait()
            await loop.run_in_executor(None, self.mirror, event, stats)

    async def run(self):
        """Background task draining queued snapshots into Redis."""
        logger.info(f"Starting Redis stats mirror for instance {self.instance_id}")
        loop = asyncio.get_running_loop()
        try:
            while True:
                event, stats = await self.pending.get()
                # run blocking redis calls in thread pool
                await loop.run_in_executor(None, self.mirror, event, stats)
        except asyncio.CancelledError:
            logger.info(f"Redis stats mirror stopped for instance {self.instance_id}")
            raise
