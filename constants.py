import os
import socket

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 8000))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)

CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()]

# "derived" -> "<receiver>#<initiator>", "token" -> random urlsafe id
ROOM_ID_MODE = os.getenv("ROOM_ID_MODE", "derived")

REDIS_ENABLED = os.getenv("REDIS_ENABLED", "false").lower() in ("1", "true", "yes")
REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT = int(os.getenv("REDIS_PORT", 6379))
REDIS_PASSWORD = os.getenv("REDIS_PASSWORD", None)

REDIS_SOCKET_TIMEOUT = float(os.getenv("REDIS_SOCKET_TIMEOUT", 2.0))
# snapshots waiting to be written when Redis falls behind
STATS_BACKLOG = int(os.getenv("STATS_BACKLOG", 1000))

STATS_TTL = int(os.getenv("STATS_TTL", 60))
INSTANCE_ID = os.getenv("INSTANCE_ID", socket.gethostname())
