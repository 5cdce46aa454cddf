REDIS_STATS_KEY = "broker:stats:{instance}" # instance id - hash of lobby counters
REDIS_LOBBY_CHANNEL = "broker:lobby" # pub/sub channel for lobby events

# **Example `broker:stats:{instance}` hash fields**
# - `online` = connected clients on the instance
# - `waiting` = clients in the waiting queue
# - `rooms` = active two-party rooms
# - `updated_at` = ISO timestamp of the last write
