from pydantic import BaseModel


class StatsResponse(BaseModel):
    online: int
    waiting: int
    rooms: int


class HealthResponse(BaseModel):
    status: str
    redis: str
