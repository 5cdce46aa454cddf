from pydantic import BaseModel, ConfigDict, Field
from typing import Any


class ClientMessage(BaseModel):
    event: str
    data: Any = None


class SignalRequest(BaseModel):
    room: str
    type: Any = None
    payload: Any = None


class LeaveRoomRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    room_id: str = Field(alias="roomId")
