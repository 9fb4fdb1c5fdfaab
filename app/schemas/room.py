"""Room schemas."""
from datetime import datetime

from pydantic import BaseModel


class RoomResponse(BaseModel):
    id: int
    name: str
    uid: str
    sessions: int = 0
    last_session: datetime | None = None

    class Config:
        from_attributes = True


class RoomListResponse(BaseModel):
    main_room: RoomResponse | None = None
    secondary_rooms: list[RoomResponse] = []
