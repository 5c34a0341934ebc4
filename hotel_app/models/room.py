from enum import Enum
from pydantic import BaseModel, Field
from typing import Optional, List


class RoomStatus(str, Enum):
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    MAINTENANCE = "maintenance"
    RESERVED = "reserved"


class RoomCreate(BaseModel):
    room_number: str = Field(..., min_length=1, description="Room number (e.g. '101')")
    room_type_id: str = Field(..., min_length=1, description="ID of the room type")
    floor: Optional[int] = Field(None, ge=0, description="Derived from the room number when omitted")
    notes: Optional[str] = None


class RoomStatusUpdate(BaseModel):
    status: str


class RoomResponse(BaseModel):
    id: str
    room_number: str
    room_type_id: str
    # Snapshot of the room type at creation; stale if the type is renamed later
    room_type_slug: str
    room_type_name: str
    floor: int
    status: RoomStatus
    notes: str = ""
    is_active: bool = True
    created_at: Optional[str] = None


class RoomCreatedResponse(RoomResponse):
    remaining_capacity: int
    total_capacity: int


class RoomListResponse(BaseModel):
    rooms: List[RoomResponse]


class RoomTypeAvailability(BaseModel):
    room_type_id: str
    slug: str
    name: str
    total_rooms: int
    created_rooms: int
    available_rooms: int
