from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional

from hotel_app.dependencies import get_booking_queries, get_room_allocator
from hotel_app.models.room import (
    RoomCreate,
    RoomCreatedResponse,
    RoomListResponse,
    RoomResponse,
    RoomStatusUpdate,
    RoomTypeAvailability,
)
from hotel_app.services.booking_queries import BookingQueries
from hotel_app.services.room_allocator import RoomAllocator
from hotel_app.utils.auth import require_staff

router = APIRouter(prefix="/rooms", tags=["Rooms"])


@router.get("", response_model=RoomListResponse)
async def list_rooms(
    room_type: Optional[str] = Query(None, description="Room type slug"),
    room_status: Optional[str] = Query(None, alias="status"),
    allocator: RoomAllocator = Depends(get_room_allocator),
):
    """Active rooms sorted by room number"""
    rooms = await allocator.list_rooms(room_type_slug=room_type, status=room_status)
    return {"rooms": rooms}


@router.get("/availability", response_model=List[RoomTypeAvailability])
async def room_availability(
    room_type: Optional[str] = Query(None, description="Room type slug"),
    queries: BookingQueries = Depends(get_booking_queries),
):
    return await queries.room_availability(room_type)


@router.post("", response_model=RoomCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_room(
    room: RoomCreate,
    current_user: dict = Depends(require_staff),
    allocator: RoomAllocator = Depends(get_room_allocator),
):
    """Add a physical room under a room type's ceiling"""
    return await allocator.create_room(room)


@router.get("/{room_id}", response_model=RoomResponse)
async def get_room(
    room_id: str,
    current_user: dict = Depends(require_staff),
    allocator: RoomAllocator = Depends(get_room_allocator),
):
    return await allocator.get_room(room_id)


@router.patch("/{room_id}/status", response_model=RoomResponse)
async def update_room_status(
    room_id: str,
    update: RoomStatusUpdate,
    current_user: dict = Depends(require_staff),
    allocator: RoomAllocator = Depends(get_room_allocator),
):
    """Take a room in or out of service (maintenance / reserved)"""
    return await allocator.set_status(room_id, update.status)


@router.delete("/{room_id}")
async def delete_room(
    room_id: str,
    current_user: dict = Depends(require_staff),
    allocator: RoomAllocator = Depends(get_room_allocator),
):
    await allocator.delete_room(room_id)
    return {"message": "Room deleted successfully"}
