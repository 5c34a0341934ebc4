from fastapi import APIRouter, Depends, status
from typing import List

from hotel_app.dependencies import get_room_type_service
from hotel_app.models.room_type import RoomTypeCreate, RoomTypeUpdate, RoomTypeResponse
from hotel_app.services.room_type_service import RoomTypeService
from hotel_app.utils.auth import require_staff

router = APIRouter(prefix="/room-types", tags=["Room Types"])


@router.get("", response_model=List[RoomTypeResponse])
async def list_room_types(service: RoomTypeService = Depends(get_room_type_service)):
    """Public room catalogue with live room counts"""
    return await service.list_room_types()


@router.post("", response_model=RoomTypeResponse, status_code=status.HTTP_201_CREATED)
async def create_room_type(
    room_type: RoomTypeCreate,
    current_user: dict = Depends(require_staff),
    service: RoomTypeService = Depends(get_room_type_service),
):
    return await service.create_room_type(room_type)


@router.get("/slug/{slug}", response_model=RoomTypeResponse)
async def get_room_type_by_slug(slug: str, service: RoomTypeService = Depends(get_room_type_service)):
    return await service.get_by_slug(slug)


@router.get("/{room_type_id}", response_model=RoomTypeResponse)
async def get_room_type(
    room_type_id: str,
    current_user: dict = Depends(require_staff),
    service: RoomTypeService = Depends(get_room_type_service),
):
    return await service.get_room_type(room_type_id)


@router.put("/{room_type_id}", response_model=RoomTypeResponse)
async def update_room_type(
    room_type_id: str,
    update: RoomTypeUpdate,
    current_user: dict = Depends(require_staff),
    service: RoomTypeService = Depends(get_room_type_service),
):
    return await service.update_room_type(room_type_id, update)


@router.delete("/{room_type_id}")
async def delete_room_type(
    room_type_id: str,
    current_user: dict = Depends(require_staff),
    service: RoomTypeService = Depends(get_room_type_service),
):
    await service.delete_room_type(room_type_id)
    return {"message": "Room type deleted successfully"}
