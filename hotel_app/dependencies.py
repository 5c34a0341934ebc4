"""
FastAPI dependencies that hand the request's database handle to the services
"""
from fastapi import Depends, Request

from hotel_app.config.database import DatabaseConfig
from hotel_app.services.booking_queries import BookingQueries
from hotel_app.services.booking_service import BookingService
from hotel_app.services.notifications import EmailNotifier
from hotel_app.services.room_allocator import RoomAllocator
from hotel_app.services.room_type_service import RoomTypeService


def get_db(request: Request) -> DatabaseConfig:
    return request.app.state.db


def get_notifier(request: Request) -> EmailNotifier:
    notifier = getattr(request.app.state, "notifier", None)
    return notifier or EmailNotifier()


def get_room_allocator(db: DatabaseConfig = Depends(get_db)) -> RoomAllocator:
    return RoomAllocator(db)


def get_booking_service(
    db: DatabaseConfig = Depends(get_db),
    allocator: RoomAllocator = Depends(get_room_allocator),
    notifier: EmailNotifier = Depends(get_notifier),
) -> BookingService:
    return BookingService(db, allocator=allocator, notifier=notifier)


def get_booking_queries(db: DatabaseConfig = Depends(get_db)) -> BookingQueries:
    return BookingQueries(db)


def get_room_type_service(db: DatabaseConfig = Depends(get_db)) -> RoomTypeService:
    return RoomTypeService(db)
