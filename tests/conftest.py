from datetime import date, timedelta

import pytest
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

from hotel_app.config.database import DatabaseConfig, Collections
from hotel_app.database.db_operations import DBOperations
from hotel_app.dependencies import get_db, get_notifier
from hotel_app.main import app
from hotel_app.models.room import RoomCreate
from hotel_app.models.room_type import RoomTypeCreate
from hotel_app.services.booking_queries import BookingQueries
from hotel_app.services.booking_service import BookingService
from hotel_app.services.room_allocator import RoomAllocator
from hotel_app.services.room_type_service import RoomTypeService
from hotel_app.utils.auth import create_access_token
from hotel_app.utils.exceptions import DependencyFailure
from hotel_app.utils.helpers import to_midnight


class RecordingNotifier:
    """Stands in for EmailNotifier and keeps every payload it was handed"""

    def __init__(self):
        self.sent = []

    async def send_booking_confirmation(self, payload):
        self.sent.append(payload)


class FailingNotifier:
    async def send_booking_confirmation(self, payload):
        raise DependencyFailure("SMTP relay unreachable")


def day(offset: int) -> str:
    """ISO date relative to today"""
    return (date.today() + timedelta(days=offset)).isoformat()


def midnight(offset: int):
    return to_midnight(date.today() + timedelta(days=offset))


@pytest.fixture
async def db():
    config = DatabaseConfig.from_client(AsyncMongoMockClient(), "hotel_test")
    await config.ensure_indexes()
    return config


@pytest.fixture
def db_ops(db):
    return DBOperations(db)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def allocator(db):
    return RoomAllocator(db)


@pytest.fixture
def booking_service(db, allocator, notifier):
    return BookingService(db, allocator=allocator, notifier=notifier)


@pytest.fixture
def booking_queries(db):
    return BookingQueries(db)


@pytest.fixture
def room_type_service(db):
    return RoomTypeService(db)


@pytest.fixture
def create_room_type(room_type_service):
    """Room types as a factory fixture"""

    async def _factory(slug: str = "deluxe", name: str = "Deluxe Room", total_rooms: int = 5, **extra):
        data = {"slug": slug, "name": name, "price_per_night": 700, "total_rooms": total_rooms}
        data.update(extra)
        return await room_type_service.create_room_type(RoomTypeCreate(**data))

    return _factory


@pytest.fixture
def create_room(allocator):

    async def _factory(room_number: str, room_type: dict, **extra):
        return await allocator.create_room(
            RoomCreate(room_number=room_number, room_type_id=room_type["id"], **extra)
        )

    return _factory


@pytest.fixture
def booking_payload():
    """Request body for a two-night website booking starting tomorrow"""

    def _factory(**overrides):
        payload = {
            "guest_first_name": "Ama",
            "guest_last_name": "Mensah",
            "guest_email": "ama.mensah@example.com",
            "guest_phone": "+233 20 123 4567",
            "guest_country": "Ghana",
            "room_slug": "deluxe",
            "room_name": "Deluxe Room",
            "price_per_night": 700,
            "check_in": day(1),
            "check_out": day(3),
            "nights": 2,
            "adults": 2,
            "children": 0,
            "total_amount": 1400,
        }
        payload.update(overrides)
        return payload

    return _factory


@pytest.fixture
def insert_booking(db_ops):
    """Write a booking document directly, bypassing creation rules"""

    async def _factory(**fields):
        document = {
            "guest_first_name": "Kofi",
            "guest_last_name": "Boateng",
            "guest_email": "kofi@example.com",
            "guest_phone": "+233 24 000 0000",
            "guest_country": "Ghana",
            "room_slug": "deluxe",
            "room_name": "Deluxe Room",
            "room_number": None,
            "check_in": midnight(0),
            "check_out": midnight(2),
            "nights": 2,
            "adults": 1,
            "children": 0,
            "total_amount": 500.0,
            "payment_status": "pending",
            "booking_status": "pending",
            "booking_source": "website",
        }
        created_at = fields.pop("created_at", None)
        document.update(fields)
        created = await db_ops.create(Collections.BOOKINGS, document)
        if created_at is not None:
            await db_ops.collection(Collections.BOOKINGS).update_one(
                {"_id": created["_id"]}, {"$set": {"created_at": created_at}}
            )
            created["created_at"] = created_at
        return created

    return _factory


# ─── HTTP ────────────────────────────────────────────────────────────────────

@pytest.fixture
async def client(db, notifier):
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_notifier] = lambda: notifier
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http_client:
        yield http_client
    app.dependency_overrides.clear()


def auth_headers(role: str, sub: str = "64b000000000000000000001", email: str = "user@example.com") -> dict:
    token = create_access_token({"sub": sub, "role": role, "email": email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def staff_headers():
    return auth_headers("staff", email="frontdesk@example.com")


@pytest.fixture
def guest_headers():
    return auth_headers("guest", sub="64b0000000000000000000aa", email="ama.mensah@example.com")
