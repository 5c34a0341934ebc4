"""
Helper utility functions
"""
from bson import ObjectId
from typing import Any, Dict, List, Optional
from datetime import date, datetime, time, timedelta
import pytz

from hotel_app.config.settings import settings

HOTEL_TZ = pytz.timezone(settings.HOTEL_TIMEZONE)

# Stored as midnight datetimes but rendered as plain calendar dates
DATE_ONLY_FIELDS = ("check_in", "check_out")


def serialize_doc(doc: Dict) -> Dict:
    """Convert MongoDB document to JSON-serializable format"""
    if doc is None:
        return None

    if "_id" in doc and isinstance(doc["_id"], ObjectId):
        doc["_id"] = str(doc["_id"])

    # Convert any nested ObjectIds or datetimes
    for key, value in doc.items():
        if isinstance(value, ObjectId):
            doc[key] = str(value)
        elif isinstance(value, datetime):
            if key in DATE_ONLY_FIELDS:
                doc[key] = value.date().isoformat()
            elif value.tzinfo is None:
                doc[key] = pytz.utc.localize(value).astimezone(HOTEL_TZ).isoformat()
            else:
                doc[key] = value.astimezone(HOTEL_TZ).isoformat()
        elif isinstance(value, list):
            doc[key] = [serialize_doc(item) if isinstance(item, dict) else item for item in value]
        elif isinstance(value, dict):
            doc[key] = serialize_doc(value)

    return doc


def today_midnight() -> datetime:
    """Server-clock today at 00:00, naive, matching how stay dates are stored"""
    return datetime.combine(date.today(), time.min)


def to_midnight(value: Any) -> datetime:
    """Normalise a date or datetime to a naive midnight datetime"""
    if isinstance(value, datetime):
        return datetime.combine(value.date(), time.min)
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    raise TypeError(f"Expected a date, got {type(value).__name__}")


def day_window(day: datetime) -> tuple:
    """[day 00:00, next day 00:00) as a pair of datetimes"""
    start = to_midnight(day)
    return start, start + timedelta(days=1)


def booking_reference(booking_id: Any) -> str:
    """Human-readable reference: fixed prefix plus the last 8 hex characters of the id"""
    return f"{settings.BOOKING_REFERENCE_PREFIX}-{str(booking_id)[-8:].upper()}"


def derive_floor(room_number: str) -> int:
    """Floor from the leading digit of the room number; 0 or non-numeric means floor 1"""
    if room_number and room_number[0].isdigit() and room_number[0] != "0":
        return int(room_number[0])
    return 1


def room_sort_key(room_number: str) -> str:
    """Zero-padded ordering key so that '99' sorts before '101'"""
    return room_number.zfill(10)


def format_booking(doc: Dict) -> Dict:
    """Shape a booking document for API responses"""
    booking = serialize_doc(dict(doc))
    return {
        "id": booking["_id"],
        "booking_reference": booking_reference(booking["_id"]),
        "guest_name": f"{booking.get('guest_first_name', '')} {booking.get('guest_last_name', '')}".strip(),
        "guest_email": booking.get("guest_email"),
        "guest_phone": booking.get("guest_phone"),
        "guest_country": booking.get("guest_country"),
        "room_slug": booking.get("room_slug"),
        "room_name": booking.get("room_name"),
        "room_number": booking.get("room_number"),
        "number_of_rooms": booking.get("number_of_rooms", 1),
        "price_per_night": booking.get("price_per_night"),
        "check_in": booking.get("check_in"),
        "check_out": booking.get("check_out"),
        "nights": booking.get("nights"),
        "adults": booking.get("adults"),
        "children": booking.get("children", 0),
        "total_guests": booking.get("total_guests"),
        "additional_services": booking.get("additional_services", []),
        "special_requests": booking.get("special_requests"),
        "total_amount": booking.get("total_amount"),
        "payment_status": booking.get("payment_status"),
        "payment_method": booking.get("payment_method"),
        "payment_reference": booking.get("payment_reference"),
        "booking_status": booking.get("booking_status"),
        "booking_source": booking.get("booking_source"),
        "cancellation_reason": booking.get("cancellation_reason"),
        "cancelled_at": booking.get("cancelled_at"),
        "created_at": booking.get("created_at"),
        "updated_at": booking.get("updated_at"),
    }


def format_room(doc: Dict) -> Dict:
    room = serialize_doc(dict(doc))
    return {
        "id": room["_id"],
        "room_number": room.get("room_number"),
        "room_type_id": room.get("room_type_id"),
        "room_type_slug": room.get("room_type_slug"),
        "room_type_name": room.get("room_type_name"),
        "floor": room.get("floor"),
        "status": room.get("status"),
        "notes": room.get("notes") or "",
        "is_active": room.get("is_active", True),
        "created_at": room.get("created_at"),
    }


def clean_optional(value: Optional[str]) -> Optional[str]:
    """Strip a string, collapsing empty values to None"""
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def format_validation_errors(errors: List[Dict]) -> str:
    """One readable line out of pydantic's error list"""
    missing = [".".join(str(part) for part in err.get("loc", ()) if part != "body")
               for err in errors if err.get("type") == "missing"]
    if missing:
        return f"Missing required fields: {', '.join(missing)}"
    parts = []
    for err in errors:
        field = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        parts.append(f"{field}: {err.get('msg')}" if field else str(err.get("msg")))
    return "; ".join(parts)
