"""Booking and room state machines."""
from typing import Type
from enum import Enum

from hotel_app.models.booking import BookingStatus, PaymentStatus
from hotel_app.models.room import RoomStatus
from hotel_app.utils.exceptions import InvalidTransitionError, ValidationError

BOOKING_TRANSITIONS = {
    BookingStatus.PENDING: {BookingStatus.PENDING, BookingStatus.CONFIRMED, BookingStatus.CANCELLED},
    # confirmed -> pending only happens when a payment is marked unpaid again
    BookingStatus.CONFIRMED: {
        BookingStatus.CONFIRMED,
        BookingStatus.PENDING,
        BookingStatus.CHECKED_IN,
        BookingStatus.CANCELLED,
    },
    BookingStatus.CHECKED_IN: {BookingStatus.CHECKED_IN, BookingStatus.CHECKED_OUT},
    BookingStatus.CHECKED_OUT: set(),
    BookingStatus.CANCELLED: set(),
}

TERMINAL_BOOKING_STATUSES = {BookingStatus.CHECKED_OUT, BookingStatus.CANCELLED}

# Entering one of these should leave the booking holding a physical room
ROOM_HOLDING_STATUSES = {BookingStatus.CONFIRMED, BookingStatus.CHECKED_IN}

# Entering one of these gives the room back to inventory
ROOM_RELEASING_STATUSES = {BookingStatus.PENDING, BookingStatus.CHECKED_OUT, BookingStatus.CANCELLED}

# Bookings counted as "in house" by the expiring-soon query
ACTIVE_STAY_STATUSES = [BookingStatus.CONFIRMED.value, BookingStatus.CHECKED_IN.value]

ROOM_TRANSITIONS = {
    RoomStatus.AVAILABLE: {RoomStatus.OCCUPIED, RoomStatus.MAINTENANCE, RoomStatus.RESERVED},
    RoomStatus.OCCUPIED: {RoomStatus.AVAILABLE},
    RoomStatus.MAINTENANCE: {RoomStatus.AVAILABLE},
    RoomStatus.RESERVED: {RoomStatus.AVAILABLE, RoomStatus.OCCUPIED},
}

# Occupancy is owned by the allocator; staff may only toggle these by hand
ADMIN_ROOM_STATUSES = {RoomStatus.AVAILABLE, RoomStatus.MAINTENANCE, RoomStatus.RESERVED}


def parse_enum(enum_cls: Type[Enum], value, label: str):
    """Coerce a raw value into enum_cls or raise ValidationError"""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"Invalid {label}: {value!r}. Expected one of: {allowed}")


def parse_booking_status(value) -> BookingStatus:
    return parse_enum(BookingStatus, value, "booking status")


def parse_payment_status(value) -> PaymentStatus:
    return parse_enum(PaymentStatus, value, "payment status")


def parse_room_status(value) -> RoomStatus:
    return parse_enum(RoomStatus, value, "room status")


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return target in BOOKING_TRANSITIONS.get(current, set())


def assert_booking_transition(current: BookingStatus, target: BookingStatus) -> None:
    if not can_transition(current, target):
        raise InvalidTransitionError(
            f"Invalid booking transition: {current.value} → {target.value}"
        )


def assert_room_transition(current: RoomStatus, target: RoomStatus) -> None:
    if current == target:
        return
    if target not in ROOM_TRANSITIONS.get(current, set()):
        raise InvalidTransitionError(
            f"Invalid room transition: {current.value} → {target.value}"
        )
