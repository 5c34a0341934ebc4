"""
Booking Record Manager - validates and persists booking requests and owns every
booking status transition.

All status changes go through BookingService._transition, which applies the
transition table with a compare-and-swap on the stored status and then keeps
room inventory in step:
  - entering confirmed / checked_in without a room assigns one
  - entering checked_out / cancelled releases the room
  - falling back to pending releases the room and clears the assignment
Room assignment and the confirmation email are best-effort: the status change
is the source of truth and is never rolled back when they fail.
"""
import logging
from datetime import datetime
from typing import Dict, Optional, Tuple, Union

from pydantic import ValidationError as PydanticValidationError
from pymongo.errors import PyMongoError

from hotel_app.config.database import DatabaseConfig, Collections
from hotel_app.config.settings import settings
from hotel_app.database.db_operations import DBOperations
from hotel_app.models.booking import BookingCreate, BookingSource, BookingStatus, PaymentStatus
from hotel_app.services.booking_state import (
    ROOM_HOLDING_STATUSES,
    ROOM_RELEASING_STATUSES,
    TERMINAL_BOOKING_STATUSES,
    assert_booking_transition,
    parse_booking_status,
    parse_payment_status,
)
from hotel_app.services.notifications import EmailNotifier, build_confirmation_payload
from hotel_app.services.room_allocator import RoomAllocator
from hotel_app.utils.exceptions import (
    ConflictError,
    DependencyFailure,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from hotel_app.utils.helpers import (
    clean_optional,
    format_booking,
    format_validation_errors,
    to_midnight,
    today_midnight,
)

logger = logging.getLogger(__name__)

# Statuses in which updatePaymentStatus also forces the booking status
PAYMENT_DRIVEN_STATUSES = {BookingStatus.PENDING, BookingStatus.CONFIRMED}

# Audit timestamp written when a booking enters the status
STATUS_TIMESTAMPS = {
    BookingStatus.CHECKED_IN: "checked_in_at",
    BookingStatus.CHECKED_OUT: "checked_out_at",
    BookingStatus.CANCELLED: "cancelled_at",
}


def derive_initial_statuses(booking: BookingCreate) -> Tuple[PaymentStatus, BookingStatus]:
    """Initial (payment, booking) status for a new booking.

    A gateway reference means the guest already paid online. Walk-in bookings
    are entered by the front desk, which may choose the statuses (pay on
    arrival, direct check-in). Anything else waits for payment.
    """
    if booking.payment_reference:
        return PaymentStatus.PAID, BookingStatus.CONFIRMED

    if booking.booking_source == BookingSource.WALK_IN:
        payment_status = booking.payment_status or PaymentStatus.PAID
        booking_status = booking.booking_status or BookingStatus.CONFIRMED
        if booking_status in TERMINAL_BOOKING_STATUSES:
            raise ValidationError(f"A new booking cannot start as {booking_status.value}")
        return payment_status, booking_status

    return PaymentStatus.PENDING, BookingStatus.PENDING


def resolve_stay_dates(check_in, check_out, today: datetime = None) -> Tuple[datetime, datetime, int]:
    """Validate the stay window and return (check_in, check_out, nights).

    Check-in up to CHECKIN_GRACE_DAYS in the past is snapped to today to absorb
    client clock and time zone skew; anything older is rejected.
    """
    today = today or today_midnight()
    check_in_day = to_midnight(check_in)
    check_out_day = to_midnight(check_out)

    if check_in_day < today:
        days_past = (today - check_in_day).days
        if days_past > settings.CHECKIN_GRACE_DAYS:
            raise ValidationError(
                f"Check-in date cannot be in the past. Check-in: {check_in_day.date().isoformat()}, "
                f"Today: {today.date().isoformat()}"
            )
        logger.warning("⚠️ Auto-adjusting check-in from %s to today", check_in_day.date().isoformat())
        check_in_day = today

    if check_out_day <= check_in_day:
        raise ValidationError("Check-out date must be after check-in date")

    return check_in_day, check_out_day, (check_out_day - check_in_day).days


class BookingService:
    """Booking Record Manager"""

    def __init__(self, db: DatabaseConfig, allocator: RoomAllocator = None, notifier: EmailNotifier = None):
        self.db_ops = DBOperations(db)
        self.allocator = allocator or RoomAllocator(db)
        self.notifier = notifier or EmailNotifier()

    # ─── Creation ────────────────────────────────────────────────────────────

    @staticmethod
    def _parse_request(data: Union[BookingCreate, Dict]) -> BookingCreate:
        if isinstance(data, BookingCreate):
            return data
        try:
            return BookingCreate.model_validate(data)
        except PydanticValidationError as exc:
            raise ValidationError(format_validation_errors(exc.errors()))

    async def create_booking(self, data: Union[BookingCreate, Dict], user: Optional[Dict] = None) -> Dict:
        """Validate and persist a booking request, returning the response summary"""
        booking = self._parse_request(data)
        check_in, check_out, nights = resolve_stay_dates(booking.check_in, booking.check_out)
        if nights != booking.nights:
            logger.info("Night count %s recomputed to %s from the stay dates", booking.nights, nights)
        payment_status, booking_status = derive_initial_statuses(booking)

        document = {
            "user_id": user.get("sub") if user else None,
            "guest_email": booking.guest_email.lower(),
            "guest_first_name": booking.guest_first_name,
            "guest_last_name": booking.guest_last_name,
            "guest_phone": booking.guest_phone,
            "guest_country": booking.guest_country,
            "special_requests": clean_optional(booking.special_requests),
            "room_slug": booking.room_slug,
            "room_name": booking.room_name,
            "room_image": booking.room_image or "",
            "room_number": None,
            "requested_room_number": clean_optional(booking.room_number),
            "price_per_night": booking.price_per_night,
            "number_of_rooms": booking.number_of_rooms,
            "check_in": check_in,
            "check_out": check_out,
            "nights": nights,
            "adults": booking.adults,
            "children": booking.children,
            "total_guests": booking.total_guests or booking.adults + booking.children,
            "additional_services": [service.model_dump() for service in booking.additional_services],
            "total_amount": booking.total_amount,
            "payment_method": booking.payment_method or "card",
            "payment_status": payment_status.value,
            "payment_reference": clean_optional(booking.payment_reference),
            "booking_status": booking_status.value,
            "booking_source": booking.booking_source.value,
        }
        created = await self.db_ops.create(Collections.BOOKINGS, document)
        logger.info(
            "📝 Booking %s created (%s/%s) for %s",
            created["_id"],
            booking_status.value,
            payment_status.value,
            document["guest_email"],
        )

        if booking_status in ROOM_HOLDING_STATUSES:
            await self._assign_room(created, preferred_room=document["requested_room_number"])

        summary = format_booking(created)
        return {key: summary[key] for key in (
            "id", "booking_reference", "guest_name", "guest_email", "room_name", "room_number",
            "check_in", "check_out", "nights", "total_amount", "booking_status", "payment_status",
            "created_at",
        )}

    # ─── Transitions ─────────────────────────────────────────────────────────

    async def _get(self, booking_id: str) -> Dict:
        booking = await self.db_ops.get_by_id(Collections.BOOKINGS, booking_id)
        if not booking:
            raise NotFoundError("Booking not found")
        return booking

    async def _assign_room(self, booking: Dict, preferred_room: str = None) -> Optional[Dict]:
        try:
            return await self.allocator.assign(booking, preferred_room=preferred_room)
        except PyMongoError:
            logger.exception("Failed to auto-assign a room to booking %s", booking["_id"])
            return None

    async def _release_room(self, booking: Dict, room_number: str) -> None:
        try:
            await self.allocator.release(room_number, booking_id=str(booking["_id"]))
        except PyMongoError:
            logger.exception("Failed to release room %s for booking %s", room_number, booking["_id"])

    async def _transition(self, booking: Dict, target: BookingStatus, fields: Dict = None) -> Dict:
        """Apply one booking status change and synchronise room state"""
        current = parse_booking_status(booking["booking_status"])
        assert_booking_transition(current, target)

        update = dict(fields or {})
        update["booking_status"] = target.value
        if target != current and target in STATUS_TIMESTAMPS:
            update[STATUS_TIMESTAMPS[target]] = datetime.utcnow()

        room_number = booking.get("room_number")
        unset_fields = None
        if target == BookingStatus.PENDING and room_number:
            unset_fields = ["room_number"]

        updated = await self.db_ops.update_where(
            Collections.BOOKINGS,
            {"_id": booking["_id"], "booking_status": current.value},
            update,
            unset_fields=unset_fields,
        )
        if updated is None:
            raise ConflictError("Booking was modified by another request, please retry")

        if target != current:
            logger.info("🔁 Booking %s: %s → %s", booking["_id"], current.value, target.value)
        if target == BookingStatus.CHECKED_IN and updated.get("payment_status") != PaymentStatus.PAID.value:
            logger.warning("⚠️ Booking %s checked in with payment %s", booking["_id"], updated.get("payment_status"))

        if target in ROOM_HOLDING_STATUSES and not updated.get("room_number"):
            if await self._assign_room(updated) is None:
                # A concurrent change may have moved the booking on; report what is stored
                updated = await self._get(str(booking["_id"]))
        elif target in ROOM_RELEASING_STATUSES and room_number and current in ROOM_HOLDING_STATUSES:
            await self._release_room(updated, room_number)
        return updated

    async def _notify_confirmation(self, booking: Dict) -> None:
        try:
            await self.notifier.send_booking_confirmation(build_confirmation_payload(booking))
        except DependencyFailure:
            logger.exception("Failed to send booking confirmation email for %s", booking["_id"])

    async def confirm_payment(self, booking_id: str, reference: str = None) -> Dict:
        """Mark the booking paid and confirmed, assign a room, email the guest.

        Terminal bookings are rejected rather than resurrected. A guest who is
        already checked in keeps that status; only the payment is recorded.
        """
        booking = await self._get(booking_id)
        current = parse_booking_status(booking["booking_status"])
        if current in TERMINAL_BOOKING_STATUSES:
            raise InvalidTransitionError(f"Cannot confirm payment for a {current.value} booking")

        target = BookingStatus.CHECKED_IN if current == BookingStatus.CHECKED_IN else BookingStatus.CONFIRMED
        fields = {"payment_status": PaymentStatus.PAID.value}
        reference = clean_optional(reference)
        if reference:
            fields["payment_reference"] = reference

        updated = await self._transition(booking, target, fields)
        if parse_booking_status(updated["booking_status"]) not in ROOM_HOLDING_STATUSES:
            logger.warning(
                "⚠️ Booking %s changed to %s while confirming payment", booking_id, updated["booking_status"]
            )
            return format_booking(updated)
        logger.info("✅ Booking %s confirmed with payment reference: %s", booking_id, reference)
        await self._notify_confirmation(updated)
        return format_booking(updated)

    async def cancel(self, booking_id: str, reason: str = None) -> Dict:
        booking = await self._get(booking_id)
        reason = clean_optional(reason) or "Payment failed or timeout"
        updated = await self._transition(
            booking,
            BookingStatus.CANCELLED,
            {"payment_status": PaymentStatus.FAILED.value, "cancellation_reason": reason},
        )
        logger.info("❌ Booking %s cancelled: %s", booking_id, reason)
        return format_booking(updated)

    async def update_status(self, booking_id: str, new_status) -> Dict:
        target = parse_booking_status(new_status)
        booking = await self._get(booking_id)
        updated = await self._transition(booking, target)
        return format_booking(updated)

    async def update_payment_status(self, booking_id: str, status, payment_reference: str = None) -> Dict:
        """Record a payment status.

        While the booking is pending or confirmed, "paid" forces confirmed and
        any other payment status forces pending. For bookings past that point
        (checked in, checked out, cancelled) only the payment status is written,
        so refunds can be recorded against finished stays.
        """
        payment_status = parse_payment_status(status)
        booking = await self._get(booking_id)
        current = parse_booking_status(booking["booking_status"])

        fields = {"payment_status": payment_status.value}
        payment_reference = clean_optional(payment_reference)
        if payment_reference:
            fields["payment_reference"] = payment_reference

        if current in PAYMENT_DRIVEN_STATUSES:
            target = BookingStatus.CONFIRMED if payment_status == PaymentStatus.PAID else BookingStatus.PENDING
            updated = await self._transition(booking, target, fields)
        else:
            updated = await self.db_ops.update_where(
                Collections.BOOKINGS,
                {"_id": booking["_id"], "booking_status": current.value},
                fields,
            )
            if updated is None:
                raise ConflictError("Booking was modified by another request, please retry")
        logger.info("💳 Booking %s payment status set to %s", booking_id, payment_status.value)
        return format_booking(updated)

    # ─── Lookups ─────────────────────────────────────────────────────────────

    async def get_booking(self, booking_id: str) -> Dict:
        return format_booking(await self._get(booking_id))

    async def list_guest_bookings(self, user: Dict) -> Dict:
        """Bookings made by the signed-in guest, matched by user id or email"""
        clauses = []
        if user.get("sub"):
            clauses.append({"user_id": user["sub"]})
        if user.get("email"):
            clauses.append({"guest_email": user["email"].lower()})
        if not clauses:
            return {"bookings": [], "count": 0}
        bookings = await self.db_ops.get_all(
            Collections.BOOKINGS,
            {"$or": clauses},
            limit=500,
            sort=[("created_at", -1)],
        )
        formatted = [format_booking(booking) for booking in bookings]
        return {"bookings": formatted, "count": len(formatted)}
