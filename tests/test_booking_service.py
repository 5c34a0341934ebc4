import asyncio
from datetime import date, timedelta

import pytest

from conftest import FailingNotifier, day, midnight
from hotel_app.config.database import Collections
from hotel_app.models.booking import BookingCreate, BookingStatus, PaymentStatus
from hotel_app.services.booking_service import (
    BookingService,
    derive_initial_statuses,
    resolve_stay_dates,
)
from hotel_app.utils.exceptions import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)


@pytest.fixture
async def deluxe(create_room_type, create_room):
    room_type = await create_room_type(slug="deluxe", total_rooms=5)
    await create_room("102", room_type)
    await create_room("101", room_type)
    return room_type


async def room_by_number(db_ops, room_number):
    return await db_ops.get_one(Collections.ROOMS, {"room_number": room_number})


class TestResolveStayDates:
    def test_nights_from_dates(self):
        check_in, check_out, nights = resolve_stay_dates(date.today() + timedelta(days=1),
                                                         date.today() + timedelta(days=4))
        assert nights == 3
        assert check_in == midnight(1)
        assert check_out == midnight(4)

    @pytest.mark.parametrize("days_ago", [1, 2])
    def test_recent_past_check_in_snaps_to_today(self, days_ago):
        check_in, _, nights = resolve_stay_dates(date.today() - timedelta(days=days_ago),
                                                 date.today() + timedelta(days=1))
        assert check_in == midnight(0)
        assert nights == 1

    def test_old_check_in_rejected(self):
        with pytest.raises(ValidationError, match="Check-in date cannot be in the past"):
            resolve_stay_dates(date.today() - timedelta(days=3), date.today() + timedelta(days=1))

    def test_check_out_must_follow_check_in(self):
        with pytest.raises(ValidationError, match="Check-out date must be after check-in date"):
            resolve_stay_dates(date.today() + timedelta(days=2), date.today() + timedelta(days=2))


class TestInitialStatuses:
    def test_gateway_reference_means_paid(self, booking_payload):
        booking = BookingCreate(**booking_payload(payment_reference="PSK-123"))
        assert derive_initial_statuses(booking) == (PaymentStatus.PAID, BookingStatus.CONFIRMED)

    def test_website_booking_waits_for_payment(self, booking_payload):
        booking = BookingCreate(**booking_payload(booking_status="checked_in", payment_status="paid"))
        assert derive_initial_statuses(booking) == (PaymentStatus.PENDING, BookingStatus.PENDING)

    def test_walk_in_defaults_to_paid_and_confirmed(self, booking_payload):
        booking = BookingCreate(**booking_payload(booking_source="walk_in"))
        assert derive_initial_statuses(booking) == (PaymentStatus.PAID, BookingStatus.CONFIRMED)

    def test_walk_in_honours_desk_statuses(self, booking_payload):
        booking = BookingCreate(**booking_payload(
            booking_source="walk_in", payment_status="pending", booking_status="checked_in"
        ))
        assert derive_initial_statuses(booking) == (PaymentStatus.PENDING, BookingStatus.CHECKED_IN)

    def test_walk_in_cannot_start_terminal(self, booking_payload):
        booking = BookingCreate(**booking_payload(booking_source="walk_in", booking_status="cancelled"))
        with pytest.raises(ValidationError):
            derive_initial_statuses(booking)


class TestCreateBooking:
    async def test_pending_booking_has_no_room(self, booking_service, deluxe, booking_payload):
        summary = await booking_service.create_booking(booking_payload())

        assert summary["booking_status"] == "pending"
        assert summary["payment_status"] == "pending"
        assert summary["room_number"] is None
        assert summary["booking_reference"] == f"NCH-{summary['id'][-8:].upper()}"
        assert summary["guest_name"] == "Ama Mensah"

    async def test_paid_booking_gets_lowest_room(self, booking_service, deluxe, booking_payload, db_ops):
        summary = await booking_service.create_booking(booking_payload(payment_reference="PSK-1"))

        assert summary["booking_status"] == "confirmed"
        assert summary["room_number"] == "101"
        room = await room_by_number(db_ops, "101")
        assert room["status"] == "occupied"
        assert room["current_booking_id"] == summary["id"]

    async def test_nights_recomputed_from_dates(self, booking_service, deluxe, booking_payload):
        summary = await booking_service.create_booking(booking_payload(nights=7))
        assert summary["nights"] == 2

    async def test_yesterday_check_in_stored_as_today(self, booking_service, deluxe, booking_payload, db_ops):
        summary = await booking_service.create_booking(booking_payload(check_in=day(-1), check_out=day(2), nights=3))

        assert summary["check_in"] == day(0)
        assert summary["nights"] == 2
        stored = await db_ops.get_by_id(Collections.BOOKINGS, summary["id"])
        assert stored["check_in"] == midnight(0)
        assert stored["nights"] == 2

    async def test_missing_fields_listed(self, booking_service, booking_payload):
        payload = booking_payload()
        del payload["guest_email"]
        del payload["room_slug"]
        with pytest.raises(ValidationError, match="Missing required fields: guest_email, room_slug"):
            await booking_service.create_booking(payload)

    async def test_zero_total_rejected(self, booking_service, booking_payload):
        with pytest.raises(ValidationError):
            await booking_service.create_booking(booking_payload(total_amount=0))

    async def test_total_guests_defaults_to_party_size(self, booking_service, deluxe, booking_payload):
        summary = await booking_service.create_booking(booking_payload(adults=2, children=1))
        booking = await booking_service.get_booking(summary["id"])
        assert booking["total_guests"] == 3

    async def test_walk_in_claims_preferred_room(self, booking_service, deluxe, booking_payload):
        summary = await booking_service.create_booking(
            booking_payload(booking_source="walk_in", room_number="102")
        )
        assert summary["room_number"] == "102"

    async def test_walk_in_falls_back_when_preferred_room_taken(
        self, booking_service, deluxe, booking_payload, db_ops
    ):
        room = await room_by_number(db_ops, "102")
        await db_ops.update(Collections.ROOMS, str(room["_id"]), {"status": "maintenance"})

        summary = await booking_service.create_booking(
            booking_payload(booking_source="walk_in", room_number="102")
        )
        assert summary["room_number"] == "101"

    async def test_signed_in_guest_linked(self, booking_service, deluxe, booking_payload):
        summary = await booking_service.create_booking(booking_payload(), user={"sub": "guest-1"})
        mine = await booking_service.list_guest_bookings({"sub": "guest-1"})
        assert [booking["id"] for booking in mine["bookings"]] == [summary["id"]]


class TestConfirmPayment:
    async def test_confirms_assigns_and_emails(self, booking_service, deluxe, booking_payload, notifier, db_ops):
        created = await booking_service.create_booking(booking_payload())

        booking = await booking_service.confirm_payment(created["id"], "PSK-999")

        assert booking["booking_status"] == "confirmed"
        assert booking["payment_status"] == "paid"
        assert booking["payment_reference"] == "PSK-999"
        assert booking["room_number"] == "101"
        assert (await room_by_number(db_ops, "101"))["status"] == "occupied"
        assert len(notifier.sent) == 1
        assert notifier.sent[0]["room_number"] == "101"
        assert notifier.sent[0]["booking_reference"] == created["booking_reference"]

    async def test_confirms_without_room_when_sold_out(self, booking_service, create_room_type, booking_payload):
        await create_room_type(slug="deluxe", total_rooms=1)
        created = await booking_service.create_booking(booking_payload())

        booking = await booking_service.confirm_payment(created["id"], "PSK-1")

        assert booking["booking_status"] == "confirmed"
        assert booking["room_number"] is None

    async def test_email_failure_does_not_undo_confirmation(self, db, allocator, deluxe, booking_payload):
        service = BookingService(db, allocator=allocator, notifier=FailingNotifier())
        created = await service.create_booking(booking_payload())

        booking = await service.confirm_payment(created["id"], "PSK-2")

        assert booking["booking_status"] == "confirmed"
        assert booking["room_number"] == "101"

    async def test_cancelled_booking_cannot_be_confirmed(self, booking_service, deluxe, booking_payload):
        created = await booking_service.create_booking(booking_payload())
        await booking_service.cancel(created["id"])

        with pytest.raises(InvalidTransitionError):
            await booking_service.confirm_payment(created["id"], "PSK-3")

    async def test_checked_in_guest_keeps_status(self, booking_service, deluxe, booking_payload):
        created = await booking_service.create_booking(booking_payload(
            booking_source="walk_in", booking_status="checked_in", payment_status="pending"
        ))

        booking = await booking_service.confirm_payment(created["id"], "PSK-4")

        assert booking["booking_status"] == "checked_in"
        assert booking["payment_status"] == "paid"

    async def test_unknown_booking(self, booking_service):
        with pytest.raises(NotFoundError):
            await booking_service.confirm_payment("64b000000000000000000fff", "PSK-5")
        with pytest.raises(NotFoundError):
            await booking_service.confirm_payment("not-an-id", "PSK-5")

    async def test_two_bookings_race_for_last_room(self, booking_service, create_room_type, create_room,
                                                   booking_payload):
        room_type = await create_room_type(slug="deluxe", total_rooms=1)
        await create_room("201", room_type)
        first = await booking_service.create_booking(booking_payload())
        second = await booking_service.create_booking(booking_payload(guest_email="kwame@example.com"))

        results = await asyncio.gather(
            booking_service.confirm_payment(first["id"], "PSK-A"),
            booking_service.confirm_payment(second["id"], "PSK-B"),
        )

        assert sorted(str(booking["room_number"]) for booking in results) == ["201", "None"]

    async def test_cancel_during_room_claim_leaves_room_free(self, booking_service, allocator, deluxe,
                                                             booking_payload, notifier, db_ops, monkeypatch):
        created = await booking_service.create_booking(booking_payload())
        claim_room = allocator.assign

        async def cancel_then_claim(booking, preferred_room=None):
            # The payment timeout lands between the status write and the room claim
            await booking_service.cancel(created["id"], "Payment timeout")
            return await claim_room(booking, preferred_room=preferred_room)

        monkeypatch.setattr(allocator, "assign", cancel_then_claim)

        booking = await booking_service.confirm_payment(created["id"], "PSK-LATE")

        assert booking["booking_status"] == "cancelled"
        assert booking["room_number"] is None
        stored = await db_ops.get_by_id(Collections.BOOKINGS, created["id"])
        assert stored["booking_status"] == "cancelled"
        assert stored.get("room_number") is None
        room = await room_by_number(db_ops, "101")
        assert room["status"] == "available"
        assert "current_booking_id" not in room
        assert notifier.sent == []


class TestCancel:
    async def test_cancel_releases_room(self, booking_service, deluxe, booking_payload, db_ops):
        created = await booking_service.create_booking(booking_payload(payment_reference="PSK-1"))

        booking = await booking_service.cancel(created["id"])

        assert booking["booking_status"] == "cancelled"
        assert booking["payment_status"] == "failed"
        assert booking["cancellation_reason"] == "Payment failed or timeout"
        assert booking["cancelled_at"] is not None
        room = await room_by_number(db_ops, "101")
        assert room["status"] == "available"
        assert "current_booking_id" not in room

    async def test_custom_reason(self, booking_service, deluxe, booking_payload):
        created = await booking_service.create_booking(booking_payload())
        booking = await booking_service.cancel(created["id"], "Guest closed the payment window")
        assert booking["cancellation_reason"] == "Guest closed the payment window"

    async def test_checked_in_booking_cannot_be_cancelled(self, booking_service, deluxe, booking_payload):
        created = await booking_service.create_booking(booking_payload(
            booking_source="walk_in", booking_status="checked_in"
        ))
        with pytest.raises(InvalidTransitionError):
            await booking_service.cancel(created["id"])


class TestUpdateStatus:
    async def test_stay_lifecycle(self, booking_service, deluxe, booking_payload, db_ops):
        created = await booking_service.create_booking(booking_payload(payment_reference="PSK-1"))

        checked_in = await booking_service.update_status(created["id"], "checked_in")
        assert checked_in["booking_status"] == "checked_in"
        assert (await room_by_number(db_ops, "101"))["status"] == "occupied"

        checked_out = await booking_service.update_status(created["id"], "checked_out")
        assert checked_out["booking_status"] == "checked_out"
        assert checked_out["room_number"] == "101"
        assert (await room_by_number(db_ops, "101"))["status"] == "available"

    async def test_check_in_assigns_room_if_missing(self, booking_service, create_room_type, create_room,
                                                    booking_payload):
        room_type = await create_room_type(slug="deluxe")
        created = await booking_service.create_booking(booking_payload(payment_reference="PSK-1"))
        assert created["room_number"] is None

        await create_room("301", room_type)
        booking = await booking_service.update_status(created["id"], "checked_in")

        assert booking["room_number"] == "301"

    async def test_pending_cannot_jump_to_checked_in(self, booking_service, deluxe, booking_payload):
        created = await booking_service.create_booking(booking_payload())
        with pytest.raises(InvalidTransitionError, match="pending → checked_in"):
            await booking_service.update_status(created["id"], "checked_in")

    async def test_terminal_status_is_final(self, booking_service, deluxe, booking_payload):
        created = await booking_service.create_booking(booking_payload())
        await booking_service.cancel(created["id"])
        with pytest.raises(InvalidTransitionError):
            await booking_service.update_status(created["id"], "pending")

    async def test_unknown_status(self, booking_service, deluxe, booking_payload):
        created = await booking_service.create_booking(booking_payload())
        with pytest.raises(ValidationError, match="Invalid booking status"):
            await booking_service.update_status(created["id"], "no_show")

    async def test_stale_read_is_a_conflict(self, booking_service, deluxe, booking_payload, db_ops):
        created = await booking_service.create_booking(booking_payload())
        stale = await db_ops.get_by_id(Collections.BOOKINGS, created["id"])
        await booking_service.cancel(created["id"])

        with pytest.raises(ConflictError, match="modified by another request"):
            await booking_service._transition(stale, BookingStatus.CONFIRMED)


class TestUpdatePaymentStatus:
    async def test_paid_confirms(self, booking_service, deluxe, booking_payload):
        created = await booking_service.create_booking(booking_payload())

        booking = await booking_service.update_payment_status(created["id"], "paid", "BANK-77")

        assert booking["booking_status"] == "confirmed"
        assert booking["payment_reference"] == "BANK-77"
        assert booking["room_number"] == "101"

    async def test_unpaid_returns_to_pending_and_frees_room(self, booking_service, deluxe, booking_payload, db_ops):
        created = await booking_service.create_booking(booking_payload(payment_reference="PSK-1"))

        booking = await booking_service.update_payment_status(created["id"], "refunded")

        assert booking["booking_status"] == "pending"
        assert booking["payment_status"] == "refunded"
        assert booking["room_number"] is None
        assert (await room_by_number(db_ops, "101"))["status"] == "available"

    async def test_refund_after_cancellation_keeps_status(self, booking_service, deluxe, booking_payload):
        created = await booking_service.create_booking(booking_payload())
        await booking_service.cancel(created["id"])

        booking = await booking_service.update_payment_status(created["id"], "refunded")

        assert booking["booking_status"] == "cancelled"
        assert booking["payment_status"] == "refunded"

    async def test_unknown_payment_status(self, booking_service, deluxe, booking_payload):
        created = await booking_service.create_booking(booking_payload())
        with pytest.raises(ValidationError, match="Invalid payment status"):
            await booking_service.update_payment_status(created["id"], "partially_paid")


class TestGuestBookings:
    async def test_matches_by_email(self, booking_service, deluxe, booking_payload):
        await booking_service.create_booking(booking_payload(guest_email="Ama.Mensah@Example.com"))
        await booking_service.create_booking(booking_payload(guest_email="someone@example.com"))

        mine = await booking_service.list_guest_bookings({"sub": "unknown", "email": "ama.mensah@example.com"})

        assert mine["count"] == 1

    async def test_identity_without_claims_sees_nothing(self, booking_service, deluxe, booking_payload):
        await booking_service.create_booking(booking_payload())
        assert await booking_service.list_guest_bookings({}) == {"bookings": [], "count": 0}

    async def test_stay_dates_render_as_calendar_days(self, booking_service, deluxe, booking_payload):
        created = await booking_service.create_booking(booking_payload())
        booking = await booking_service.get_booking(created["id"])
        assert booking["check_in"] == day(1)
        assert booking["check_out"] == day(3)
