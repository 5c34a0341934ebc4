from fastapi import APIRouter, Depends, Query, status
from typing import Optional

from hotel_app.dependencies import get_booking_queries, get_booking_service
from hotel_app.models.booking import (
    BookingCancel,
    BookingCreate,
    BookingListResponse,
    BookingResponse,
    BookingStats,
    BookingStatusUpdate,
    BookingSummary,
    GuestBookings,
    PaymentConfirmation,
    PaymentStatusUpdate,
    StatusChangeResponse,
)
from hotel_app.services.booking_queries import BookingQueries
from hotel_app.services.booking_service import BookingService
from hotel_app.utils.auth import get_current_user, get_optional_user, require_staff

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.post("", response_model=BookingSummary, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking: BookingCreate,
    current_user: Optional[dict] = Depends(get_optional_user),
    service: BookingService = Depends(get_booking_service),
):
    """Create a booking from the website, an agent, or the front desk"""
    return await service.create_booking(booking, user=current_user)


@router.get("/mine", response_model=GuestBookings)
async def get_my_bookings(
    current_user: dict = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return await service.list_guest_bookings(current_user)


@router.get("", response_model=BookingListResponse)
async def list_bookings(
    booking_status: Optional[str] = Query(None, alias="status"),
    payment_status: Optional[str] = None,
    search: Optional[str] = None,
    expiring_soon: bool = False,
    page: int = 1,
    limit: Optional[int] = None,
    current_user: dict = Depends(require_staff),
    queries: BookingQueries = Depends(get_booking_queries),
):
    """Admin booking list with filters and pagination"""
    return await queries.list_bookings(
        status=booking_status,
        payment_status=payment_status,
        search=search,
        expiring_soon=expiring_soon,
        page=page,
        limit=limit,
    )


@router.get("/stats", response_model=BookingStats)
async def get_booking_stats(
    current_user: dict = Depends(require_staff),
    queries: BookingQueries = Depends(get_booking_queries),
):
    return await queries.stats()


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str,
    current_user: dict = Depends(require_staff),
    service: BookingService = Depends(get_booking_service),
):
    return await service.get_booking(booking_id)


@router.post("/{booking_id}/confirm-payment", response_model=BookingResponse)
async def confirm_payment(
    booking_id: str,
    payment: PaymentConfirmation,
    service: BookingService = Depends(get_booking_service),
):
    """Called by the payment callback once the gateway reports success"""
    return await service.confirm_payment(booking_id, payment.reference)


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_id: str,
    cancel: Optional[BookingCancel] = None,
    service: BookingService = Depends(get_booking_service),
):
    """Called when the payment fails or times out"""
    return await service.cancel(booking_id, cancel.reason if cancel else None)


@router.put("/{booking_id}/status", response_model=StatusChangeResponse)
async def update_booking_status(
    booking_id: str,
    update: BookingStatusUpdate,
    current_user: dict = Depends(require_staff),
    service: BookingService = Depends(get_booking_service),
):
    return await service.update_status(booking_id, update.booking_status)


@router.put("/{booking_id}/payment", response_model=StatusChangeResponse)
async def update_payment_status(
    booking_id: str,
    update: PaymentStatusUpdate,
    current_user: dict = Depends(require_staff),
    service: BookingService = Depends(get_booking_service),
):
    return await service.update_payment_status(booking_id, update.payment_status, update.payment_reference)
