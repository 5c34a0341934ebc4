"""
Booking model and schemas
"""
from enum import Enum
from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List
from datetime import date


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class BookingSource(str, Enum):
    WEBSITE = "website"
    WALK_IN = "walk_in"
    AGENT = "agent"
    PHONE = "phone"


class AdditionalService(BaseModel):
    """Service line item, price snapshotted at booking time"""
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)


class BookingCreate(BaseModel):
    # Guest details
    guest_first_name: str = Field(..., min_length=1)
    guest_last_name: str = Field(..., min_length=1)
    guest_email: EmailStr
    guest_phone: str = Field(..., min_length=1)
    guest_country: str = Field(..., min_length=1)
    special_requests: Optional[str] = None

    # Room details; slug and name are a snapshot, not a live reference
    room_slug: str = Field(..., min_length=1)
    room_name: str = Field(..., min_length=1)
    room_image: Optional[str] = None
    price_per_night: float = Field(default=0, ge=0)
    number_of_rooms: int = Field(default=1, ge=1)
    room_number: Optional[str] = Field(None, description="Preferred room for walk-in bookings")

    # Dates
    check_in: date
    check_out: date
    nights: int = Field(..., ge=1)

    # Guests
    adults: int = Field(..., ge=1)
    children: int = Field(default=0, ge=0)
    total_guests: Optional[int] = Field(None, ge=1)

    additional_services: List[AdditionalService] = Field(default_factory=list)

    # Payment
    total_amount: float = Field(..., gt=0)
    payment_method: str = "card"
    payment_reference: Optional[str] = Field(None, description="External gateway reference, present once paid")

    # Source and status overrides (honoured for walk-in bookings only)
    booking_source: BookingSource = BookingSource.WEBSITE
    payment_status: Optional[PaymentStatus] = None
    booking_status: Optional[BookingStatus] = None

    @field_validator(
        "guest_first_name", "guest_last_name", "guest_phone", "guest_country", "room_slug", "room_name"
    )
    @classmethod
    def strip_required(cls, v: str):
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class BookingSummary(BaseModel):
    """Response returned by booking creation"""
    id: str
    booking_reference: str
    guest_name: str
    guest_email: str
    room_name: str
    room_number: Optional[str] = None
    check_in: str
    check_out: str
    nights: int
    total_amount: float
    booking_status: BookingStatus
    payment_status: PaymentStatus
    created_at: str


class BookingResponse(BaseModel):
    id: str
    booking_reference: str
    guest_name: str
    guest_email: str
    guest_phone: Optional[str] = None
    guest_country: Optional[str] = None
    room_slug: str
    room_name: str
    room_number: Optional[str] = None
    number_of_rooms: int = 1
    price_per_night: Optional[float] = None
    check_in: str
    check_out: str
    nights: int
    adults: int
    children: int = 0
    total_guests: Optional[int] = None
    additional_services: List[AdditionalService] = Field(default_factory=list)
    special_requests: Optional[str] = None
    total_amount: float
    payment_status: PaymentStatus
    payment_method: Optional[str] = None
    payment_reference: Optional[str] = None
    booking_status: BookingStatus
    booking_source: BookingSource
    cancellation_reason: Optional[str] = None
    cancelled_at: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class PaymentConfirmation(BaseModel):
    reference: str = Field(..., min_length=1)


class BookingCancel(BaseModel):
    reason: Optional[str] = None


class BookingStatusUpdate(BaseModel):
    booking_status: str


class PaymentStatusUpdate(BaseModel):
    payment_status: str = PaymentStatus.PAID.value
    payment_reference: Optional[str] = None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class BookingListResponse(BaseModel):
    bookings: List[BookingResponse]
    pagination: Pagination


class BookingCounts(BaseModel):
    total: int = 0
    pending: int = 0
    confirmed: int = 0
    checked_in: int = 0
    checked_out: int = 0
    cancelled: int = 0


class BookingStats(BaseModel):
    counts: BookingCounts
    # Naive sum over every status, cancelled included
    total_revenue: float
    # Confirmed or checked-in stays whose checkout is today
    expiring_today: int = 0


class GuestBookings(BaseModel):
    bookings: List[BookingResponse]
    count: int


class StatusChangeResponse(BaseModel):
    id: str
    booking_status: BookingStatus
    payment_status: PaymentStatus
    room_number: Optional[str] = None
