"""
Booking confirmation emails over SMTP.

The booking core treats this as a best-effort collaborator: every failure is
raised as DependencyFailure and swallowed by the caller.
"""
import asyncio
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Dict

from hotel_app.config.settings import settings
from hotel_app.utils.exceptions import DependencyFailure
from hotel_app.utils.helpers import booking_reference

logger = logging.getLogger(__name__)


def build_confirmation_payload(booking: Dict) -> Dict:
    """Fixed data shape handed to the notifier"""
    return {
        "guest_first_name": booking.get("guest_first_name"),
        "guest_last_name": booking.get("guest_last_name"),
        "guest_email": booking.get("guest_email"),
        "guest_phone": booking.get("guest_phone"),
        "guest_country": booking.get("guest_country"),
        "room_name": booking.get("room_name"),
        "room_number": booking.get("room_number"),
        "check_in": booking.get("check_in"),
        "check_out": booking.get("check_out"),
        "nights": booking.get("nights"),
        "adults": booking.get("adults"),
        "children": booking.get("children", 0),
        "total_guests": booking.get("total_guests"),
        "number_of_rooms": booking.get("number_of_rooms", 1),
        "total_amount": booking.get("total_amount"),
        "booking_reference": booking_reference(booking["_id"]),
    }


def _format_day(value) -> str:
    return value.strftime("%A, %B %d, %Y") if hasattr(value, "strftime") else str(value)


def render_confirmation(payload: Dict) -> tuple:
    subject = f"Your Booking Confirmation - {payload['booking_reference']}"
    room_line = payload["room_name"]
    if payload.get("room_number"):
        room_line += f" (Room {payload['room_number']})"
    body = "\n".join([
        f"Dear {payload['guest_first_name']} {payload['guest_last_name']},",
        "",
        f"Thank you for choosing {settings.HOTEL_NAME}. Your stay is confirmed.",
        "",
        f"Booking reference: {payload['booking_reference']}",
        f"Room: {room_line}",
        f"Check-in: {_format_day(payload['check_in'])}",
        f"Check-out: {_format_day(payload['check_out'])}",
        f"Nights: {payload['nights']}",
        f"Guests: {payload['adults']} adult(s), {payload['children']} child(ren)",
        f"Total paid: {settings.CURRENCY} {payload['total_amount']:,.2f}",
        "",
        "We look forward to welcoming you.",
    ])
    return subject, body


class EmailNotifier:
    """Sends booking emails through the configured SMTP relay"""

    def __init__(self, host: str = None, port: int = None, username: str = None,
                 password: str = None, sender: str = None):
        self.host = host if host is not None else settings.SMTP_HOST
        self.port = port or settings.SMTP_PORT
        self.username = username if username is not None else settings.SMTP_USER
        self.password = password if password is not None else settings.SMTP_PASSWORD
        self.sender = sender or settings.SMTP_FROM

    @property
    def enabled(self) -> bool:
        return bool(self.host)

    def _send(self, to: str, subject: str, body: str) -> None:
        message = MIMEMultipart()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        message.attach(MIMEText(body, "plain", "utf-8"))

        if self.port == 465:
            server = smtplib.SMTP_SSL(self.host, self.port, timeout=30)
        else:
            server = smtplib.SMTP(self.host, self.port, timeout=30)
        with server:
            if self.port != 465:
                server.starttls()
            if self.username:
                server.login(self.username, self.password)
            server.sendmail(self.sender, [to], message.as_string())

    async def send_booking_confirmation(self, payload: Dict) -> None:
        if not self.enabled:
            logger.info("SMTP not configured, skipping confirmation email for %s", payload["booking_reference"])
            return
        subject, body = render_confirmation(payload)
        try:
            await asyncio.to_thread(self._send, payload["guest_email"], subject, body)
        except (smtplib.SMTPException, OSError) as exc:
            raise DependencyFailure(f"Failed to send confirmation email: {exc}") from exc
        logger.info("📧 Booking confirmation email sent to %s", payload["guest_email"])
