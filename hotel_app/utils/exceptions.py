"""
Domain errors raised by the booking core and mapped to HTTP responses in main.py
"""
from fastapi import status


class HotelError(Exception):
    """Base class for errors that carry a client-facing message"""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(HotelError):
    """Missing or malformed input, bad date ordering, unknown enum value"""
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(HotelError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(HotelError):
    """Duplicates, occupied rooms, concurrent modification"""
    status_code = status.HTTP_409_CONFLICT


class CapacityError(ConflictError):
    """Room-type ceiling reached"""


class InvalidTransitionError(ConflictError):
    """Status change not present in the transition table"""


class AuthenticationError(HotelError):
    status_code = status.HTTP_401_UNAUTHORIZED


class PermissionDeniedError(HotelError):
    status_code = status.HTTP_403_FORBIDDEN


class DependencyFailure(Exception):
    """An external collaborator (email, payment gateway) failed.

    Never surfaced to the caller; the primary state change stands.
    """
