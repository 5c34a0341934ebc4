"""
Room inventory allocator - binds confirmed bookings to physical rooms and
manages the room inventory itself (creation bounded by the room type ceiling,
soft deletion, manual maintenance/reserved flags).
"""
import logging
from typing import Dict, List, Optional

from pymongo.errors import DuplicateKeyError

from hotel_app.config.database import DatabaseConfig, Collections
from hotel_app.database.db_operations import DBOperations
from hotel_app.models.room import RoomCreate, RoomStatus
from hotel_app.services.booking_state import (
    ADMIN_ROOM_STATUSES,
    ROOM_HOLDING_STATUSES,
    assert_room_transition,
    parse_room_status,
)
from hotel_app.utils.exceptions import CapacityError, ConflictError, NotFoundError, ValidationError
from hotel_app.utils.helpers import derive_floor, format_room, room_sort_key

logger = logging.getLogger(__name__)

# Lowest room number first; the key is zero padded at creation
ROOM_ORDER = [("sort_key", 1)]


class RoomAllocator:
    """Room Inventory Allocator"""

    def __init__(self, db: DatabaseConfig):
        self.db_ops = DBOperations(db)

    # ─── Assignment ──────────────────────────────────────────────────────────

    async def _claim(self, room_type_slug: str, booking_id: str, room_number: str = None) -> Optional[Dict]:
        """Atomically flip one available room of the type to occupied and return it"""
        query = {
            "room_type_slug": room_type_slug,
            "status": RoomStatus.AVAILABLE.value,
            "is_active": True,
        }
        if room_number:
            query["room_number"] = room_number
        return await self.db_ops.update_where(
            Collections.ROOMS,
            query,
            {"status": RoomStatus.OCCUPIED.value, "current_booking_id": booking_id},
            sort=ROOM_ORDER,
        )

    async def assign(self, booking: Dict, preferred_room: str = None) -> Optional[Dict]:
        """Bind the booking to the lowest-numbered available room of its type.

        A preferred room (walk-in desk choice) is tried first. Returns the
        claimed room, or None when the type has no free room, or when the
        booking was assigned or left its room-holding status concurrently.
        """
        booking_id = str(booking["_id"])
        room_type_slug = booking["room_slug"]

        room = None
        if preferred_room:
            room = await self._claim(room_type_slug, booking_id, room_number=preferred_room)
            if room is None:
                logger.warning(
                    "⚠️ Preferred room %s is not available for booking %s, falling back to auto-assignment",
                    preferred_room,
                    booking_id,
                )
        if room is None:
            room = await self._claim(room_type_slug, booking_id)
        if room is None:
            logger.warning(
                "⚠️ No available rooms found for type %s when assigning booking %s",
                room_type_slug,
                booking_id,
            )
            return None

        bound = await self.db_ops.update_where(
            Collections.BOOKINGS,
            {
                "_id": booking["_id"],
                "room_number": None,
                "booking_status": {"$in": [status.value for status in ROOM_HOLDING_STATUSES]},
            },
            {"room_number": room["room_number"]},
        )
        if bound is None:
            # Assigned concurrently, or moved out of a room-holding status (e.g. cancelled)
            await self.release(room["room_number"], booking_id=booking_id)
            logger.info(
                "Booking %s was assigned or released concurrently, returned room %s", booking_id, room["room_number"]
            )
            return None

        booking["room_number"] = room["room_number"]
        logger.info("🏨 Assigned room %s to booking %s and marked it occupied", room["room_number"], booking_id)
        return room

    async def release(self, room_number: str, booking_id: str = None) -> Optional[Dict]:
        """Return an occupied room to available.

        With a booking_id only the room held by that booking is freed. Rooms in
        maintenance are left alone.
        """
        query = {"room_number": room_number, "status": RoomStatus.OCCUPIED.value}
        if booking_id:
            query["current_booking_id"] = booking_id
        room = await self.db_ops.update_where(
            Collections.ROOMS,
            query,
            {"status": RoomStatus.AVAILABLE.value},
            unset_fields=["current_booking_id"],
        )
        if room is None:
            logger.info("Room %s was not occupied by booking %s, nothing to release", room_number, booking_id)
        else:
            logger.info("🔓 Released room %s", room_number)
        return room

    # ─── Inventory ───────────────────────────────────────────────────────────

    async def create_room(self, room: RoomCreate) -> Dict:
        """Create a room, refusing duplicates and enforcing the room type ceiling"""
        room_number = room.room_number.strip()
        if not room_number:
            raise ValidationError("Room number and room type are required")

        existing = await self.db_ops.get_one(Collections.ROOMS, {"room_number": room_number})
        if existing:
            raise ConflictError(f"Room {room_number} already exists")

        room_type = await self.db_ops.get_by_id(Collections.ROOM_TYPES, room.room_type_id)
        if not room_type or not room_type.get("is_active", True):
            raise NotFoundError("Room type not found")

        current_count = await self.db_ops.count(
            Collections.ROOMS, {"room_type_id": str(room_type["_id"]), "is_active": True}
        )
        if current_count >= room_type["total_rooms"]:
            raise CapacityError(
                f"Cannot add more rooms. Maximum of {room_type['total_rooms']} rooms allowed for "
                f"{room_type['name']}. Currently {current_count} rooms exist."
            )

        floor = room.floor if room.floor is not None else derive_floor(room_number)
        document = {
            "room_number": room_number,
            "sort_key": room_sort_key(room_number),
            "room_type_id": str(room_type["_id"]),
            "room_type_slug": room_type["slug"],
            "room_type_name": room_type["name"],
            "floor": floor,
            "status": RoomStatus.AVAILABLE.value,
            "notes": (room.notes or "").strip(),
            "is_active": True,
        }
        try:
            created = await self.db_ops.create(Collections.ROOMS, document)
        except DuplicateKeyError:
            raise ConflictError("A room with this number already exists")

        logger.info("✅ Room %s created for type %s", room_number, room_type["slug"])
        result = format_room(created)
        result["remaining_capacity"] = room_type["total_rooms"] - current_count - 1
        result["total_capacity"] = room_type["total_rooms"]
        return result

    async def _get_active_room(self, room_id: str) -> Dict:
        room = await self.db_ops.get_by_id(Collections.ROOMS, room_id)
        if not room or not room.get("is_active", True):
            raise NotFoundError("Room not found")
        return room

    async def delete_room(self, room_id: str) -> None:
        """Soft delete; occupied rooms are refused"""
        room = await self._get_active_room(room_id)
        if room["status"] == RoomStatus.OCCUPIED.value:
            raise ConflictError("Cannot delete an occupied room")

        deleted = await self.db_ops.update_where(
            Collections.ROOMS,
            {"_id": room["_id"], "is_active": True, "status": {"$ne": RoomStatus.OCCUPIED.value}},
            {"is_active": False},
        )
        if deleted is None:
            raise ConflictError("Room changed while deleting, please retry")
        logger.info("🗑️ Room %s deactivated", room["room_number"])

    async def set_status(self, room_id: str, status) -> Dict:
        """Manual status flag (maintenance / reserved / available)"""
        target = parse_room_status(status)
        if target not in ADMIN_ROOM_STATUSES:
            raise ValidationError("Room occupancy is managed through bookings")

        room = await self._get_active_room(room_id)
        current = RoomStatus(room["status"])
        if current == RoomStatus.OCCUPIED:
            raise ConflictError("Room is occupied; check the guest out to free it")
        assert_room_transition(current, target)

        updated = await self.db_ops.update_where(
            Collections.ROOMS,
            {"_id": room["_id"], "status": current.value},
            {"status": target.value},
        )
        if updated is None:
            raise ConflictError("Room changed while updating, please retry")
        logger.info("Room %s status %s → %s", room["room_number"], current.value, target.value)
        return format_room(updated)

    async def list_rooms(self, room_type_slug: str = None, status: str = None) -> List[Dict]:
        query = {"is_active": True}
        if room_type_slug:
            query["room_type_slug"] = room_type_slug
        if status:
            query["status"] = parse_room_status(status).value
        rooms = await self.db_ops.get_all(Collections.ROOMS, query, limit=1000, sort=ROOM_ORDER)
        return [format_room(room) for room in rooms]

    async def get_room(self, room_id: str) -> Dict:
        return format_room(await self._get_active_room(room_id))
