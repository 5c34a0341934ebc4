"""
Room type catalogue - admin CRUD plus the public listing with room counts
"""
import logging
from typing import Dict, List

from pymongo.errors import DuplicateKeyError

from hotel_app.config.database import DatabaseConfig, Collections
from hotel_app.database.db_operations import DBOperations
from hotel_app.models.room import RoomStatus
from hotel_app.models.room_type import RoomTypeCreate, RoomTypeUpdate
from hotel_app.utils.exceptions import ConflictError, NotFoundError, ValidationError
from hotel_app.utils.helpers import serialize_doc

logger = logging.getLogger(__name__)


class RoomTypeService:

    def __init__(self, db: DatabaseConfig):
        self.db_ops = DBOperations(db)

    async def _room_counts(self, room_type_id: str) -> Dict:
        created = await self.db_ops.count(Collections.ROOMS, {"room_type_id": room_type_id, "is_active": True})
        available = await self.db_ops.count(Collections.ROOMS, {
            "room_type_id": room_type_id,
            "is_active": True,
            "status": RoomStatus.AVAILABLE.value,
        })
        return {"created_rooms": created, "available_rooms": available}

    async def _format(self, doc: Dict) -> Dict:
        room_type = serialize_doc(dict(doc))
        room_type["id"] = room_type.pop("_id")
        room_type.update(await self._room_counts(room_type["id"]))
        return room_type

    async def _get(self, room_type_id: str) -> Dict:
        room_type = await self.db_ops.get_by_id(Collections.ROOM_TYPES, room_type_id)
        if not room_type or not room_type.get("is_active", True):
            raise NotFoundError("Room type not found")
        return room_type

    async def list_room_types(self) -> List[Dict]:
        room_types = await self.db_ops.get_all(
            Collections.ROOM_TYPES, {"is_active": True}, limit=500, sort=[("created_at", -1)]
        )
        return [await self._format(room_type) for room_type in room_types]

    async def get_room_type(self, room_type_id: str) -> Dict:
        return await self._format(await self._get(room_type_id))

    async def get_by_slug(self, slug: str) -> Dict:
        room_type = await self.db_ops.get_one(
            Collections.ROOM_TYPES, {"slug": slug.strip().lower(), "is_active": True}
        )
        if not room_type:
            raise NotFoundError("Room type not found")
        return await self._format(room_type)

    async def create_room_type(self, data: RoomTypeCreate) -> Dict:
        if await self.db_ops.get_one(Collections.ROOM_TYPES, {"slug": data.slug}):
            raise ConflictError("A room type with this slug already exists")

        document = data.model_dump()
        # Capacity defaults: guests = adults + children, adults fall back to guests
        if document["max_guests"] is None:
            document["max_guests"] = (document["max_adults"] or 2) + document["max_children"]
        if document["max_adults"] is None:
            document["max_adults"] = document["max_guests"]
        if document["max_adults"] > document["max_guests"]:
            raise ValidationError("Maximum adults cannot exceed maximum guests")
        document["is_active"] = True

        try:
            created = await self.db_ops.create(Collections.ROOM_TYPES, document)
        except DuplicateKeyError:
            raise ConflictError("A room type with this slug already exists")
        logger.info("✅ Room type %s created (%s rooms)", data.slug, data.total_rooms)
        return await self._format(created)

    async def update_room_type(self, room_type_id: str, data: RoomTypeUpdate) -> Dict:
        existing = await self._get(room_type_id)
        update_data = {key: value for key, value in data.model_dump(exclude_unset=True).items() if value is not None}
        if not update_data:
            raise ValidationError("No fields to update")

        slug = update_data.get("slug")
        if slug is not None:
            if not slug:
                raise ValidationError("Slug must not be blank")
            if slug != existing["slug"]:
                duplicate = await self.db_ops.get_one(
                    Collections.ROOM_TYPES, {"slug": slug, "_id": {"$ne": existing["_id"]}}
                )
                if duplicate:
                    raise ConflictError("A room type with this slug already exists")

        total_rooms = update_data.get("total_rooms")
        if total_rooms is not None:
            created = await self.db_ops.count(
                Collections.ROOMS, {"room_type_id": str(existing["_id"]), "is_active": True}
            )
            if total_rooms < created:
                raise ConflictError(
                    f"Cannot lower total rooms to {total_rooms}; {created} rooms of this type already exist"
                )

        max_adults = update_data.get("max_adults", existing.get("max_adults"))
        max_guests = update_data.get("max_guests", existing.get("max_guests"))
        if max_adults and max_guests and max_adults > max_guests:
            raise ValidationError("Maximum adults cannot exceed maximum guests")

        try:
            updated = await self.db_ops.update(Collections.ROOM_TYPES, str(existing["_id"]), update_data)
        except DuplicateKeyError:
            raise ConflictError("A room type with this slug already exists")
        logger.info("✅ Room type %s updated", room_type_id)
        return await self._format(updated)

    async def delete_room_type(self, room_type_id: str) -> None:
        """Soft delete"""
        existing = await self._get(room_type_id)
        await self.db_ops.update(Collections.ROOM_TYPES, str(existing["_id"]), {"is_active": False})
        logger.info("🗑️ Room type %s deactivated", existing["slug"])
