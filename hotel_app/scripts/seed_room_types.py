"""
Seed the default room catalogue

Usage: python -m hotel_app.scripts.seed_room_types
"""
import asyncio

from pydantic import ValidationError as PydanticValidationError

from hotel_app.config.database import DatabaseConfig
from hotel_app.models.room_type import RoomTypeCreate
from hotel_app.services.room_type_service import RoomTypeService
from hotel_app.utils.exceptions import ConflictError

DEFAULT_ROOM_TYPES = [
    {
        "slug": "standard",
        "name": "Standard Room",
        "description": "Comfortable room with a queen bed and city view.",
        "price_per_night": 450,
        "size": "24 m²",
        "bed_type": "Queen",
        "max_adults": 2,
        "max_children": 1,
        "total_rooms": 20,
        "amenities": ["Free Wi-Fi", "Air conditioning", "Flat-screen TV"],
    },
    {
        "slug": "deluxe",
        "name": "Deluxe Room",
        "description": "Spacious room with a king bed and work desk.",
        "price_per_night": 700,
        "size": "32 m²",
        "bed_type": "King",
        "max_adults": 2,
        "max_children": 2,
        "total_rooms": 12,
        "amenities": ["Free Wi-Fi", "Air conditioning", "Mini bar", "Work desk"],
        "perks": ["Breakfast included"],
    },
    {
        "slug": "executive-suite",
        "name": "Executive Suite",
        "description": "Separate living area, lounge access and premium amenities.",
        "price_per_night": 1200,
        "size": "55 m²",
        "bed_type": "King",
        "max_adults": 3,
        "max_children": 2,
        "total_rooms": 5,
        "amenities": ["Free Wi-Fi", "Air conditioning", "Mini bar", "Bathtub"],
        "perks": ["Breakfast included", "Lounge access", "Airport pickup"],
    },
]


async def seed_room_types(db: DatabaseConfig) -> int:
    """Insert any default room type that does not exist yet"""
    service = RoomTypeService(db)
    created = 0
    print("🌱 Seeding room types...")
    for data in DEFAULT_ROOM_TYPES:
        try:
            room_type = await service.create_room_type(RoomTypeCreate(**data))
        except ConflictError:
            print(f"⚠️  {data['slug']} already exists. Skipping...")
            continue
        except PydanticValidationError as e:
            print(f"❌ {data['slug']} is invalid: {e}")
            continue
        created += 1
        print(f"✅ Created {room_type['name']} ({room_type['total_rooms']} rooms)")
    print(f"\n🎉 Seeded {created} room type(s)")
    return created


async def main():
    db = DatabaseConfig()
    await db.connect_db()
    try:
        await db.ensure_indexes()
        await seed_room_types(db)
    finally:
        await db.close_db()


if __name__ == "__main__":
    asyncio.run(main())
