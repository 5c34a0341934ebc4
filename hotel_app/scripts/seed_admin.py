"""
Seed script to create the first admin user for the hotel dashboard

Usage: python -m hotel_app.scripts.seed_admin
"""
import asyncio
import os
from datetime import datetime

from hotel_app.config.database import DatabaseConfig, Collections
from hotel_app.models.user import UserCreate
from hotel_app.utils.auth import hash_password

ADMIN_EMAIL = os.getenv("SEED_ADMIN_EMAIL", "admin@northerncapitalhotel.com")
ADMIN_PASSWORD = os.getenv("SEED_ADMIN_PASSWORD", "admin123")


async def seed_first_admin(db: DatabaseConfig) -> bool:
    """Create the first admin user; returns False when one already exists"""
    users = db.get_collection(Collections.USERS)

    print("🌱 Seeding first admin user...")

    existing_admin = await users.find_one({"email": ADMIN_EMAIL})
    if existing_admin:
        print("⚠️  Admin user already exists. Skipping...")
        return False

    admin = UserCreate(email=ADMIN_EMAIL, full_name="System Administrator", role="admin", password=ADMIN_PASSWORD)
    admin_doc = {
        "email": admin.email.lower(),
        "full_name": admin.full_name,
        "role": admin.role,
        "is_active": admin.is_active,
        "password": hash_password(admin.password),
        "created_at": datetime.utcnow(),
        "updated_at": datetime.utcnow()
    }
    await users.insert_one(admin_doc)
    print(f"✅ Created admin user: {admin_doc['email']}")
    print(f"   Role: {admin_doc['role']}")
    print("⚠️  IMPORTANT: Change the default password after first login!")
    return True


async def main():
    db = DatabaseConfig()
    await db.connect_db()
    try:
        await db.ensure_indexes()
        await seed_first_admin(db)
    finally:
        await db.close_db()


if __name__ == "__main__":
    asyncio.run(main())
