"""
Availability / status query layer - read-only aggregations over bookings and
rooms for the admin dashboard and front-desk tools.
"""
import asyncio
import math
import re
from typing import Dict, List, Optional

from hotel_app.config.database import DatabaseConfig, Collections
from hotel_app.config.settings import settings
from hotel_app.database.db_operations import DBOperations
from hotel_app.models.booking import BookingStatus
from hotel_app.models.room import RoomStatus
from hotel_app.services.booking_state import (
    ACTIVE_STAY_STATUSES,
    parse_booking_status,
    parse_payment_status,
)
from hotel_app.utils.helpers import day_window, format_booking, today_midnight


def expiring_today_query() -> Dict:
    """Active stays whose checkout falls on today"""
    start, end = day_window(today_midnight())
    return {
        "check_out": {"$gte": start, "$lt": end},
        "booking_status": {"$in": ACTIVE_STAY_STATUSES},
    }


class BookingQueries:

    def __init__(self, db: DatabaseConfig):
        self.db_ops = DBOperations(db)

    async def list_bookings(
        self,
        status: Optional[str] = None,
        payment_status: Optional[str] = None,
        search: Optional[str] = None,
        expiring_soon: bool = False,
        page: int = 1,
        limit: int = None,
    ) -> Dict:
        """Filtered, newest-first page of bookings plus pagination info"""
        page = max(page or 1, 1)
        limit = min(max(limit or settings.DEFAULT_PAGE_SIZE, 1), settings.MAX_PAGE_SIZE)

        query: Dict = {}
        if status:
            query["booking_status"] = parse_booking_status(status).value
        if payment_status:
            query["payment_status"] = parse_payment_status(payment_status).value
        if expiring_soon:
            # Replaces any explicit status filter: only guests still in house
            query.update(expiring_today_query())
        if search and search.strip():
            pattern = {"$regex": re.escape(search.strip()), "$options": "i"}
            query["$or"] = [
                {"guest_email": pattern},
                {"guest_first_name": pattern},
                {"guest_last_name": pattern},
                {"guest_phone": pattern},
            ]

        total = await self.db_ops.count(Collections.BOOKINGS, query)
        bookings = await self.db_ops.get_all(
            Collections.BOOKINGS,
            query,
            skip=(page - 1) * limit,
            limit=limit,
            sort=[("created_at", -1)],
        )
        return {
            "bookings": [format_booking(booking) for booking in bookings],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "total_pages": math.ceil(total / limit),
            },
        }

    async def stats(self) -> Dict:
        """Counts by booking status, naive revenue sum, and today's expiring stays.

        total_revenue adds up total_amount across every status group, so
        cancelled bookings are included.
        """
        groups, expiring_count = await asyncio.gather(
            self.db_ops.aggregate(Collections.BOOKINGS, [
                {
                    "$group": {
                        "_id": "$booking_status",
                        "count": {"$sum": 1},
                        "total_amount": {"$sum": "$total_amount"},
                    }
                }
            ]),
            self.db_ops.count(Collections.BOOKINGS, expiring_today_query()),
        )

        counts = {status.value: 0 for status in BookingStatus}
        counts["total"] = 0

        total_revenue = 0.0
        for group in groups:
            if group["_id"] in counts:
                counts[group["_id"]] = group["count"]
            counts["total"] += group["count"]
            total_revenue += group.get("total_amount") or 0
        return {"counts": counts, "total_revenue": total_revenue, "expiring_today": expiring_count}

    async def room_availability(self, room_type_slug: Optional[str] = None) -> List[Dict]:
        """Per room type: ceiling, active rooms created, rooms currently available"""
        query = {"is_active": True}
        if room_type_slug:
            query["slug"] = room_type_slug.strip().lower()
        room_types = await self.db_ops.get_all(Collections.ROOM_TYPES, query, limit=500, sort=[("name", 1)])

        async def _counts(room_type: Dict) -> Dict:
            type_id = str(room_type["_id"])
            created, available = await asyncio.gather(
                self.db_ops.count(Collections.ROOMS, {"room_type_id": type_id, "is_active": True}),
                self.db_ops.count(Collections.ROOMS, {
                    "room_type_id": type_id,
                    "is_active": True,
                    "status": RoomStatus.AVAILABLE.value,
                }),
            )
            return {
                "room_type_id": type_id,
                "slug": room_type["slug"],
                "name": room_type["name"],
                "total_rooms": room_type["total_rooms"],
                "created_rooms": created,
                "available_rooms": available,
            }

        return list(await asyncio.gather(*(_counts(room_type) for room_type in room_types)))
