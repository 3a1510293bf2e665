from typing import Any, Dict

from ..core.exceptions import NotFoundError
from ..models.database_models import PaymentStatus, RoomStatus
from .billing_service import billing_service, bill_total
from .hostel_service import hostel_service
from .notice_service import notice_service
from .room_service import room_service
from .tenure_service import tenure_service


class DashboardService:
    async def admin_summary(self, hostel_id: str) -> Dict[str, Any]:
        tenures = await tenure_service.list_tenures(hostel_id)
        rooms = await room_service.list_rooms(hostel_id)
        bills = await billing_service.list_bills(hostel_id)

        tenures_by_id = {t["id"]: t for t in tenures}
        rooms_by_id = {r["id"]: r for r in rooms}

        outstanding = []
        for bill in bills:
            if bill.get("payment_status") == PaymentStatus.PAID.value:
                continue
            tenure = tenures_by_id.get(bill.get("tenure_id")) or {}
            room = rooms_by_id.get(tenure.get("room_id")) or {}
            outstanding.append({
                "bill_id": bill["id"],
                "tenure_name": tenure.get("name"),
                "room_number": room.get("room_number"),
                "total": bill["total"],
                "payment_status": bill.get("payment_status"),
            })

        return {
            "total_tenures": len(tenures),
            "total_rooms": len(rooms),
            "occupied_rooms": sum(1 for r in rooms if r.get("status") == RoomStatus.OCCUPIED.value),
            "available_rooms": sum(1 for r in rooms if r.get("status") == RoomStatus.AVAILABLE.value),
            "total_revenue": round(sum(bill_total(b) for b in bills if b.get("payment_status") == PaymentStatus.PAID.value), 2),
            "pending_payments": outstanding,
        }

    async def tenure_summary(self, uid: str) -> Dict[str, Any]:
        tenure = await tenure_service.get_tenure_for_user(uid)
        hostel_id = tenure["hostel_id"]

        hostel = await hostel_service.get_hostel(hostel_id)
        try:
            room = await room_service.get_room(hostel_id, tenure.get("room_id", ""))
        except NotFoundError:
            room = None

        bills = await billing_service.list_bills(hostel_id, tenure_id=tenure["id"])
        unpaid = await billing_service.unpaid_bills(hostel_id, tenure["id"])
        pending = unpaid[0] if unpaid else None

        return {
            "tenure": {k: tenure.get(k) for k in ("id", "name", "email", "phone_number", "registration_number")},
            "hostel": {"id": hostel_id, "name": hostel.get("name"), "location": hostel.get("location")},
            "room": {"room_number": room.get("room_number"), "rent": room.get("rent")} if room else None,
            "pending_bill": pending,
            "billing_history": bills,
            "notices": await notice_service.list_notices(hostel_id, limit=5),
        }


dashboard_service = DashboardService()
