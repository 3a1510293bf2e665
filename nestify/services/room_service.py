from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
import logging

from ..core.exceptions import NestifyError, NotFoundError
from ..database.database_service import database_service
from ..database.collections import hostel_collection
from ..models.database_models import RoomStatus

logger = logging.getLogger(__name__)


class RoomService:
    def __init__(self):
        self.db = database_service

    async def add_room(self, hostel_id: str, room_number: str, rent: float, capacity: int) -> Dict[str, Any]:
        """New rooms always start Available"""
        now = datetime.now(timezone.utc)
        room_data = {
            "hostel_id": hostel_id,
            "room_number": room_number,
            "rent": rent,
            "capacity": capacity,
            "status": RoomStatus.AVAILABLE.value,
            "created_at": now,
            "updated_at": now,
        }
        success, room_id, error = await self.db.create_document(hostel_collection(hostel_id, "rooms"), room_data)
        if not success:
            raise NestifyError(f"Failed to add room: {error}", status_code=500)

        logger.info("Room %s added to hostel %s", room_number, hostel_id)
        return {"id": room_id, **room_data}

    async def get_room(self, hostel_id: str, room_id: str) -> Dict[str, Any]:
        success, room, _ = await self.db.get_document(hostel_collection(hostel_id, "rooms"), room_id)
        if not success or not room:
            raise NotFoundError("Room not found.")
        return room

    async def update_room(self, hostel_id: str, room_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        room = await self.get_room(hostel_id, room_id)

        changes = {k: v for k, v in updates.items() if v is not None}
        if "status" in changes:
            changes["status"] = RoomStatus(changes["status"]).value
        if not changes:
            return room

        changes["updated_at"] = datetime.now(timezone.utc)
        success, error = await self.db.update_document(hostel_collection(hostel_id, "rooms"), room_id, changes)
        if not success:
            raise NestifyError(f"Failed to update room: {error}", status_code=500)
        return {**room, **changes}

    async def delete_room(self, hostel_id: str, room_id: str) -> None:
        # Tenures assigned to the room keep their room_id; nothing cascades
        room = await self.get_room(hostel_id, room_id)
        success, error = await self.db.delete_document(hostel_collection(hostel_id, "rooms"), room_id)
        if not success:
            raise NestifyError(f"Failed to delete room: {error}", status_code=500)
        logger.info("Room %s deleted from hostel %s", room.get("room_number"), hostel_id)

    async def list_rooms(self, hostel_id: str, tenures: Optional[List[Dict[str, Any]]] = None) -> List[Dict[str, Any]]:
        """Rooms of a hostel, each with its current occupants attached when tenures are given"""
        success, rooms, error = await self.db.query_documents(hostel_collection(hostel_id, "rooms"))
        if not success:
            raise NestifyError(f"Failed to load rooms: {error}", status_code=500)

        if tenures is not None:
            for room in rooms:
                occupants = [t for t in tenures if t.get("room_id") == room["id"]]
                room["occupants"] = [{"id": t["id"], "name": t.get("name")} for t in occupants]
                room["occupancy"] = len(occupants)

        rooms.sort(key=lambda r: str(r.get("room_number", "")))
        return rooms


room_service = RoomService()
