from fastapi import APIRouter, HTTPException, Depends, Path, status
from typing import List, Optional
from pydantic import BaseModel, Field
import logging

from ..auth.dependencies import get_admin_hostel
from ..core.exceptions import GENERIC_ERROR_MESSAGE, NestifyError, to_http_exception
from ..models.database_models import Room, RoomStatus
from ..services.room_service import room_service
from ..services.tenure_service import tenure_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/rooms", tags=["rooms"])

# Request Models
class CreateRoomRequest(BaseModel):
    room_number: str = Field(..., min_length=1, description="Room number or label, e.g. 101")
    rent: float = Field(..., gt=0, description="Monthly rent for the whole room")
    capacity: int = Field(..., ge=1, description="Maximum number of tenures")

class UpdateRoomRequest(BaseModel):
    room_number: Optional[str] = Field(None, min_length=1)
    rent: Optional[float] = Field(None, gt=0)
    capacity: Optional[int] = Field(None, ge=1)
    status: Optional[RoomStatus] = Field(None, description="Available, Occupied or Maintenance")

# API Endpoints

@router.post("/", response_model=Room, status_code=status.HTTP_201_CREATED)
async def add_room(request: CreateRoomRequest, hostel: dict = Depends(get_admin_hostel)):
    """Add a room to the admin's hostel"""
    try:
        return await room_service.add_room(hostel["id"], request.room_number, request.rent, request.capacity)
    except NestifyError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error adding room: {str(e)}")
        raise HTTPException(status_code=500, detail=GENERIC_ERROR_MESSAGE)

@router.get("/", response_model=List[dict])
async def list_rooms(hostel: dict = Depends(get_admin_hostel)):
    """Rooms of the hostel with their current occupants"""
    try:
        tenures = await tenure_service.list_tenures(hostel["id"])
        rooms = await room_service.list_rooms(hostel["id"], tenures=tenures)
        return [
            {k: v for k, v in room.items() if not k.startswith("_")}
            for room in rooms
        ]
    except NestifyError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error listing rooms: {str(e)}")
        raise HTTPException(status_code=500, detail=GENERIC_ERROR_MESSAGE)

@router.put("/{room_id}", response_model=Room)
async def update_room(
    request: UpdateRoomRequest,
    room_id: str = Path(..., description="Room ID"),
    hostel: dict = Depends(get_admin_hostel),
):
    try:
        updates = request.model_dump(exclude_none=True)
        if "status" in updates:
            updates["status"] = updates["status"].value
        return await room_service.update_room(hostel["id"], room_id, updates)
    except NestifyError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error updating room {room_id}: {str(e)}")
        raise HTTPException(status_code=500, detail=GENERIC_ERROR_MESSAGE)

@router.delete("/{room_id}", response_model=dict)
async def delete_room(room_id: str = Path(..., description="Room ID"), hostel: dict = Depends(get_admin_hostel)):
    try:
        await room_service.delete_room(hostel["id"], room_id)
        return {"success": True, "message": "Room deleted."}
    except NestifyError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error deleting room {room_id}: {str(e)}")
        raise HTTPException(status_code=500, detail=GENERIC_ERROR_MESSAGE)
