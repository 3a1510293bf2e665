from fastapi import APIRouter, HTTPException, Depends, Path, status
from typing import List, Optional
from pydantic import BaseModel, EmailStr, Field
import logging

from ..auth.dependencies import get_admin_hostel
from ..core.exceptions import GENERIC_ERROR_MESSAGE, NestifyError, to_http_exception
from ..models.database_models import Tenure
from ..services.billing_service import billing_service
from ..services.tenure_service import tenure_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tenures", tags=["tenures"])

# Request Models
class PreRegisterTenureRequest(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr = Field(..., description="The tenure must sign up with this same email")
    phone_number: str = Field(..., min_length=10)
    room_id: str = Field(..., description="Room the tenure is assigned to")

class UpdateTenureRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None
    phone_number: Optional[str] = Field(None, min_length=10)
    room_id: Optional[str] = None

# API Endpoints

@router.post("/", response_model=Tenure, status_code=status.HTTP_201_CREATED)
async def pre_register_tenure(request: PreRegisterTenureRequest, hostel: dict = Depends(get_admin_hostel)):
    """Create an unclaimed tenure record; the response carries the registration number to hand out"""
    try:
        return await tenure_service.pre_register(
            hostel["id"],
            name=request.name,
            email=request.email,
            phone_number=request.phone_number,
            room_id=request.room_id,
        )
    except NestifyError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error pre-registering tenure: {str(e)}")
        raise HTTPException(status_code=500, detail=GENERIC_ERROR_MESSAGE)

@router.get("/", response_model=List[Tenure])
async def list_tenures(hostel: dict = Depends(get_admin_hostel)):
    """Tenures of the hostel with their payment status"""
    try:
        bills = await billing_service.list_bills(hostel["id"])
        return await tenure_service.list_tenures(hostel["id"], bills=bills)
    except NestifyError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error listing tenures: {str(e)}")
        raise HTTPException(status_code=500, detail=GENERIC_ERROR_MESSAGE)

@router.get("/{tenure_id}", response_model=Tenure)
async def get_tenure(tenure_id: str = Path(..., description="Tenure ID"), hostel: dict = Depends(get_admin_hostel)):
    try:
        return await tenure_service.get_tenure(hostel["id"], tenure_id)
    except NestifyError as e:
        raise to_http_exception(e)

@router.put("/{tenure_id}", response_model=Tenure)
async def update_tenure(
    request: UpdateTenureRequest,
    tenure_id: str = Path(..., description="Tenure ID"),
    hostel: dict = Depends(get_admin_hostel),
):
    try:
        return await tenure_service.update_tenure(hostel["id"], tenure_id, request.model_dump(exclude_none=True))
    except NestifyError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error updating tenure {tenure_id}: {str(e)}")
        raise HTTPException(status_code=500, detail=GENERIC_ERROR_MESSAGE)

@router.delete("/{tenure_id}", response_model=dict)
async def delete_tenure(tenure_id: str = Path(..., description="Tenure ID"), hostel: dict = Depends(get_admin_hostel)):
    try:
        await tenure_service.delete_tenure(hostel["id"], tenure_id)
        return {"success": True, "message": "Tenure removed."}
    except NestifyError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error deleting tenure {tenure_id}: {str(e)}")
        raise HTTPException(status_code=500, detail=GENERIC_ERROR_MESSAGE)
