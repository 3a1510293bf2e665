from fastapi import APIRouter, HTTPException, Depends
from typing import Optional
from pydantic import BaseModel, EmailStr, Field
import logging

from ..auth.dependencies import get_admin_hostel, require_admin
from ..core.config import PLACEHOLDER_RAZORPAY_KEY_ID
from ..core.exceptions import GENERIC_ERROR_MESSAGE, NestifyError, to_http_exception
from ..models.database_models import Hostel
from ..services.hostel_service import hostel_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settings", tags=["settings"])


class UpdateProfileRequest(BaseModel):
    full_name: Optional[str] = Field(None, min_length=2)
    email: Optional[EmailStr] = None

class UpdateHostelRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=2)
    location: Optional[str] = Field(None, min_length=10)

class PaymentCredentialsRequest(BaseModel):
    razorpay_key_id: str = Field(..., min_length=1)
    razorpay_secret_key: str = Field(..., min_length=1)


def _public_profile(admin: dict) -> dict:
    """Admin profile without the Razorpay secret"""
    key_id = admin.get("razorpay_key_id")
    return {
        "id": admin.get("id"),
        "full_name": admin.get("full_name"),
        "email": admin.get("email"),
        "phone_number": admin.get("phone_number"),
        "razorpay_key_id": key_id,
        "payment_gateway_configured": bool(key_id) and key_id != PLACEHOLDER_RAZORPAY_KEY_ID,
    }


@router.get("/profile", response_model=dict)
async def get_profile(current_user: dict = Depends(require_admin)):
    try:
        return _public_profile(await hostel_service.get_admin(current_user["uid"]))
    except NestifyError as e:
        raise to_http_exception(e)


@router.put("/profile", response_model=dict)
async def update_profile(request: UpdateProfileRequest, current_user: dict = Depends(require_admin)):
    try:
        admin = await hostel_service.update_admin_profile(
            current_user["uid"],
            full_name=request.full_name,
            email=request.email,
        )
        return _public_profile(admin)
    except NestifyError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error updating admin profile: {str(e)}")
        raise HTTPException(status_code=500, detail=GENERIC_ERROR_MESSAGE)


@router.get("/hostel", response_model=Hostel)
async def get_hostel(hostel: dict = Depends(get_admin_hostel)):
    return hostel


@router.put("/hostel", response_model=Hostel)
async def update_hostel(request: UpdateHostelRequest, current_user: dict = Depends(require_admin)):
    try:
        return await hostel_service.update_hostel(current_user["uid"], name=request.name, location=request.location)
    except NestifyError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error updating hostel: {str(e)}")
        raise HTTPException(status_code=500, detail=GENERIC_ERROR_MESSAGE)


@router.put("/payment", response_model=dict)
async def update_payment_credentials(request: PaymentCredentialsRequest, current_user: dict = Depends(require_admin)):
    """Save the admin's own Razorpay keys; tenures pay into this account"""
    try:
        await hostel_service.update_payment_credentials(
            current_user["uid"],
            request.razorpay_key_id,
            request.razorpay_secret_key,
        )
        return {"success": True, "message": "Payment settings saved."}
    except NestifyError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error saving payment credentials: {str(e)}")
        raise HTTPException(status_code=500, detail=GENERIC_ERROR_MESSAGE)
