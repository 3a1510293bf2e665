"""
Rent payment through the hostel admin's Razorpay account.

The client creates an order, opens Razorpay checkout with the returned key id
and order id, then posts the checkout callback fields to /payments/verify.
"""

from fastapi import APIRouter, HTTPException, Depends
from pydantic import BaseModel, Field
import logging

from ..auth.dependencies import require_tenure
from ..core.exceptions import GENERIC_ERROR_MESSAGE, NestifyError, to_http_exception
from ..services.payment_service import payment_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])


class VerifyPaymentRequest(BaseModel):
    bill_id: str
    razorpay_order_id: str = Field(..., min_length=1)
    razorpay_payment_id: str = Field(..., min_length=1)
    razorpay_signature: str = Field(..., min_length=1)


@router.post("/order", response_model=dict)
async def create_order(current_user: dict = Depends(require_tenure)):
    """Order for the tenure's oldest unpaid bill"""
    try:
        return await payment_service.create_payment_order(current_user["uid"])
    except NestifyError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error creating payment order for {current_user.get('uid')}: {str(e)}")
        raise HTTPException(status_code=500, detail=GENERIC_ERROR_MESSAGE)


@router.post("/verify", response_model=dict)
async def verify_payment(request: VerifyPaymentRequest, current_user: dict = Depends(require_tenure)):
    try:
        result = await payment_service.verify_and_capture(
            current_user["uid"],
            request.bill_id,
            request.razorpay_order_id,
            request.razorpay_payment_id,
            request.razorpay_signature,
        )
    except NestifyError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error verifying payment {request.razorpay_payment_id}: {str(e)}")
        raise HTTPException(status_code=500, detail=GENERIC_ERROR_MESSAGE)

    if result["status"] != "success":
        raise HTTPException(status_code=400, detail="Payment verification failed.")
    return result
