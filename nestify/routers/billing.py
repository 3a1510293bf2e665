from fastapi import APIRouter, HTTPException, Depends, Path, Query, Response
from typing import Any, List, Optional
from pydantic import BaseModel, Field
from datetime import datetime, timezone
import logging

from ..auth.dependencies import get_admin_hostel
from ..core.exceptions import GENERIC_ERROR_MESSAGE, NestifyError, to_http_exception
from ..models.database_models import BillingRecord, PaymentStatus
from ..services.billing_service import billing_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/billing", tags=["billing"])

# Request Models
class BillEntry(BaseModel):
    tenure_id: str
    tenure_name: Optional[str] = None
    room_number: Optional[str] = None
    rent_share: float = Field(..., ge=0)
    # Left loose so a bad value is reported against the tenure's name
    electricity_bill: Any = None

class GenerateBillsRequest(BaseModel):
    entries: List[BillEntry] = Field(..., description="Entries from /billing/prepare with electricity filled in")
    billing_period: Optional[str] = Field(None, pattern=r"^\d{4}-\d{2}$", description="YYYY-MM, defaults to the current month")

# API Endpoints

@router.get("/prepare", response_model=List[dict])
async def prepare_bills(hostel: dict = Depends(get_admin_hostel)):
    """Draft bill entries, one per assigned tenure, with the room rent split among occupants"""
    try:
        return await billing_service.prepare_bill_entries(hostel["id"])
    except NestifyError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error preparing bills: {str(e)}")
        raise HTTPException(status_code=500, detail=GENERIC_ERROR_MESSAGE)

@router.post("/generate", response_model=dict)
async def generate_bills(request: GenerateBillsRequest, hostel: dict = Depends(get_admin_hostel)):
    try:
        bill_ids = await billing_service.generate_bills(
            hostel["id"],
            [entry.model_dump() for entry in request.entries],
            billing_period=request.billing_period,
        )
        return {
            "success": True,
            "bill_ids": bill_ids,
            "message": f"{len(bill_ids)} bill(s) generated.",
        }
    except NestifyError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error generating bills: {str(e)}")
        raise HTTPException(status_code=500, detail=GENERIC_ERROR_MESSAGE)

@router.get("/", response_model=List[BillingRecord])
async def list_bills(
    tenure_id: Optional[str] = Query(None, description="Only bills of this tenure"),
    payment_status: Optional[PaymentStatus] = Query(None, description="Pending, Paid or Overdue"),
    hostel: dict = Depends(get_admin_hostel),
):
    try:
        return await billing_service.list_bills(
            hostel["id"],
            tenure_id=tenure_id,
            payment_status=payment_status.value if payment_status else None,
        )
    except NestifyError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error listing bills: {str(e)}")
        raise HTTPException(status_code=500, detail=GENERIC_ERROR_MESSAGE)

@router.get("/export")
async def export_bills(hostel: dict = Depends(get_admin_hostel)):
    """Billing report as CSV"""
    try:
        content = await billing_service.export_csv(hostel["id"])
    except NestifyError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error exporting bills: {str(e)}")
        raise HTTPException(status_code=500, detail=GENERIC_ERROR_MESSAGE)

    filename = f"billing_report_{datetime.now(timezone.utc).strftime('%Y-%m-%d')}.csv"
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )

@router.post("/{bill_id}/mark-paid", response_model=dict)
async def mark_bill_paid(bill_id: str = Path(..., description="Bill ID"), hostel: dict = Depends(get_admin_hostel)):
    """Record a payment collected outside the gateway"""
    try:
        bill, changed = await billing_service.mark_as_paid(hostel["id"], bill_id)
        return {
            "success": True,
            "already_paid": not changed,
            "bill": BillingRecord.model_validate(bill).model_dump(mode="json"),
        }
    except NestifyError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error marking bill {bill_id} paid: {str(e)}")
        raise HTTPException(status_code=500, detail=GENERIC_ERROR_MESSAGE)

@router.get("/{bill_id}/invoice", response_model=dict)
async def get_invoice(bill_id: str = Path(..., description="Bill ID"), hostel: dict = Depends(get_admin_hostel)):
    try:
        invoice = await billing_service.get_invoice(hostel["id"], bill_id)
        invoice["bill"] = BillingRecord.model_validate(invoice["bill"]).model_dump(mode="json")
        return invoice
    except NestifyError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error building invoice {bill_id}: {str(e)}")
        raise HTTPException(status_code=500, detail=GENERIC_ERROR_MESSAGE)
