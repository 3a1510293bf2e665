"""Read-only views for a signed-in tenure: dashboard, own bills, hostel notices."""

from fastapi import APIRouter, HTTPException, Depends
from typing import List
import logging

from ..auth.dependencies import require_tenure
from ..core.exceptions import GENERIC_ERROR_MESSAGE, NestifyError, to_http_exception
from ..models.database_models import BillingRecord, Notice
from ..services.billing_service import billing_service
from ..services.dashboard_service import dashboard_service
from ..services.notice_service import notice_service
from ..services.tenure_service import tenure_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tenure", tags=["tenure"])


@router.get("/dashboard", response_model=dict)
async def tenure_dashboard(current_user: dict = Depends(require_tenure)):
    try:
        return await dashboard_service.tenure_summary(current_user["uid"])
    except NestifyError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error building tenure dashboard: {str(e)}")
        raise HTTPException(status_code=500, detail=GENERIC_ERROR_MESSAGE)


@router.get("/bills", response_model=List[BillingRecord])
async def my_bills(current_user: dict = Depends(require_tenure)):
    try:
        tenure = await tenure_service.get_tenure_for_user(current_user["uid"])
        return await billing_service.list_bills(tenure["hostel_id"], tenure_id=tenure["id"])
    except NestifyError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error listing tenure bills: {str(e)}")
        raise HTTPException(status_code=500, detail=GENERIC_ERROR_MESSAGE)


@router.get("/notices", response_model=List[Notice])
async def hostel_notices(current_user: dict = Depends(require_tenure)):
    try:
        tenure = await tenure_service.get_tenure_for_user(current_user["uid"])
        return await notice_service.list_notices(tenure["hostel_id"])
    except NestifyError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error listing notices for tenure: {str(e)}")
        raise HTTPException(status_code=500, detail=GENERIC_ERROR_MESSAGE)
