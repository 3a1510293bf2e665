from fastapi import APIRouter, HTTPException, Depends
import logging

from ..auth.dependencies import get_admin_hostel
from ..core.exceptions import GENERIC_ERROR_MESSAGE, NestifyError, to_http_exception
from ..services.dashboard_service import dashboard_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/", response_model=dict)
async def admin_dashboard(hostel: dict = Depends(get_admin_hostel)):
    """Occupancy, revenue and outstanding bills of the admin's hostel"""
    try:
        summary = await dashboard_service.admin_summary(hostel["id"])
        summary["hostel"] = {"id": hostel["id"], "name": hostel.get("name")}
        return summary
    except NestifyError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error building admin dashboard: {str(e)}")
        raise HTTPException(status_code=500, detail=GENERIC_ERROR_MESSAGE)
