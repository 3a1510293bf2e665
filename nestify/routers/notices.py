from fastapi import APIRouter, HTTPException, Depends, Query, status
from typing import List
from pydantic import BaseModel, Field
import logging

from ..auth.dependencies import get_admin_hostel
from ..core.exceptions import GENERIC_ERROR_MESSAGE, NestifyError, to_http_exception
from ..models.database_models import Notice
from ..services.notice_service import notice_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notices", tags=["notices"])


class CreateNoticeRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)


@router.post("/", response_model=Notice, status_code=status.HTTP_201_CREATED)
async def post_notice(request: CreateNoticeRequest, hostel: dict = Depends(get_admin_hostel)):
    """Broadcast a notice to every tenure of the hostel"""
    try:
        return await notice_service.post_notice(hostel["id"], request.title, request.content)
    except NestifyError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error posting notice: {str(e)}")
        raise HTTPException(status_code=500, detail=GENERIC_ERROR_MESSAGE)


@router.get("/", response_model=List[Notice])
async def list_notices(
    limit: int = Query(50, ge=1, le=100, description="Maximum number of notices"),
    hostel: dict = Depends(get_admin_hostel),
):
    try:
        return await notice_service.list_notices(hostel["id"], limit=limit)
    except NestifyError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error listing notices: {str(e)}")
        raise HTTPException(status_code=500, detail=GENERIC_ERROR_MESSAGE)
