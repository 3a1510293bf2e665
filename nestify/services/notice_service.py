from typing import Any, Dict, List
from datetime import datetime, timezone
import logging

from ..core.exceptions import NestifyError
from ..database.database_service import database_service
from ..database.collections import hostel_collection

logger = logging.getLogger(__name__)


class NoticeService:
    """Notices are broadcast to every tenure of the hostel; there is no per-tenure targeting"""

    def __init__(self):
        self.db = database_service

    async def post_notice(self, hostel_id: str, title: str, content: str) -> Dict[str, Any]:
        notice_data = {
            "hostel_id": hostel_id,
            "title": title,
            "content": content,
            "created_at": datetime.now(timezone.utc),
        }
        success, notice_id, error = await self.db.create_document(hostel_collection(hostel_id, "notices"), notice_data)
        if not success:
            raise NestifyError(f"Failed to post notice: {error}", status_code=500)

        logger.info(f"Notice posted to hostel {hostel_id}: {title}")
        return {"id": notice_id, **notice_data}

    async def list_notices(self, hostel_id: str, limit: int = 50) -> List[Dict[str, Any]]:
        """Newest first"""
        success, notices, error = await self.db.query_documents(
            hostel_collection(hostel_id, "notices"),
            order_by="created_at",
            descending=True,
            limit=limit,
        )
        if not success:
            raise NestifyError(f"Failed to load notices: {error}", status_code=500)
        return notices


notice_service = NoticeService()
