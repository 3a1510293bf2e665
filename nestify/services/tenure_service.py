from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
import logging
import secrets
import string

from ..auth.firebase_auth import firebase_auth
from ..core.exceptions import AuthServiceError, NestifyError, NotFoundError, friendly_message
from ..database.database_service import database_service
from ..database.collections import COLLECTIONS, hostel_collection
from ..models.database_models import PaymentStatus

logger = logging.getLogger(__name__)

REGISTRATION_PREFIX = "REG-"
REGISTRATION_ALPHABET = string.ascii_uppercase + string.digits
REGISTRATION_LENGTH = 6
MAX_REGISTRATION_ATTEMPTS = 5

# Keys added by DatabaseService when reading, never written back
_READ_ONLY_KEYS = ("_doc_id", "_path")


def generate_registration_number() -> str:
    """REG- followed by six upper-case letters/digits, e.g. REG-4KQ9ZT"""
    suffix = "".join(secrets.choice(REGISTRATION_ALPHABET) for _ in range(REGISTRATION_LENGTH))
    return f"{REGISTRATION_PREFIX}{suffix}"


def tenure_payment_status(bills: List[Dict[str, Any]]) -> str:
    """Overdue beats Pending beats Paid; a tenure with no bills counts as Paid"""
    statuses = {b.get("payment_status") for b in bills}
    if PaymentStatus.OVERDUE.value in statuses:
        return PaymentStatus.OVERDUE.value
    if PaymentStatus.PENDING.value in statuses:
        return PaymentStatus.PENDING.value
    return PaymentStatus.PAID.value


def strip_read_only(doc: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in doc.items() if k not in _READ_ONLY_KEYS}


class TenureService:
    def __init__(self):
        self.db = database_service
        self.auth = firebase_auth

    async def _registration_number_taken(self, registration_number: str) -> bool:
        success, matches, error = await self.db.query_collection_group(
            COLLECTIONS["tenures"],
            [("registration_number", "==", registration_number)],
            limit=1,
        )
        if not success:
            # Fall back to trusting the random space
            logger.warning(f"Could not verify registration number uniqueness: {error}")
            return False
        return len(matches) > 0

    async def pre_register(
        self,
        hostel_id: str,
        name: str,
        email: str,
        phone_number: str,
        room_id: str,
    ) -> Dict[str, Any]:
        """
        Create an unclaimed tenure record and its registration number.
        The tenure later claims it through signup with the same email.
        """
        success, room, _ = await self.db.get_document(hostel_collection(hostel_id, "rooms"), room_id)
        if not success or not room:
            raise NotFoundError("Room not found.")

        for _ in range(MAX_REGISTRATION_ATTEMPTS):
            registration_number = generate_registration_number()
            if not await self._registration_number_taken(registration_number):
                break
        else:
            raise NestifyError("Could not generate a unique registration number. Please try again.", status_code=500)

        now = datetime.now(timezone.utc)
        tenure_data = {
            "hostel_id": hostel_id,
            "room_id": room_id,
            "name": name,
            "email": email,
            "phone_number": phone_number,
            "registration_number": registration_number,
            "user_id": None,
            "created_at": now,
            "updated_at": now,
        }
        success, tenure_id, error = await self.db.create_document(hostel_collection(hostel_id, "tenures"), tenure_data)
        if not success:
            raise NestifyError(f"Failed to pre-register tenure: {error}", status_code=500)

        logger.info("Tenure pre-registered in hostel %s with %s", hostel_id, registration_number)
        return {"id": tenure_id, **tenure_data}

    async def get_tenure(self, hostel_id: str, tenure_id: str) -> Dict[str, Any]:
        success, tenure, _ = await self.db.get_document(hostel_collection(hostel_id, "tenures"), tenure_id)
        if not success or not tenure:
            raise NotFoundError("Tenure not found.")
        return tenure

    async def get_tenure_for_user(self, uid: str) -> Dict[str, Any]:
        """Claimed tenure record of a signed-in user, via the root tenures collection"""
        success, tenures, error = await self.db.query_documents(
            COLLECTIONS["tenures"],
            [("user_id", "==", uid)],
            limit=1,
        )
        if not success:
            raise NestifyError(f"Failed to load tenure: {error}", status_code=500)
        if not tenures:
            raise NotFoundError("No tenure record is linked to this account.")
        return tenures[0]

    async def update_tenure(self, hostel_id: str, tenure_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        tenure = await self.get_tenure(hostel_id, tenure_id)
        changes = {k: v for k, v in updates.items() if v is not None}
        if not changes:
            return tenure

        if "room_id" in changes:
            success, room, _ = await self.db.get_document(hostel_collection(hostel_id, "rooms"), changes["room_id"])
            if not success or not room:
                raise NotFoundError("Room not found.")

        email = changes.get("email")
        if email and tenure.get("user_id") and email != tenure.get("email"):
            # Claimed tenures sign in with this email
            try:
                await self.auth.update_user(tenure["user_id"], email=email)
            except Exception as e:
                raise AuthServiceError(friendly_message(e)) from e

        changes["updated_at"] = datetime.now(timezone.utc)
        operations = [{
            "op": "update",
            "collection": hostel_collection(hostel_id, "tenures"),
            "document_id": tenure_id,
            "data": changes,
        }]
        if tenure.get("user_id"):
            # Claimed tenures also have a lookup copy at tenures/{id}
            operations.append({
                "op": "set",
                "collection": COLLECTIONS["tenures"],
                "document_id": tenure_id,
                "data": changes,
                "merge": True,
            })

        success, error = await self.db.commit_batch(operations)
        if not success:
            raise NestifyError(f"Failed to update tenure: {error}", status_code=500)
        return {**tenure, **changes}

    async def delete_tenure(self, hostel_id: str, tenure_id: str) -> None:
        """Billing records and the auth identity are left in place"""
        tenure = await self.get_tenure(hostel_id, tenure_id)
        operations = [{"op": "delete", "collection": hostel_collection(hostel_id, "tenures"), "document_id": tenure_id}]
        if tenure.get("user_id"):
            operations.append({"op": "delete", "collection": COLLECTIONS["tenures"], "document_id": tenure_id})

        success, error = await self.db.commit_batch(operations)
        if not success:
            raise NestifyError(f"Failed to delete tenure: {error}", status_code=500)
        logger.info("Tenure %s removed from hostel %s", tenure.get("name"), hostel_id)

    async def list_tenures(self, hostel_id: str, bills: Optional[List[Dict[str, Any]]] = None) -> List[Dict[str, Any]]:
        """All tenures of a hostel; with bills given, each carries its derived payment_status"""
        success, tenures, error = await self.db.query_documents(hostel_collection(hostel_id, "tenures"))
        if not success:
            raise NestifyError(f"Failed to load tenures: {error}", status_code=500)

        if bills is not None:
            for tenure in tenures:
                tenure_bills = [b for b in bills if b.get("tenure_id") == tenure["id"]]
                tenure["payment_status"] = tenure_payment_status(tenure_bills)
        return tenures


tenure_service = TenureService()
