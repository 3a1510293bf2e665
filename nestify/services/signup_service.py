"""
Tenure self-signup: claim a pre-registered tenure record.

The admin pre-registers a tenure (name, email, room) and hands out the
generated registration number. The tenure then signs up with that number and
the same email; this creates their Firebase identity and links it to the
record by writing ``user_id`` onto it.

The unclaimed check and the identity creation are separate calls, so two
concurrent signups for one registration number can both pass the check.
Nothing is rolled back if the final batch write fails after the identity has
been created.
"""

from typing import Any, Dict
from datetime import datetime, timezone
import logging

from ..auth.firebase_auth import firebase_auth
from ..core.exceptions import ClaimError, NestifyError, friendly_message
from ..database.database_service import database_service
from ..database.collections import COLLECTIONS
from ..models.user import TenureSignup, UserRole
from .tenure_service import strip_read_only

logger = logging.getLogger(__name__)

NO_MATCH_MESSAGE = "Invalid registration number or email. Please contact your hostel admin."
ALREADY_CLAIMED_MESSAGE = "This registration number has already been claimed by another account."


def _hostel_id_from_path(path: str) -> str:
    # hostels/{hostel_id}/tenures/{tenure_id}
    parts = path.split("/")
    return parts[1] if len(parts) >= 4 else ""


class SignupService:
    def __init__(self):
        self.db = database_service
        self.auth = firebase_auth

    async def find_pre_registration(self, registration_number: str, email: str) -> Dict[str, Any]:
        """First tenure in any hostel matching both registration number and email"""
        success, matches, error = await self.db.query_collection_group(
            COLLECTIONS["tenures"],
            [
                ("registration_number", "==", registration_number),
                ("email", "==", email),
            ],
        )
        if not success:
            raise NestifyError(f"Failed to look up registration: {error}", status_code=500)

        # The root tenures/{id} copies share the collection id; only hostel sub-collections count
        matches = [m for m in matches if m.get("_path", "").startswith(f"{COLLECTIONS['hostels']}/")]
        if not matches:
            raise ClaimError(NO_MATCH_MESSAGE, status_code=404)
        return matches[0]

    async def complete_tenure_signup(self, body: TenureSignup) -> Dict[str, Any]:
        tenure = await self.find_pre_registration(body.registration_number, body.email)

        if tenure.get("user_id"):
            logger.warning("Registration %s already claimed", body.registration_number)
            raise ClaimError(ALREADY_CLAIMED_MESSAGE, status_code=409)

        try:
            firebase_user = await self.auth.create_user(
                email=body.email,
                password=body.password,
                display_name=body.name,
            )
        except Exception as e:
            logger.error("Error creating identity for %s: %s", body.registration_number, e)
            raise ClaimError(friendly_message(e)) from e

        uid = firebase_user["uid"]
        tenure_id = tenure["_doc_id"]
        hostel_id = tenure.get("hostel_id") or _hostel_id_from_path(tenure["_path"])

        await self.auth.set_custom_claims(uid, {
            "role": UserRole.TENURE.value,
            "hostel_id": hostel_id,
            "tenure_id": tenure_id,
        })

        update_data = {
            "user_id": uid,
            "name": body.name,
            "phone_number": body.phone_number,
            "updated_at": datetime.now(timezone.utc),
        }
        success, error = await self.db.commit_batch([
            {
                "op": "update",
                "collection": tenure["_path"].rsplit("/", 1)[0],
                "document_id": tenure_id,
                "data": update_data,
            },
            {
                # Root copy so a signed-in tenure can be found by uid
                "op": "set",
                "collection": COLLECTIONS["tenures"],
                "document_id": tenure_id,
                "data": {**strip_read_only(tenure), **update_data},
            },
        ])
        if not success:
            logger.error("Identity %s created but linking tenure %s failed: %s", uid, tenure_id, error)
            raise NestifyError("An internal server error occurred.", status_code=500)

        logger.info("Tenure %s claimed by uid=%s", tenure_id, uid)
        return {
            "status": "success",
            "message": "Account created and linked successfully.",
            "uid": uid,
        }


signup_service = SignupService()
