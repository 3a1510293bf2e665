from typing import Any, Dict, Optional
from datetime import datetime, timezone
import logging

from ..auth.firebase_auth import firebase_auth
from ..core.config import PLACEHOLDER_RAZORPAY_KEY_ID, PLACEHOLDER_RAZORPAY_SECRET_KEY
from ..core.exceptions import AuthServiceError, NestifyError, NotFoundError, friendly_message
from ..database.database_service import database_service
from ..database.collections import COLLECTIONS
from ..models.user import AdminSignup, UserRole

logger = logging.getLogger(__name__)


class HostelService:
    """Admin accounts, the hostel each admin owns, and the admin's payment credentials"""

    def __init__(self):
        self.db = database_service
        self.auth = firebase_auth

    async def signup_admin(self, body: AdminSignup) -> Dict[str, Any]:
        """
        Create the admin identity, the admins/{uid} profile and the hostel it owns.

        Razorpay keys start as placeholders; the admin saves real ones from settings.
        """
        try:
            firebase_user = await self.auth.create_user(
                email=body.email,
                password=body.password,
                display_name=body.full_name,
            )
        except Exception as e:
            logger.warning("Admin identity creation failed for %s: %s", body.email, e)
            raise AuthServiceError(friendly_message(e)) from e

        uid = firebase_user["uid"]
        await self.auth.set_custom_claims(uid, {"role": UserRole.ADMIN.value})

        now = datetime.now(timezone.utc)
        admin_data = {
            "id": uid,
            "full_name": body.full_name,
            "email": body.email,
            "phone_number": body.phone_number,
            "razorpay_key_id": PLACEHOLDER_RAZORPAY_KEY_ID,
            "razorpay_secret_key": PLACEHOLDER_RAZORPAY_SECRET_KEY,
            "created_at": now,
            "updated_at": now,
        }
        success, _, error = await self.db.create_document(COLLECTIONS["admins"], admin_data, document_id=uid)
        if not success:
            raise NestifyError(f"Failed to create admin profile: {error}", status_code=500)

        hostel_data = {
            "name": body.hostel_name,
            "location": body.address,
            "admin_id": uid,
            "created_at": now,
            "updated_at": now,
        }
        success, hostel_id, error = await self.db.create_document(COLLECTIONS["hostels"], hostel_data)
        if not success:
            raise NestifyError(f"Failed to create hostel: {error}", status_code=500)

        logger.info("Registered admin uid=%s hostel_id=%s", uid, hostel_id)
        return {
            "message": "Your admin account has been created. Please log in.",
            "uid": uid,
            "hostel_id": hostel_id,
        }

    async def get_hostel_for_admin(self, admin_id: str) -> Dict[str, Any]:
        """The hostel owned by an admin (first match; one hostel per admin is not enforced)"""
        success, hostels, error = await self.db.query_documents(
            COLLECTIONS["hostels"],
            [("admin_id", "==", admin_id)],
            limit=1,
        )
        if not success:
            raise NestifyError(f"Failed to load hostel: {error}", status_code=500)
        if not hostels:
            raise NotFoundError("No hostel is registered for this admin.")
        return hostels[0]

    async def get_hostel(self, hostel_id: str) -> Dict[str, Any]:
        success, hostel, _ = await self.db.get_document(COLLECTIONS["hostels"], hostel_id)
        if not success or not hostel:
            raise NotFoundError("Hostel not found.")
        return hostel

    async def get_admin(self, admin_id: str) -> Dict[str, Any]:
        success, admin, _ = await self.db.get_document(COLLECTIONS["admins"], admin_id)
        if not success or not admin:
            raise NotFoundError("Admin profile not found.")
        return admin

    async def update_hostel(self, admin_id: str, name: Optional[str] = None, location: Optional[str] = None) -> Dict[str, Any]:
        hostel = await self.get_hostel_for_admin(admin_id)
        updates: Dict[str, Any] = {k: v for k, v in {"name": name, "location": location}.items() if v is not None}
        if not updates:
            return hostel

        updates["updated_at"] = datetime.now(timezone.utc)
        success, error = await self.db.update_document(COLLECTIONS["hostels"], hostel["_doc_id"], updates)
        if not success:
            raise NestifyError(f"Failed to update hostel: {error}", status_code=500)
        return {**hostel, **updates}

    async def update_admin_profile(self, admin_id: str, full_name: Optional[str] = None, email: Optional[str] = None) -> Dict[str, Any]:
        admin = await self.get_admin(admin_id)
        updates: Dict[str, Any] = {k: v for k, v in {"full_name": full_name, "email": email}.items() if v is not None}
        if not updates:
            return admin

        if email and email != admin.get("email"):
            try:
                await self.auth.update_user(admin_id, email=email)
            except Exception as e:
                raise AuthServiceError(friendly_message(e)) from e

        updates["updated_at"] = datetime.now(timezone.utc)
        success, error = await self.db.update_document(COLLECTIONS["admins"], admin_id, updates)
        if not success:
            raise NestifyError(f"Failed to update profile: {error}", status_code=500)
        return {**admin, **updates}

    async def update_payment_credentials(self, admin_id: str, razorpay_key_id: str, razorpay_secret_key: str) -> None:
        if not razorpay_key_id or not razorpay_secret_key:
            raise NestifyError("Key ID and Secret Key are required.")

        success, error = await self.db.update_document(
            COLLECTIONS["admins"],
            admin_id,
            {
                "razorpay_key_id": razorpay_key_id,
                "razorpay_secret_key": razorpay_secret_key,
                "updated_at": datetime.now(timezone.utc),
            },
        )
        if not success:
            raise NestifyError(f"Failed to save payment credentials: {error}", status_code=500)
        logger.info("Payment credentials updated for admin %s", admin_id)


hostel_service = HostelService()
