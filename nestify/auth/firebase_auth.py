from firebase_admin import auth
from typing import Optional
import logging

from ..core.firebase_init import initialize_firebase, is_firebase_available

logger = logging.getLogger(__name__)


class FirebaseAuth:
    """
    Async facade over firebase_admin.auth.

    Firebase is initialized lazily on first use so importing this module does
    not need credentials. Errors from user creation are re-raised unchanged so
    callers can translate their codes (e.g. EmailAlreadyExistsError).
    """

    def _ensure_initialized(self):
        if not is_firebase_available():
            if not initialize_firebase():
                raise Exception("Firebase initialization failed - Auth not available")

    async def verify_token(self, token: str) -> Optional[dict]:
        self._ensure_initialized()
        try:
            return auth.verify_id_token(token)
        except Exception as e:
            logger.warning(f"Token verification failed: {e}")
            return None

    async def create_user(self, email: str, password: str, display_name: str = None) -> dict:
        self._ensure_initialized()
        user = auth.create_user(
            email=email,
            password=password,
            display_name=display_name
        )
        return {
            "uid": user.uid,
            "email": user.email,
        }

    async def set_custom_claims(self, uid: str, claims: dict):
        self._ensure_initialized()
        try:
            auth.set_custom_user_claims(uid, claims)
        except Exception as e:
            raise Exception(f"Setting custom claims failed: {e}") from e

    async def update_user(self, uid: str, **kwargs):
        """Update user properties in Firebase Auth (email, password, display_name...)"""
        self._ensure_initialized()
        auth.update_user(uid, **kwargs)

    async def revoke_refresh_tokens(self, uid: str):
        self._ensure_initialized()
        auth.revoke_refresh_tokens(uid)


firebase_auth = FirebaseAuth()
