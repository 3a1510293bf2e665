"""
Authentication & account routes for Nestify.

Rules
- Login: email + password only (via Firebase REST). Returns id_token + role.
- Admin signup: creates the admin identity, admin profile and the hostel.
- Tenure signup: claims a pre-registered tenure record by registration number + email.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

import httpx
from fastapi import APIRouter, HTTPException, status, Depends

from ..auth.firebase_auth import firebase_auth
from ..auth.dependencies import get_current_user
from ..core.config import settings
from ..core.exceptions import GENERIC_ERROR_MESSAGE, NestifyError, friendly_message, to_http_exception
from ..models.user import AdminSignup, EmailPasswordLogin, PasswordChange, TenureSignup, UserRole
from ..services.hostel_service import hostel_service
from ..services.signup_service import signup_service
from ..services.tenure_service import tenure_service

logger = logging.getLogger("nestify.routers.auth")
router = APIRouter(prefix="/auth", tags=["authentication"])


# ──────────────────────────────────────────────────────────────────────────────
# Utilities
# ──────────────────────────────────────────────────────────────────────────────

def _redact_sensitive(d: Dict[str, Any]) -> Dict[str, Any]:
    redacted = dict(d or {})
    if "password" in redacted and redacted["password"] is not None:
        redacted["password"] = "***"
    return redacted

async def _sign_in_with_password(email: str, password: str) -> Dict[str, Any]:
    """
    Server-side password verification using Firebase REST API.
    Returns {idToken, refreshToken, expiresIn, localId, ...}
    """
    if not settings.FIREBASE_WEB_API_KEY:
        raise HTTPException(status_code=500, detail="Missing FIREBASE_WEB_API_KEY")
    url = (
        "https://identitytoolkit.googleapis.com/v1/accounts:signInWithPassword"
        f"?key={settings.FIREBASE_WEB_API_KEY}"
    )
    payload = {"email": email, "password": password, "returnSecureToken": True}
    async with httpx.AsyncClient(timeout=15.0) as client:
        resp = await client.post(url, json=payload, headers={"Content-Type": "application/json"})
    if resp.status_code != 200:
        code = (resp.json().get("error") or {}).get("message", "") if resp.content else ""
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=friendly_message(code, default="Invalid email or password."),
        )
    return resp.json()


# ──────────────────────────────────────────────────────────────────────────────
# Login
# ──────────────────────────────────────────────────────────────────────────────

@router.post("/login", response_model=dict)
async def login_email_password(body: EmailPasswordLogin) -> Dict[str, Any]:
    """Email + password login for admins and tenures; the role comes from custom claims."""
    try:
        logger.info("Login attempt: %s", _redact_sensitive(body.model_dump()))

        token_data = await _sign_in_with_password(body.email, body.password)
        uid = token_data.get("localId")
        if not uid:
            raise HTTPException(status_code=400, detail="Login failed: missing uid")

        decoded = await firebase_auth.verify_token(token_data.get("idToken"))
        role = (decoded or {}).get("role")

        return {
            "message": "login successful",
            "id_token": token_data.get("idToken"),
            "token_type": "Bearer",
            "refresh_token": token_data.get("refreshToken"),
            "expires_in": token_data.get("expiresIn", "3600"),
            "uid": uid,
            "email": body.email,
            "role": role,
        }

    except HTTPException:
        raise
    except Exception:
        logger.exception("Email/password login failed")
        raise HTTPException(status_code=400, detail="Login validation failed")


# ──────────────────────────────────────────────────────────────────────────────
# Signup
# ──────────────────────────────────────────────────────────────────────────────

@router.post("/signup/admin", response_model=dict, status_code=status.HTTP_201_CREATED)
async def signup_admin(body: AdminSignup) -> Dict[str, Any]:
    logger.info("Admin signup request: %s", _redact_sensitive(body.model_dump()))
    try:
        return await hostel_service.signup_admin(body)
    except NestifyError as e:
        raise to_http_exception(e)
    except Exception:
        logger.exception("Admin signup failed for %s", body.email)
        raise HTTPException(status_code=500, detail=GENERIC_ERROR_MESSAGE)


@router.post("/signup/tenure", response_model=dict, status_code=status.HTTP_201_CREATED)
async def signup_tenure(body: TenureSignup) -> Dict[str, Any]:
    """Claim a pre-registered tenure record and create the login for it."""
    logger.info("Tenure signup request: %s", _redact_sensitive(body.model_dump()))
    try:
        return await signup_service.complete_tenure_signup(body)
    except NestifyError as e:
        raise to_http_exception(e)
    except Exception:
        logger.exception("Tenure signup failed for %s", body.registration_number)
        raise HTTPException(status_code=500, detail=GENERIC_ERROR_MESSAGE)


# ──────────────────────────────────────────────────────────────────────────────
# Identity / Self-service
# ──────────────────────────────────────────────────────────────────────────────

@router.get("/me", response_model=dict)
async def get_current_user_info(current_user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    """Current identity plus the admin profile or tenure record behind it."""
    uid = current_user.get("uid")
    role = current_user.get("role")
    info: Dict[str, Any] = {
        "uid": uid,
        "email": current_user.get("email"),
        "role": role,
    }

    try:
        if role == UserRole.ADMIN.value:
            admin = await hostel_service.get_admin(uid)
            hostel = await hostel_service.get_hostel_for_admin(uid)
            info.update({
                "full_name": admin.get("full_name"),
                "phone_number": admin.get("phone_number"),
                "hostel_id": hostel["id"],
                "hostel_name": hostel.get("name"),
            })
        elif role == UserRole.TENURE.value:
            tenure = await tenure_service.get_tenure_for_user(uid)
            info.update({
                "name": tenure.get("name"),
                "phone_number": tenure.get("phone_number"),
                "tenure_id": tenure["id"],
                "hostel_id": tenure.get("hostel_id"),
                "room_id": tenure.get("room_id"),
                "registration_number": tenure.get("registration_number"),
            })
    except NestifyError as e:
        logger.warning("/auth/me could not load profile for uid=%s: %s", uid, e.message)
        info["error"] = "Could not load complete profile"

    return info


@router.patch("/change-password", response_model=dict)
async def change_own_password(
    body: PasswordChange,
    current_user: Dict[str, Any] = Depends(get_current_user),
) -> Dict[str, Any]:
    """Allow admins and tenures to change their own password."""
    try:
        await firebase_auth.update_user(current_user.get("uid"), password=body.new_password)
        return {"message": "Password updated."}
    except Exception as e:
        logger.exception("Failed to change password for uid=%s", current_user.get("uid"))
        raise HTTPException(status_code=400, detail=friendly_message(e, default="Failed to change password."))


@router.post("/logout", response_model=dict)
async def logout_user(current_user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    """Logout current user by revoking refresh tokens."""
    try:
        await firebase_auth.revoke_refresh_tokens(current_user.get("uid"))
        return {"message": "logged out successfully"}
    except Exception:
        logger.exception("Logout failed for uid=%s", current_user.get("uid"))
        raise HTTPException(status_code=400, detail="Logout failed")
