from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from .firebase_auth import firebase_auth
from ..core.exceptions import NestifyError, to_http_exception
from ..models.user import UserRole
from ..services.hostel_service import hostel_service
import logging

security = HTTPBearer()
logger = logging.getLogger(__name__)

_UNAUTHORIZED_HEADERS = {"WWW-Authenticate": "Bearer"}


async def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(security)) -> dict:
    """
    Decoded Firebase ID token claims of the caller (uid, email, role, ...).
    Raises 401 if the bearer token does not verify.
    """
    try:
        claims = await firebase_auth.verify_token(credentials.credentials)
    except Exception as e:
        logger.error("[Auth] Token check could not run: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication failed",
            headers=_UNAUTHORIZED_HEADERS,
        )

    if not claims:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers=_UNAUTHORIZED_HEADERS,
        )
    return claims


def _check_role(current_user: dict, role: UserRole) -> dict:
    user_role = current_user.get("role")
    if user_role != role.value:
        logger.warning("[Auth] uid=%s with role %r denied %s-only route", current_user.get("uid"), user_role, role.value)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"{role.value.capitalize()} access required. Current role: {user_role}",
        )
    return current_user


async def require_admin(current_user: dict = Depends(get_current_user)) -> dict:
    return _check_role(current_user, UserRole.ADMIN)


async def require_tenure(current_user: dict = Depends(get_current_user)) -> dict:
    return _check_role(current_user, UserRole.TENURE)


async def get_admin_hostel(current_user: dict = Depends(require_admin)) -> dict:
    """The hostel owned by the signed-in admin"""
    try:
        return await hostel_service.get_hostel_for_admin(current_user["uid"])
    except NestifyError as e:
        raise to_http_exception(e)
