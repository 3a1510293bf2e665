"""
Error types raised by Nestify services and the translation of backend error
codes into messages that can be shown to users as-is.
"""

from typing import Optional

from fastapi import HTTPException, status
from firebase_admin import auth as firebase_admin_auth

GENERIC_ERROR_MESSAGE = "An internal server error occurred."

# Firebase Auth error codes (Admin SDK, client SDK and Identity Toolkit REST)
FRIENDLY_AUTH_MESSAGES = {
    "auth/email-already-exists": "This email address is already in use by another account.",
    "auth/email-already-in-use": "This email address is already in use by another account.",
    "EMAIL_EXISTS": "This email address is already in use by another account.",
    "auth/invalid-email": "The email address is not valid.",
    "INVALID_EMAIL": "The email address is not valid.",
    "auth/weak-password": "Password should be at least 6 characters.",
    "WEAK_PASSWORD": "Password should be at least 6 characters.",
    "auth/invalid-password": "Password should be at least 6 characters.",
    "EMAIL_NOT_FOUND": "Invalid email or password.",
    "INVALID_PASSWORD": "Invalid email or password.",
    "INVALID_LOGIN_CREDENTIALS": "Invalid email or password.",
    "USER_DISABLED": "This account has been disabled. Please contact your hostel admin.",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "Too many attempts. Please try again later.",
}


class NestifyError(Exception):
    """Base error carrying a user-facing message and the HTTP status to use."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class NotFoundError(NestifyError):
    status_code = status.HTTP_404_NOT_FOUND


class ClaimError(NestifyError):
    """Tenure signup could not claim the pre-registration record."""


class BillingError(NestifyError):
    pass


class PaymentError(NestifyError):
    pass


class AuthServiceError(NestifyError):
    pass


def _error_code(error) -> Optional[str]:
    if isinstance(error, str):
        # REST errors look like "WEAK_PASSWORD : Password should be at least 6 characters"
        return error.split(":")[0].strip()
    if isinstance(error, firebase_admin_auth.EmailAlreadyExistsError):
        return "auth/email-already-exists"
    if isinstance(error, firebase_admin_auth.UserNotFoundError):
        return "EMAIL_NOT_FOUND"
    code = getattr(error, "code", None)
    return code if isinstance(code, str) else None


def friendly_message(error, default: str = GENERIC_ERROR_MESSAGE) -> str:
    """
    Translate a Firebase error (exception or error code) to user-facing text.
    NestifyError messages are already user-facing and pass through.
    """
    if isinstance(error, NestifyError):
        return error.message

    code = _error_code(error)
    if code and code in FRIENDLY_AUTH_MESSAGES:
        return FRIENDLY_AUTH_MESSAGES[code]

    if isinstance(error, ValueError) and str(error):
        # firebase_admin raises ValueError for malformed arguments (bad email, short password)
        return str(error)

    return default


def to_http_exception(exc: NestifyError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.message)
