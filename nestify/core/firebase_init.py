import firebase_admin
from firebase_admin import credentials
import json
import logging
import os

from .config import settings

logger = logging.getLogger(__name__)

_firebase_initialized = False

def _load_credentials():
    """
    Build the service account credential.
    FIREBASE_SERVICE_ACCOUNT (inline JSON) wins over FIREBASE_SERVICE_ACCOUNT_PATH.
    Returns None when neither is available.
    """
    if settings.FIREBASE_SERVICE_ACCOUNT:
        return credentials.Certificate(json.loads(settings.FIREBASE_SERVICE_ACCOUNT))

    service_account_path = settings.FIREBASE_SERVICE_ACCOUNT_PATH
    if os.path.exists(service_account_path):
        return credentials.Certificate(service_account_path)

    return None

def initialize_firebase() -> bool:
    """
    Initialize Firebase Admin SDK if not already initialized.
    Returns True if successful, False otherwise.
    """
    global _firebase_initialized

    if _firebase_initialized or firebase_admin._apps:
        return True

    try:
        cred = _load_credentials()
        options = {'projectId': settings.FIREBASE_PROJECT_ID}

        if cred is None:
            # Emulators and GCP runtimes provide application default credentials
            logger.warning(
                "Service account not found at %s, falling back to application default credentials",
                settings.FIREBASE_SERVICE_ACCOUNT_PATH,
            )
            firebase_admin.initialize_app(options=options)
        else:
            firebase_admin.initialize_app(cred, options)

        _firebase_initialized = True
        logger.info("Firebase initialized for project %s", settings.FIREBASE_PROJECT_ID)
        return True

    except Exception as e:
        logger.error(f"Firebase initialization failed: {e}")
        return False

def is_firebase_available() -> bool:
    """Check if Firebase is available and initialized."""
    return _firebase_initialized or bool(firebase_admin._apps)

def get_firebase_status() -> dict:
    """Get Firebase initialization status for debugging."""
    return {
        "initialized": _firebase_initialized,
        "apps_count": len(firebase_admin._apps) if firebase_admin._apps else 0,
        "available": is_firebase_available()
    }
