from firebase_admin import firestore

from ..core.firebase_init import initialize_firebase, is_firebase_available


def get_firestore_client():
    """Return the Firestore client of the default Firebase app."""
    if not is_firebase_available():
        if not initialize_firebase():
            raise Exception("Firebase initialization failed - Firestore not available")
    return firestore.client()
