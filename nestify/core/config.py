# nestify/core/config.py
import os
from dotenv import load_dotenv

load_dotenv()

class Settings:
    FIREBASE_PROJECT_ID: str = os.getenv("FIREBASE_PROJECT_ID", "nestify-hostels")
    FIREBASE_WEB_API_KEY: str = os.getenv("FIREBASE_WEB_API_KEY", "")
    FIREBASE_SERVICE_ACCOUNT_PATH: str = os.getenv(
        "FIREBASE_SERVICE_ACCOUNT_PATH",
        "firebase-service-account.json",
    )
    # Inline service account JSON, takes precedence over the file path
    FIREBASE_SERVICE_ACCOUNT: str | None = os.getenv("FIREBASE_SERVICE_ACCOUNT")

    # Razorpay
    RAZORPAY_API_BASE: str = os.getenv("RAZORPAY_API_BASE", "https://api.razorpay.com/v1")
    RAZORPAY_TIMEOUT_SECONDS: float = float(os.getenv("RAZORPAY_TIMEOUT_SECONDS", "15"))
    PAYMENT_CURRENCY: str = os.getenv("PAYMENT_CURRENCY", "INR")

    # Billing
    BILL_DUE_DAYS: int = int(os.getenv("BILL_DUE_DAYS", "10"))
    ENABLE_OVERDUE_SCAN: bool = os.getenv("ENABLE_OVERDUE_SCAN", "true").lower() == "true"
    OVERDUE_SCAN_INTERVAL_MINUTES: int = int(os.getenv("OVERDUE_SCAN_INTERVAL_MINUTES", "60"))

    # Frontend URL used in checkout callbacks
    FRONTEND_URL: str = os.getenv("FRONTEND_URL", "http://localhost:9002")


settings = Settings()

# Written on admin signup until the admin saves real keys from settings
PLACEHOLDER_RAZORPAY_KEY_ID = "YOUR_RAZORPAY_KEY_ID"
PLACEHOLDER_RAZORPAY_SECRET_KEY = "YOUR_RAZORPAY_SECRET_KEY"


def assert_razorpay_credentials(key_id: str | None, secret_key: str | None):
    """Raise if an admin has not configured real Razorpay credentials."""
    if not key_id or not secret_key:
        raise RuntimeError("Razorpay credentials are not provided.")
    if key_id == PLACEHOLDER_RAZORPAY_KEY_ID or secret_key == PLACEHOLDER_RAZORPAY_SECRET_KEY:
        raise RuntimeError(
            "Razorpay credentials are still the defaults. "
            "Ask your hostel admin to configure them in settings."
        )
