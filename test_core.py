import pytest
from fastapi.testclient import TestClient
from firebase_admin import auth as firebase_admin_auth

from nestify.core import scheduler as scheduler_module
from nestify.core.config import assert_razorpay_credentials
from nestify.core.exceptions import (
    GENERIC_ERROR_MESSAGE,
    BillingError,
    NotFoundError,
    friendly_message,
    to_http_exception,
)
from nestify.database.collections import collection_id, hostel_collection
from nestify.services.billing_service import billing_service


# ──────────────────────────────────────────────────────────────────────────────
# Error translation
# ──────────────────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("code,expected", [
    ("EMAIL_EXISTS", "This email address is already in use by another account."),
    ("auth/email-already-exists", "This email address is already in use by another account."),
    ("WEAK_PASSWORD : Password should be at least 6 characters", "Password should be at least 6 characters."),
    ("INVALID_LOGIN_CREDENTIALS", "Invalid email or password."),
])
def test_known_auth_codes_are_translated(code, expected):
    assert friendly_message(code) == expected


def test_admin_sdk_duplicate_email_is_translated():
    error = firebase_admin_auth.EmailAlreadyExistsError("exists", None, None)

    assert friendly_message(error) == "This email address is already in use by another account."


def test_unknown_errors_get_generic_message():
    assert friendly_message(RuntimeError("socket closed")) == GENERIC_ERROR_MESSAGE
    assert friendly_message("SOMETHING_ODD") == GENERIC_ERROR_MESSAGE
    assert friendly_message(RuntimeError("x"), default="Login failed") == "Login failed"


def test_nestify_errors_pass_through():
    error = BillingError("Please enter a valid electricity bill for Asha.")

    assert friendly_message(error) == "Please enter a valid electricity bill for Asha."
    http_error = to_http_exception(error)
    assert http_error.status_code == 400
    assert to_http_exception(NotFoundError("Bill not found.")).status_code == 404


def test_placeholder_razorpay_credentials_are_refused():
    with pytest.raises(RuntimeError):
        assert_razorpay_credentials("YOUR_RAZORPAY_KEY_ID", "real_secret")
    with pytest.raises(RuntimeError):
        assert_razorpay_credentials(None, "real_secret")
    assert_razorpay_credentials("rzp_live_1", "real_secret")


# ──────────────────────────────────────────────────────────────────────────────
# Collection paths
# ──────────────────────────────────────────────────────────────────────────────

def test_hostel_collection_paths():
    assert hostel_collection("h1", "billing_records") == "hostels/h1/billing_records"
    assert collection_id("hostels/h1/billing_records") == "billing_records"
    with pytest.raises(ValueError):
        hostel_collection("h1", "admins")
    with pytest.raises(ValueError):
        hostel_collection("", "rooms")


# ──────────────────────────────────────────────────────────────────────────────
# Scheduler
# ──────────────────────────────────────────────────────────────────────────────

def test_overdue_job_runs_billing_sweep(monkeypatch):
    calls = []

    async def fake_sweep(now=None):
        calls.append(now)
        return 3

    monkeypatch.setattr(billing_service, "mark_overdue_bills", fake_sweep)

    scheduler_module.overdue_bills_job()

    assert calls == [None]


def test_scheduler_respects_disable_flag(monkeypatch):
    monkeypatch.setattr(scheduler_module.settings, "ENABLE_OVERDUE_SCAN", False)

    scheduler_module.start_scheduler()

    assert scheduler_module.scheduler.running is False
    assert scheduler_module.scheduler.get_job("overdue_bill_scan") is None


# ──────────────────────────────────────────────────────────────────────────────
# App
# ──────────────────────────────────────────────────────────────────────────────

def test_health_lists_loaded_routers():
    from nestify.main import app, failed_routers

    response = TestClient(app).get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["loaded_routers"] == 9
    assert failed_routers == []
