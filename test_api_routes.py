import hashlib
import hmac
from datetime import datetime, timezone

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from nestify.auth.dependencies import get_admin_hostel, get_current_user, require_tenure
from nestify.routers import auth, billing, notices, payments, rooms, settings, tenure_portal, tenures

HOSTEL = {"id": "h1", "name": "Sunrise Hostel", "location": "12 MG Road, Pune", "admin_id": "a1"}
TENURE_USER = {"uid": "uid-1", "role": "tenure", "email": "asha@example.com"}


def build_app():
    app = FastAPI()
    for module in (auth, billing, notices, payments, rooms, settings, tenure_portal, tenures):
        app.include_router(module.router)
    return app


@pytest.fixture
def admin_client(fake_db):
    fake_db.seed("hostels", "h1", {k: v for k, v in HOSTEL.items() if k != "id"})
    fake_db.seed("admins", "a1", {"id": "a1", "full_name": "Meera", "email": "meera@example.com",
                                  "razorpay_key_id": "rzp_test_key", "razorpay_secret_key": "rzp_secret"})
    app = build_app()
    app.dependency_overrides[get_admin_hostel] = lambda: HOSTEL
    app.dependency_overrides[get_current_user] = lambda: {"uid": "a1", "role": "admin"}
    return TestClient(app)


@pytest.fixture
def tenure_client(fake_db):
    app = build_app()
    app.dependency_overrides[get_current_user] = lambda: TENURE_USER
    app.dependency_overrides[require_tenure] = lambda: TENURE_USER
    return TestClient(app)


def test_new_room_is_available(admin_client):
    response = admin_client.post("/rooms/", json={"room_number": "101", "rent": 9000, "capacity": 2})

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "Available"
    assert body["hostel_id"] == "h1"


def test_room_list_shows_occupants(admin_client, fake_db):
    fake_db.seed("hostels/h1/rooms", "r1", {"hostel_id": "h1", "room_number": "101", "rent": 9000, "capacity": 2, "status": "Occupied"})
    fake_db.seed("hostels/h1/tenures", "t1", {"hostel_id": "h1", "room_id": "r1", "name": "Asha", "email": "asha@example.com",
                                              "registration_number": "REG-ABC123", "user_id": None})

    rooms_list = admin_client.get("/rooms/").json()

    assert rooms_list[0]["occupancy"] == 1
    assert rooms_list[0]["occupants"] == [{"id": "t1", "name": "Asha"}]
    assert "_path" not in rooms_list[0]


def test_pre_register_into_unknown_room_is_404(admin_client):
    response = admin_client.post("/tenures/", json={
        "name": "Asha", "email": "asha@example.com", "phone_number": "9876543210", "room_id": "missing",
    })

    assert response.status_code == 404
    assert response.json()["detail"] == "Room not found."


def test_tenure_list_carries_payment_status(admin_client, fake_db):
    fake_db.seed("hostels/h1/tenures", "t1", {"hostel_id": "h1", "room_id": "r1", "name": "Asha", "email": "asha@example.com",
                                              "registration_number": "REG-ABC123", "user_id": "uid-1"})
    fake_db.seed("hostels/h1/billing_records", "b1", {"tenure_id": "t1", "hostel_id": "h1", "rent_amount": 4500,
                                                      "electricity_bill": 0, "payment_status": "Overdue"})

    [tenure] = admin_client.get("/tenures/").json()

    assert tenure["payment_status"] == "Overdue"
    assert tenure["is_claimed"] is True


def test_generate_with_bad_electricity_reports_tenure(admin_client, fake_db):
    response = admin_client.post("/billing/generate", json={"entries": [
        {"tenure_id": "t1", "tenure_name": "Asha", "rent_share": 4500, "electricity_bill": "lots"},
    ]})

    assert response.status_code == 400
    assert response.json()["detail"] == "Please enter a valid electricity bill for Asha."
    assert fake_db.docs("hostels/h1/billing_records") == []


def test_bill_list_includes_total(admin_client, fake_db):
    fake_db.seed("hostels/h1/billing_records", "b1", {"tenure_id": "t1", "hostel_id": "h1", "rent_amount": 4500,
                                                      "electricity_bill": 320.5, "payment_status": "Pending"})

    [bill] = admin_client.get("/billing/").json()

    assert bill["total"] == 4820.5


def test_mark_paid_twice_reports_already_paid(admin_client, fake_db):
    fake_db.seed("hostels/h1/billing_records", "b1", {"tenure_id": "t1", "hostel_id": "h1", "rent_amount": 4500,
                                                      "electricity_bill": 0, "payment_status": "Pending"})

    first = admin_client.post("/billing/b1/mark-paid").json()
    second = admin_client.post("/billing/b1/mark-paid").json()

    assert first["already_paid"] is False
    assert second["already_paid"] is True
    assert second["bill"]["payment_status"] == "Paid"


def test_export_is_csv_download(admin_client):
    response = admin_client.get("/billing/export")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "attachment" in response.headers["content-disposition"]
    assert response.text.startswith("Bill ID,Tenure Name,Room,Rent,Electricity,Total,Status,Payment Date")


def test_notices_are_newest_first(admin_client, fake_db):
    fake_db.seed("hostels/h1/notices", "n1", {"hostel_id": "h1", "title": "Water", "content": "No water on Sunday",
                                              "created_at": datetime(2024, 5, 1, tzinfo=timezone.utc)})
    posted = admin_client.post("/notices/", json={"title": "Rent", "content": "Rent due on the 10th"})
    assert posted.status_code == 201

    titles = [n["title"] for n in admin_client.get("/notices/").json()]

    assert titles == ["Rent", "Water"]


def test_settings_profile_hides_secret(admin_client):
    profile = admin_client.get("/settings/profile").json()

    assert profile["razorpay_key_id"] == "rzp_test_key"
    assert profile["payment_gateway_configured"] is True
    assert "razorpay_secret_key" not in profile


def test_saving_payment_credentials(admin_client, fake_db):
    response = admin_client.put("/settings/payment", json={"razorpay_key_id": "rzp_live_1", "razorpay_secret_key": "s3cret"})

    assert response.status_code == 200
    assert fake_db.doc("admins", "a1")["razorpay_secret_key"] == "s3cret"


def test_tenure_cannot_use_admin_routes(tenure_client):
    response = tenure_client.get("/rooms/")

    assert response.status_code == 403


def test_tenure_signup_twice_conflicts(fake_db, fake_auth):
    fake_db.seed("hostels/h1/tenures", "t1", {"hostel_id": "h1", "room_id": "r1", "name": "Asha", "email": "asha@example.com",
                                              "registration_number": "REG-ABC123", "user_id": None})
    client = TestClient(build_app())
    body = {"registration_number": "REG-ABC123", "email": "asha@example.com", "password": "secret123",
            "name": "Asha", "phone_number": "9876543210"}

    first = client.post("/auth/signup/tenure", json=body)
    second = client.post("/auth/signup/tenure", json=body)

    assert first.status_code == 201
    assert first.json()["message"] == "Account created and linked successfully."
    assert second.status_code == 409


def test_admin_signup_creates_hostel_with_placeholder_keys(fake_db, fake_auth):
    client = TestClient(build_app())

    response = client.post("/auth/signup/admin", json={
        "full_name": "Meera Iyer", "email": "meera@example.com", "phone_number": "9876543210",
        "password": "secret123", "hostel_name": "Sunrise Hostel", "address": "12 MG Road, Pune",
    })

    assert response.status_code == 201
    uid = response.json()["uid"]
    assert fake_auth.claims[uid] == {"role": "admin"}
    assert fake_db.doc("admins", uid)["razorpay_key_id"] == "YOUR_RAZORPAY_KEY_ID"
    [hostel] = fake_db.docs("hostels")
    assert hostel["admin_id"] == uid
    assert hostel["location"] == "12 MG Road, Pune"


def test_payment_verify_with_bad_signature_is_400(tenure_client, fake_db):
    fake_db.seed("admins", "a1", {"id": "a1", "full_name": "Meera", "email": "meera@example.com",
                                  "razorpay_key_id": "rzp_test_key", "razorpay_secret_key": "rzp_secret"})
    fake_db.seed("hostels", "h1", {"name": "Sunrise Hostel", "location": "12 MG Road, Pune", "admin_id": "a1"})
    fake_db.seed("tenures", "t1", {"hostel_id": "h1", "room_id": "r1", "name": "Asha", "email": "asha@example.com",
                                   "registration_number": "REG-ABC123", "user_id": "uid-1"})
    fake_db.seed("hostels/h1/billing_records", "b1", {"tenure_id": "t1", "hostel_id": "h1", "rent_amount": 4500,
                                                      "electricity_bill": 0, "payment_status": "Pending"})
    fake_db.seed("hostels/h1/billing_records", "b2", {"tenure_id": "t1", "hostel_id": "h1", "rent_amount": 9000,
                                                      "electricity_bill": 0, "payment_status": "Pending"})
    fake_db.seed("hostels/h1/payment_orders", "order_1", {"bill_id": "b1", "tenure_id": "t1", "hostel_id": "h1", "amount": 4500.0})
    good = hmac.new(b"rzp_secret", b"order_1|pay_1", hashlib.sha256).hexdigest()

    bad = tenure_client.post("/payments/verify", json={
        "bill_id": "b1", "razorpay_order_id": "order_1", "razorpay_payment_id": "pay_1", "razorpay_signature": "x" + good[1:],
    })
    ok = tenure_client.post("/payments/verify", json={
        "bill_id": "b1", "razorpay_order_id": "order_1", "razorpay_payment_id": "pay_1", "razorpay_signature": good,
    })

    assert bad.status_code == 400
    assert ok.status_code == 200
    assert ok.json()["status"] == "success"
    statuses = {b["id"]: b["payment_status"] for b in tenure_client.get("/tenure/bills").json()}
    assert statuses == {"b1": "Paid", "b2": "Pending"}
    replay = tenure_client.post("/payments/verify", json={
        "bill_id": "b2", "razorpay_order_id": "order_1", "razorpay_payment_id": "pay_1", "razorpay_signature": good,
    })
    assert replay.status_code == 400
    assert replay.json()["detail"] == "This payment does not belong to the selected bill."
    assert fake_db.doc("hostels/h1/billing_records", "b2")["payment_status"] == "Pending"
