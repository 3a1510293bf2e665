from datetime import datetime, timedelta, timezone

import pytest

from nestify.core.exceptions import BillingError
from nestify.services import billing_service as billing_module
from nestify.services.billing_service import (
    CSV_HEADERS,
    bill_total,
    billing_service,
    split_rent,
)
from nestify.services.tenure_service import tenure_payment_status

BILLS = "hostels/h1/billing_records"


def seed_hostel(fake_db):
    fake_db.seed("hostels", "h1", {"name": "Sunrise Hostel", "location": "12 MG Road, Pune", "admin_id": "a1"})
    fake_db.seed("hostels/h1/rooms", "r1", {"hostel_id": "h1", "room_number": "101", "rent": 9000, "capacity": 2, "status": "Occupied"})
    fake_db.seed("hostels/h1/rooms", "r2", {"hostel_id": "h1", "room_number": "102", "rent": 1000, "capacity": 3, "status": "Occupied"})
    for tenure_id, name, room_id in [
        ("t1", "Asha", "r1"),
        ("t2", "Bilal", "r1"),
        ("t3", "Chen", "r2"),
        ("t4", "Dev", "r2"),
        ("t5", "Esha", "r2"),
        ("t6", "Farah", "gone"),
    ]:
        fake_db.seed("hostels/h1/tenures", tenure_id, {
            "hostel_id": "h1",
            "room_id": room_id,
            "name": name,
            "email": f"{name.lower()}@example.com",
            "registration_number": f"REG-00000{tenure_id[-1]}",
            "user_id": None,
        })


@pytest.mark.parametrize("rent,occupants", [
    (1000, 3),
    (9000, 2),
    (4999.99, 7),
    (0.05, 4),
    (12345.67, 1),
])
def test_split_rent_sums_exactly_to_rent(rent, occupants):
    shares = split_rent(rent, occupants)

    assert len(shares) == occupants
    assert sum(round(share * 100) for share in shares) == round(rent * 100)
    assert max(shares) - min(shares) <= 0.01 + 1e-9


def test_split_rent_gives_leftover_paise_to_first_occupants():
    assert split_rent(1000, 3) == [333.34, 333.33, 333.33]


def test_split_rent_treats_no_occupants_as_one():
    assert split_rent(500, 0) == [500.0]


def test_bill_total_is_rent_plus_electricity():
    assert bill_total({"rent_amount": 333.34, "electricity_bill": 120.5}) == 453.84
    assert bill_total({"rent_amount": 4500}) == 4500.0


def test_tenure_payment_status_precedence():
    assert tenure_payment_status([]) == "Paid"
    assert tenure_payment_status([{"payment_status": "Paid"}]) == "Paid"
    assert tenure_payment_status([{"payment_status": "Paid"}, {"payment_status": "Pending"}]) == "Pending"
    assert tenure_payment_status([{"payment_status": "Pending"}, {"payment_status": "Overdue"}]) == "Overdue"


@pytest.mark.asyncio
async def test_prepare_bill_entries_splits_rent_per_room(fake_db):
    seed_hostel(fake_db)

    entries = await billing_service.prepare_bill_entries("h1")
    by_tenure = {e["tenure_id"]: e for e in entries}

    # t6 points at a room that no longer exists
    assert set(by_tenure) == {"t1", "t2", "t3", "t4", "t5"}
    assert by_tenure["t1"]["rent_share"] == 4500.0
    assert by_tenure["t1"]["room_number"] == "101"
    assert sorted(by_tenure[t]["rent_share"] for t in ("t3", "t4", "t5")) == [333.33, 333.33, 333.34]
    assert all(e["electricity_bill"] == 0 for e in entries)


@pytest.mark.asyncio
async def test_generate_bills_writes_pending_records(fake_db):
    seed_hostel(fake_db)
    entries = [
        {"tenure_id": "t1", "tenure_name": "Asha", "rent_share": 4500, "electricity_bill": 250},
        {"tenure_id": "t2", "tenure_name": "Bilal", "rent_share": 4500, "electricity_bill": "0"},
    ]

    bill_ids = await billing_service.generate_bills("h1", entries, billing_period="2024-05")

    assert len(bill_ids) == 2
    bill = fake_db.doc(BILLS, bill_ids[0])
    assert bill["payment_status"] == "Pending"
    assert bill["payment_date"] is None
    assert bill["billing_period"] == "2024-05"
    assert bill_total(bill) == 4750.0
    assert bill["due_date"] > bill["created_at"]
    assert len(fake_db.batches) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("bad_value", [None, "", "abc", -5, float("nan")])
async def test_generate_bills_rejects_invalid_electricity_and_writes_nothing(fake_db, bad_value):
    entries = [
        {"tenure_id": "t1", "tenure_name": "Asha", "rent_share": 4500, "electricity_bill": 100},
        {"tenure_id": "t2", "tenure_name": "Bilal", "rent_share": 4500, "electricity_bill": bad_value},
    ]

    with pytest.raises(BillingError) as exc:
        await billing_service.generate_bills("h1", entries)

    assert exc.value.message == "Please enter a valid electricity bill for Bilal."
    assert fake_db.docs(BILLS) == []
    assert fake_db.batches == []


@pytest.mark.asyncio
async def test_generate_bills_requires_entries(fake_db):
    with pytest.raises(BillingError):
        await billing_service.generate_bills("h1", [])


@pytest.mark.asyncio
async def test_failed_batch_removes_bills_already_written(fake_db, monkeypatch):
    monkeypatch.setattr(billing_module, "MAX_BATCH_WRITES", 2)
    fake_db.fail_batch_calls = {2}
    entries = [
        {"tenure_id": f"t{i}", "tenure_name": f"Tenure {i}", "rent_share": 3000, "electricity_bill": 100}
        for i in range(5)
    ]

    with pytest.raises(BillingError) as exc:
        await billing_service.generate_bills("h1", entries)

    assert exc.value.status_code == 500
    assert fake_db.docs(BILLS) == []
    # first chunk written, then deleted again
    assert [op["op"] for op in fake_db.batches[-1]] == ["delete", "delete"]


@pytest.mark.asyncio
async def test_mark_as_paid_is_idempotent(fake_db):
    fake_db.seed(BILLS, "b1", {"tenure_id": "t1", "hostel_id": "h1", "rent_amount": 4500, "electricity_bill": 200, "payment_status": "Pending"})

    bill, changed = await billing_service.mark_as_paid("h1", "b1")
    first_paid_at = fake_db.doc(BILLS, "b1")["payment_date"]

    assert changed is True
    assert bill["payment_status"] == "Paid"
    assert first_paid_at is not None

    bill, changed = await billing_service.mark_as_paid("h1", "b1")
    assert changed is False
    assert fake_db.doc(BILLS, "b1")["payment_date"] == first_paid_at


@pytest.mark.asyncio
async def test_mark_overdue_bills_only_touches_pending_past_due(fake_db):
    now = datetime(2024, 6, 15, tzinfo=timezone.utc)
    fake_db.seed(BILLS, "late", {"payment_status": "Pending", "due_date": now - timedelta(days=1)})
    fake_db.seed(BILLS, "upcoming", {"payment_status": "Pending", "due_date": now + timedelta(days=3)})
    fake_db.seed(BILLS, "paid", {"payment_status": "Paid", "due_date": now - timedelta(days=20)})
    fake_db.seed("hostels/h2/billing_records", "other", {"payment_status": "Pending", "due_date": now - timedelta(days=5)})

    updated = await billing_service.mark_overdue_bills(now=now)

    assert updated == 2
    assert fake_db.doc(BILLS, "late")["payment_status"] == "Overdue"
    assert fake_db.doc(BILLS, "upcoming")["payment_status"] == "Pending"
    assert fake_db.doc(BILLS, "paid")["payment_status"] == "Paid"
    assert fake_db.doc("hostels/h2/billing_records", "other")["payment_status"] == "Overdue"


@pytest.mark.asyncio
async def test_export_csv_has_report_columns(fake_db):
    seed_hostel(fake_db)
    fake_db.seed(BILLS, "abcdef123456", {
        "tenure_id": "t1", "hostel_id": "h1", "rent_amount": 4500, "electricity_bill": 250,
        "payment_status": "Paid", "payment_date": datetime(2024, 5, 3, tzinfo=timezone.utc),
    })
    fake_db.seed(BILLS, "zz99", {
        "tenure_id": "t3", "hostel_id": "h1", "rent_amount": 333.34, "electricity_bill": 0,
        "payment_status": "Pending", "payment_date": None,
    })

    lines = (await billing_service.export_csv("h1")).split("\r\n")

    assert lines[0] == ",".join(CSV_HEADERS)
    assert lines[1] == "abcdef1,Asha,101,4500,250,4750.0,Paid,2024-05-03"
    assert lines[2] == "zz99,Chen,102,333.34,0,333.34,Pending,N/A"


@pytest.mark.asyncio
async def test_invoice_joins_tenure_room_and_hostel(fake_db):
    seed_hostel(fake_db)
    fake_db.seed(BILLS, "b1", {"tenure_id": "t2", "hostel_id": "h1", "rent_amount": 4500, "electricity_bill": 120, "payment_status": "Pending"})

    invoice = await billing_service.get_invoice("h1", "b1")

    assert invoice["invoice_number"] == "B1"
    assert invoice["tenure"]["name"] == "Bilal"
    assert invoice["room_number"] == "101"
    assert invoice["hostel"]["name"] == "Sunrise Hostel"
    assert invoice["total"] == 4620.0
