from typing import Any, Dict, List, Optional, Tuple
from datetime import datetime, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP
import csv
import io
import logging
import math
import uuid

from ..core.config import settings
from ..core.exceptions import BillingError, NestifyError, NotFoundError
from ..database.database_service import database_service
from ..database.collections import COLLECTIONS, hostel_collection
from ..models.database_models import PaymentStatus
from .hostel_service import hostel_service
from .room_service import room_service
from .tenure_service import tenure_service

logger = logging.getLogger(__name__)

# Firestore rejects batches with more than 500 writes
MAX_BATCH_WRITES = 500

CSV_HEADERS = ["Bill ID", "Tenure Name", "Room", "Rent", "Electricity", "Total", "Status", "Payment Date"]

UNPAID_STATUSES = (PaymentStatus.PENDING.value, PaymentStatus.OVERDUE.value)


def split_rent(rent: float, occupants: int) -> List[float]:
    """
    Split a room's rent evenly between its occupants.

    Works in paise; when the rent does not divide evenly the leftover paise go
    one each to the first occupants, so the shares always add up to the rent.
    """
    occupants = max(int(occupants or 1), 1)
    paise = int((Decimal(str(rent)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    base, remainder = divmod(paise, occupants)
    return [(base + (1 if i < remainder else 0)) / 100 for i in range(occupants)]


def bill_total(bill: Dict[str, Any]) -> float:
    return round(float(bill.get("rent_amount") or 0) + float(bill.get("electricity_bill") or 0), 2)


def _parse_electricity_bill(value: Any) -> Optional[float]:
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(amount) or math.isinf(amount) or amount < 0:
        return None
    return round(amount, 2)


def _format_date(value: Any) -> str:
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d")
    return "N/A"


def _due_sort_key(bill: Dict[str, Any]):
    due = bill.get("due_date") or bill.get("created_at")
    return (due is None, due or datetime.max.replace(tzinfo=timezone.utc))


def _chunks(items: List[Any], size: int):
    for start in range(0, len(items), size):
        yield items[start:start + size]


class BillingService:
    def __init__(self):
        self.db = database_service

    async def prepare_bill_entries(self, hostel_id: str) -> List[Dict[str, Any]]:
        """
        One draft entry per tenure assigned to an existing room, with the room's
        rent split among the tenures currently in it. Electricity starts at 0
        for the admin to fill in.
        """
        tenures = await tenure_service.list_tenures(hostel_id)
        rooms = {room["id"]: room for room in await room_service.list_rooms(hostel_id)}

        by_room: Dict[str, List[Dict[str, Any]]] = {}
        for tenure in tenures:
            by_room.setdefault(tenure.get("room_id"), []).append(tenure)

        entries = []
        for room_id, occupants in by_room.items():
            room = rooms.get(room_id)
            if not room:
                continue
            shares = split_rent(room.get("rent", 0), len(occupants))
            for tenure, share in zip(occupants, shares):
                entries.append({
                    "tenure_id": tenure["id"],
                    "tenure_name": tenure.get("name"),
                    "room_number": room.get("room_number"),
                    "rent_share": share,
                    "electricity_bill": 0,
                })
        return entries

    async def generate_bills(
        self,
        hostel_id: str,
        entries: List[Dict[str, Any]],
        billing_period: Optional[str] = None,
    ) -> List[str]:
        """
        Write one Pending billing record per entry.
        Every electricity charge is validated first; one bad entry writes nothing.
        Large runs are committed in batches of MAX_BATCH_WRITES; if a batch fails
        the bills already written by this run are deleted again.
        """
        if not entries:
            raise BillingError("There are no bills to generate.")

        now = datetime.now(timezone.utc)
        billing_period = billing_period or now.strftime("%Y-%m")
        due_date = now + timedelta(days=settings.BILL_DUE_DAYS)

        operations = []
        bill_ids = []
        for entry in entries:
            electricity_bill = _parse_electricity_bill(entry.get("electricity_bill"))
            if electricity_bill is None:
                name = entry.get("tenure_name") or entry.get("tenure_id")
                raise BillingError(f"Please enter a valid electricity bill for {name}.")

            bill_id = str(uuid.uuid4())
            bill_ids.append(bill_id)
            operations.append({
                "op": "set",
                "collection": hostel_collection(hostel_id, "billing_records"),
                "document_id": bill_id,
                "data": {
                    "tenure_id": entry["tenure_id"],
                    "hostel_id": hostel_id,
                    "rent_amount": float(entry["rent_share"]),
                    "electricity_bill": electricity_bill,
                    "payment_status": PaymentStatus.PENDING.value,
                    "payment_date": None,
                    "billing_period": billing_period,
                    "due_date": due_date,
                    "created_at": now,
                },
            })

        written = []
        for chunk in _chunks(operations, MAX_BATCH_WRITES):
            success, error = await self.db.commit_batch(chunk)
            if not success:
                await self._discard_bills(hostel_id, written)
                raise BillingError(f"Failed to generate bills: {error}", status_code=500)
            written.extend(op["document_id"] for op in chunk)

        logger.info("Generated %d bills for hostel %s (%s)", len(bill_ids), hostel_id, billing_period)
        return bill_ids

    async def _discard_bills(self, hostel_id: str, bill_ids: List[str]) -> None:
        collection = hostel_collection(hostel_id, "billing_records")
        deletes = [{"op": "delete", "collection": collection, "document_id": bill_id} for bill_id in bill_ids]
        for chunk in _chunks(deletes, MAX_BATCH_WRITES):
            success, error = await self.db.commit_batch(chunk)
            if not success:
                logger.error("Could not remove %d partially generated bills in hostel %s: %s", len(chunk), hostel_id, error)
                return
        if bill_ids:
            logger.warning("Removed %d partially generated bills in hostel %s", len(bill_ids), hostel_id)

    async def list_bills(
        self,
        hostel_id: str,
        tenure_id: Optional[str] = None,
        payment_status: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        filters = []
        if tenure_id:
            filters.append(("tenure_id", "==", tenure_id))
        if payment_status:
            filters.append(("payment_status", "==", payment_status))

        success, bills, error = await self.db.query_documents(
            hostel_collection(hostel_id, "billing_records"),
            filters,
        )
        if not success:
            raise NestifyError(f"Failed to load bills: {error}", status_code=500)

        for bill in bills:
            bill["total"] = bill_total(bill)
        return bills

    async def unpaid_bills(self, hostel_id: str, tenure_id: str) -> List[Dict[str, Any]]:
        """Pending and Overdue bills of a tenure, oldest due date first"""
        bills = await self.list_bills(hostel_id, tenure_id=tenure_id)
        unpaid = [b for b in bills if b.get("payment_status") in UNPAID_STATUSES]
        unpaid.sort(key=_due_sort_key)
        return unpaid

    async def get_bill(self, hostel_id: str, bill_id: str) -> Dict[str, Any]:
        success, bill, _ = await self.db.get_document(hostel_collection(hostel_id, "billing_records"), bill_id)
        if not success or not bill:
            raise NotFoundError("Bill not found.")
        bill["total"] = bill_total(bill)
        return bill

    async def mark_as_paid(self, hostel_id: str, bill_id: str) -> Tuple[Dict[str, Any], bool]:
        """
        Mark a bill Paid (manual collection by the admin).
        Returns (bill, changed); a bill that is already Paid is left as it is.
        """
        bill = await self.get_bill(hostel_id, bill_id)
        if bill.get("payment_status") == PaymentStatus.PAID.value:
            return bill, False

        updates = {
            "payment_status": PaymentStatus.PAID.value,
            "payment_date": datetime.now(timezone.utc),
        }
        success, error = await self.db.update_document(
            hostel_collection(hostel_id, "billing_records"),
            bill_id,
            updates,
        )
        if not success:
            raise BillingError(f"Failed to mark bill as paid: {error}", status_code=500)
        return {**bill, **updates}, True

    async def mark_overdue_bills(self, now: Optional[datetime] = None) -> int:
        """Flip every Pending bill past its due date to Overdue, across all hostels"""
        now = now or datetime.now(timezone.utc)
        success, bills, error = await self.db.query_collection_group(
            COLLECTIONS["billing_records"],
            [
                ("payment_status", "==", PaymentStatus.PENDING.value),
                ("due_date", "<", now),
            ],
        )
        if not success:
            logger.error(f"Overdue scan query failed: {error}")
            return 0

        operations = [{
            "op": "update",
            "collection": bill["_path"].rsplit("/", 1)[0],
            "document_id": bill["_doc_id"],
            "data": {"payment_status": PaymentStatus.OVERDUE.value},
        } for bill in bills]

        updated = 0
        for chunk in _chunks(operations, MAX_BATCH_WRITES):
            ok, error = await self.db.commit_batch(chunk)
            if ok:
                updated += len(chunk)
            else:
                logger.error(f"Failed to mark {len(chunk)} bills overdue: {error}")
        return updated

    async def export_csv(self, hostel_id: str) -> str:
        """Billing report with one row per bill"""
        bills = await self.list_bills(hostel_id)
        tenures = {t["id"]: t for t in await tenure_service.list_tenures(hostel_id)}
        rooms = {r["id"]: r for r in await room_service.list_rooms(hostel_id)}

        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\r\n")
        writer.writerow(CSV_HEADERS)
        for bill in bills:
            tenure = tenures.get(bill.get("tenure_id")) or {}
            room = rooms.get(tenure.get("room_id")) or {}
            writer.writerow([
                bill["id"][:7],
                tenure.get("name", ""),
                room.get("room_number", ""),
                bill.get("rent_amount"),
                bill.get("electricity_bill"),
                bill["total"],
                bill.get("payment_status"),
                _format_date(bill.get("payment_date")),
            ])
        return buffer.getvalue()

    async def get_invoice(self, hostel_id: str, bill_id: str) -> Dict[str, Any]:
        """A bill joined with its tenure, room and hostel"""
        bill = await self.get_bill(hostel_id, bill_id)
        hostel = await hostel_service.get_hostel(hostel_id)

        tenure: Dict[str, Any] = {}
        room: Dict[str, Any] = {}
        try:
            tenure = await tenure_service.get_tenure(hostel_id, bill["tenure_id"])
            room = await room_service.get_room(hostel_id, tenure.get("room_id", ""))
        except NotFoundError:
            logger.info("Invoice %s refers to a removed tenure or room", bill_id)

        return {
            "invoice_number": bill["id"][:7].upper(),
            "bill": bill,
            "hostel": {"name": hostel.get("name"), "location": hostel.get("location")},
            "tenure": {"name": tenure.get("name"), "email": tenure.get("email"), "phone_number": tenure.get("phone_number")},
            "room_number": room.get("room_number"),
            "rent_amount": bill.get("rent_amount"),
            "electricity_bill": bill.get("electricity_bill"),
            "total": bill["total"],
            "payment_status": bill.get("payment_status"),
            "payment_date": bill.get("payment_date"),
        }


billing_service = BillingService()
