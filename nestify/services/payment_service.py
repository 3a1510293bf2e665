"""
Online rent payment through Razorpay.

1. ``create_payment_order``: the server creates an order for the tenure's
   oldest unpaid bill using the hostel admin's own Razorpay keys, and keeps
   an order id -> bill link under hostels/{hostel_id}/payment_orders.
2. The client opens Razorpay's hosted checkout with the returned key id and
   order id.
3. ``verify_and_capture``: the checkout callback is verified with the admin's
   secret and checked against the stored order link; the bill is then marked
   Paid and a payment record is written, both in one batch.
"""

from typing import Any, Dict, Tuple
from datetime import datetime, timezone
import logging

from ..core.config import assert_razorpay_credentials
from ..core.exceptions import NotFoundError, PaymentError
from ..database.database_service import database_service
from ..database.collections import hostel_collection
from ..models.database_models import PaymentStatus
from .billing_service import billing_service, bill_total
from .hostel_service import hostel_service
from .payment_gateway import RazorpayClient, verify_signature
from .tenure_service import tenure_service

logger = logging.getLogger(__name__)


class PaymentService:
    def __init__(self):
        self.db = database_service

    async def _admin_credentials(self, hostel_id: str) -> Tuple[Dict[str, Any], str, str]:
        hostel = await hostel_service.get_hostel(hostel_id)
        admin = await hostel_service.get_admin(hostel["admin_id"])
        key_id = admin.get("razorpay_key_id")
        secret_key = admin.get("razorpay_secret_key")
        try:
            assert_razorpay_credentials(key_id, secret_key)
        except RuntimeError as e:
            logger.warning("Hostel %s has no usable Razorpay credentials", hostel_id)
            raise PaymentError("Payment gateway is not configured by the hostel admin.") from e
        return hostel, key_id, secret_key

    async def create_payment_order(self, uid: str) -> Dict[str, Any]:
        tenure = await tenure_service.get_tenure_for_user(uid)
        hostel_id = tenure["hostel_id"]

        unpaid = await billing_service.unpaid_bills(hostel_id, tenure["id"])
        if not unpaid:
            raise NotFoundError("You have no pending bills.")
        bill = unpaid[0]

        hostel, key_id, secret_key = await self._admin_credentials(hostel_id)
        client = RazorpayClient(key_id, secret_key)
        order = await client.create_order(bill_total(bill))

        success, _, error = await self.db.create_document(
            hostel_collection(hostel_id, "payment_orders"),
            {
                "bill_id": bill["id"],
                "tenure_id": tenure["id"],
                "hostel_id": hostel_id,
                "amount": bill_total(bill),
                "created_at": datetime.now(timezone.utc),
            },
            document_id=order["id"],
        )
        if not success:
            logger.error("Could not store order %s for bill %s: %s", order["id"], bill["id"], error)
            raise PaymentError("Could not start the payment. Please try again.", status_code=500)

        logger.info("Created order %s for bill %s (tenure %s)", order["id"], bill["id"], tenure["id"])
        return {
            "order_id": order["id"],
            "amount": order["amount"],
            "currency": order["currency"],
            "key_id": key_id,
            "bill_id": bill["id"],
            "hostel_name": hostel.get("name"),
            "prefill": {
                "name": tenure.get("name"),
                "email": tenure.get("email"),
                "contact": tenure.get("phone_number"),
            },
        }

    async def verify_and_capture(
        self,
        uid: str,
        bill_id: str,
        razorpay_order_id: str,
        razorpay_payment_id: str,
        razorpay_signature: str,
    ) -> Dict[str, Any]:
        tenure = await tenure_service.get_tenure_for_user(uid)
        hostel_id = tenure["hostel_id"]

        bill = await billing_service.get_bill(hostel_id, bill_id)
        if bill.get("tenure_id") != tenure["id"]:
            raise NotFoundError("Bill not found.")

        _, _, secret_key = await self._admin_credentials(hostel_id)
        if not verify_signature(razorpay_order_id, razorpay_payment_id, razorpay_signature, secret_key):
            logger.warning("Signature mismatch for order %s (bill %s)", razorpay_order_id, bill_id)
            return {"status": "failure"}

        # The order must have been created for this bill
        success, order, _ = await self.db.get_document(hostel_collection(hostel_id, "payment_orders"), razorpay_order_id)
        if not success or order.get("bill_id") != bill_id or order.get("tenure_id") != tenure["id"]:
            logger.warning("Order %s is not linked to bill %s (tenure %s)", razorpay_order_id, bill_id, tenure["id"])
            raise PaymentError("This payment does not belong to the selected bill.")

        success, payment, _ = await self.db.get_document(hostel_collection(hostel_id, "payments"), razorpay_payment_id)
        if success and payment:
            if payment.get("billing_record_id") != bill_id:
                logger.warning("Payment %s already recorded for bill %s, refused for bill %s",
                               razorpay_payment_id, payment.get("billing_record_id"), bill_id)
                raise PaymentError("This payment does not belong to the selected bill.")
            logger.info("Payment %s already recorded, ignoring repeated capture", razorpay_payment_id)
            return {"status": "success", "already_paid": True}

        if bill.get("payment_status") == PaymentStatus.PAID.value:
            logger.info("Bill %s already paid, ignoring repeated capture of %s", bill_id, razorpay_payment_id)
            return {"status": "success", "already_paid": True}

        now = datetime.now(timezone.utc)
        success, error = await self.db.commit_batch([
            {
                "op": "update",
                "collection": hostel_collection(hostel_id, "billing_records"),
                "document_id": bill_id,
                "data": {"payment_status": PaymentStatus.PAID.value, "payment_date": now},
            },
            {
                # Keyed by the gateway payment id so a replayed callback cannot add a second record
                "op": "set",
                "collection": hostel_collection(hostel_id, "payments"),
                "document_id": razorpay_payment_id,
                "data": {
                    "amount": bill["total"],
                    "razorpay_order_id": razorpay_order_id,
                    "razorpay_payment_id": razorpay_payment_id,
                    "billing_record_id": bill_id,
                    "tenure_id": tenure["id"],
                    "hostel_id": hostel_id,
                    "created_at": now,
                },
            },
        ])
        if not success:
            logger.error("Payment %s verified but recording failed: %s", razorpay_payment_id, error)
            raise PaymentError("Payment verified but could not be recorded. Please contact your hostel admin.", status_code=500)

        logger.info("Payment %s captured for bill %s", razorpay_payment_id, bill_id)
        return {"status": "success", "already_paid": False}


payment_service = PaymentService()
