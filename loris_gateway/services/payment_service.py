import json
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

from loris_gateway.adapters.implementations.payments.adapter import MpesaAdapter, round_amount
from loris_gateway.core.exceptions import ValidationError
from loris_gateway.core.logging import get_logger
from loris_gateway.domain.models.payment import (
    CallbackNotification,
    PaymentInitiationResult,
    PaymentRequest,
    StatusRequest,
)

logger = get_logger(__name__)


def parse_callback(data: Any) -> Optional[CallbackNotification]:
    """
    Extract the STK callback fields from a Daraja notification body.

    Expected shape::

        {"Body": {"stkCallback": {"MerchantRequestID": ..., "CheckoutRequestID": ...,
                                  "ResultCode": 0, "ResultDesc": ...,
                                  "CallbackMetadata": {"Item": [{"Name": ..., "Value": ...}]}}}}

    Returns None when the body does not look like an STK callback.
    """
    if not isinstance(data, dict):
        return None
    body = data.get("Body")
    callback = body.get("stkCallback") if isinstance(body, dict) else None
    if not isinstance(callback, dict):
        return None

    metadata: Dict[str, Any] = {}
    items = (callback.get("CallbackMetadata") or {}).get("Item") or []
    for item in items:
        if isinstance(item, dict) and item.get("Name"):
            metadata[item["Name"]] = item.get("Value")

    return CallbackNotification(
        merchant_request_id=callback.get("MerchantRequestID"),
        checkout_request_id=callback.get("CheckoutRequestID"),
        result_code=callback.get("ResultCode"),
        result_desc=callback.get("ResultDesc"),
        metadata=metadata
    )


class PaymentService:
    """Validates payment requests and relays them to the M-PESA adapter."""

    def __init__(self, adapter: MpesaAdapter):
        self.adapter = adapter

    async def initiate_payment(self, payload: Optional[PaymentRequest]) -> PaymentInitiationResult:
        """
        Validate an initiation request and start an STK push.

        Raises:
            ValidationError: If a field is missing or the amount is not a positive number
        """
        payload = payload or PaymentRequest()
        if not payload.phone_number or not payload.amount or not payload.order_id:
            raise ValidationError("Phone number, amount, and order ID are required")

        try:
            amount = Decimal(str(payload.amount))
        except (InvalidOperation, ValueError):
            raise ValidationError("Amount must be a number", field="amount")
        if not amount.is_finite() or amount <= 0:
            raise ValidationError("Amount must be greater than zero", field="amount")
        if round_amount(amount) < 1:
            raise ValidationError("Amount must be at least 1 KES", field="amount")

        return await self.adapter.initiate(payload.phone_number, amount, payload.order_id)

    async def check_status(self, payload: Optional[StatusRequest]) -> Dict[str, Any]:
        payload = payload or StatusRequest()
        if not payload.checkout_request_id:
            raise ValidationError("Checkout request ID is required", field="checkoutRequestID")
        return await self.adapter.query_status(payload.checkout_request_id)

    def handle_callback(self, raw_body: bytes) -> Optional[CallbackNotification]:
        """
        Log an inbound payment notification.

        Never raises: the payment gateway only needs an acknowledgment, so
        any processing failure ends up in the logs and nowhere else.
        """
        try:
            data = json.loads(raw_body) if raw_body else None
            logger.info("M-PESA Callback received", extra={"data": {"callback": data}})

            notification = parse_callback(data)
            if notification is None:
                logger.warning("M-PESA callback did not contain an stkCallback payload")
                return None

            if notification.succeeded:
                logger.info(
                    f"Payment {notification.checkout_request_id} completed: "
                    f"{notification.metadata.get('MpesaReceiptNumber')}"
                )
            else:
                logger.warning(
                    f"Payment {notification.checkout_request_id} failed with code "
                    f"{notification.result_code}: {notification.result_desc}"
                )
            return notification
        except Exception as e:
            logger.error(f"Error processing M-PESA callback: {str(e)}", exc_info=True)
            return None
