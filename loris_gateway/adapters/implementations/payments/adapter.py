from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Optional, Union

import httpx

from loris_gateway.adapters.implementations.payments.daraja import (
    generate_password,
    generate_timestamp,
    normalize_phone_number,
)
from loris_gateway.adapters.interfaces.connector import HttpMethod, RemoteServiceAdapter, response_body
from loris_gateway.adapters.interfaces.normalizer import error_message, extract_field, require_fields
from loris_gateway.core.exceptions import AuthError, GatewayError, PaymentError
from loris_gateway.core.logging import get_logger
from loris_gateway.domain.models.payment import PaymentInitiationResult
from loris_gateway.infrastructure.auth.basic_auth import BasicAuthHandler
from loris_gateway.infrastructure.auth.session import Session

logger = get_logger(__name__)

TOKEN_PATH = "/oauth/v1/generate"
STK_PUSH_PATH = "/mpesa/stkpush/v1/processrequest"
STK_QUERY_PATH = "/mpesa/stkpushquery/v1/query"
TRANSACTION_TYPE = "CustomerPayBillOnline"


def round_amount(amount: Union[int, float, str, Decimal]) -> int:
    """Round half up to a whole number of shillings."""
    return int(Decimal(str(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class MpesaAdapter(RemoteServiceAdapter):
    """
    M-PESA Daraja adapter for STK push initiation and status queries.

    The OAuth access token is cached on the adapter's session manager and
    dropped whenever a Daraja call fails.
    """

    service_name = "M-PESA"

    def __init__(
        self,
        consumer_key: Optional[str],
        consumer_secret: Optional[str],
        shortcode: Optional[str],
        passkey: Optional[str],
        callback_url: str,
        base_url: str = "https://sandbox.safaricom.co.ke",
        account_reference: str = "Loris Kenya",
        utc_offset_hours: int = 3,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0
    ):
        super().__init__(http_client=http_client, timeout=timeout)
        self.auth = BasicAuthHandler(consumer_key, consumer_secret, label="M-PESA")
        self.shortcode = shortcode
        self.passkey = passkey
        self.callback_url = callback_url
        self.base_url = base_url.rstrip("/")
        self.account_reference = account_reference
        self.utc_offset_hours = utc_offset_hours

    async def authenticate(self) -> Session:
        """
        Generate an OAuth access token with the client credentials grant.

        Raises:
            AuthError: If the token cannot be obtained
        """
        try:
            payload = await self.request(
                HttpMethod.GET,
                f"{self.base_url}{TOKEN_PATH}",
                params={"grant_type": "client_credentials"},
                headers=self.auth.generate_header()
            )
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Error generating OAuth token: {str(e)}")
            raise AuthError("Failed to generate OAuth token", original_exception=e)

        fields = require_fields(payload, ("access_token",), AuthError, "Failed to generate OAuth token")
        return Session(token=fields["access_token"], api_url=self.base_url)

    def _security_fields(self) -> Dict[str, str]:
        if not self.shortcode or not self.passkey:
            raise PaymentError("M-PESA shortcode and passkey are not configured")
        timestamp = generate_timestamp(utc_offset_hours=self.utc_offset_hours)
        return {
            "BusinessShortCode": self.shortcode,
            "Password": generate_password(self.shortcode, self.passkey, timestamp),
            "Timestamp": timestamp,
        }

    async def _post(self, session: Session, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        return await self.request(
            HttpMethod.POST,
            f"{session.api_url}{path}",
            json=body,
            headers={"Authorization": f"Bearer {session.token}"}
        )

    async def initiate(
        self,
        phone_number: Union[str, int],
        amount: Union[int, float, str, Decimal],
        order_ref: Union[str, int],
        account_ref: Optional[str] = None
    ) -> PaymentInitiationResult:
        """
        Send an STK push prompt to the customer's phone.

        Args:
            phone_number: Customer phone in local or international form
            amount: Amount in KES, rounded to an integer
            order_ref: Order reference shown in the transaction description
            account_ref: Account reference, defaults to the configured one

        Returns:
            Tracking ID (CheckoutRequestID) and the raw Daraja response

        Raises:
            AuthError: If the OAuth token cannot be obtained
            PaymentError: If Daraja rejects the request
        """
        phone = normalize_phone_number(phone_number)

        try:
            session = await self.sessions.ensure_session()
            body = {
                **self._security_fields(),
                "TransactionType": TRANSACTION_TYPE,
                "Amount": round_amount(amount),
                "PartyA": phone,
                "PartyB": self.shortcode,
                "PhoneNumber": phone,
                "CallBackURL": self.callback_url,
                "AccountReference": account_ref or self.account_reference,
                "TransactionDesc": f"Payment for order {order_ref}",
            }
            payload = await self._post(session, STK_PUSH_PATH, body)
            tracking_id = extract_field(payload, "CheckoutRequestID")
            if not tracking_id:
                raise PaymentError(
                    error_message(payload, "Failed to initiate payment"),
                    context={"response": payload}
                )
        except GatewayError:
            self.reset()
            raise
        except Exception as e:
            remote_error = response_body(e)
            logger.error(f"STK Push error: {remote_error or str(e)}")
            self.reset()
            raise PaymentError(
                error_message(remote_error, "Failed to initiate payment"),
                original_exception=e
            )

        logger.info(f"STK push initiated for order {order_ref}: {tracking_id}")
        return PaymentInitiationResult(tracking_id=tracking_id, raw_status=payload)

    async def query_status(self, tracking_id: str) -> Dict[str, Any]:
        """
        Query the state of an STK push.

        Args:
            tracking_id: CheckoutRequestID returned by :meth:`initiate`

        Returns:
            Raw Daraja response; ResultCode interpretation is left to the caller

        Raises:
            AuthError: If the OAuth token cannot be obtained
            PaymentError: If the query fails
        """
        try:
            session = await self.sessions.ensure_session()
            body = {
                **self._security_fields(),
                "CheckoutRequestID": tracking_id,
            }
            payload = await self._post(session, STK_QUERY_PATH, body)
        except GatewayError:
            self.reset()
            raise
        except Exception as e:
            logger.error(f"Status check error: {response_body(e) or str(e)}")
            self.reset()
            raise PaymentError("Failed to check transaction status", original_exception=e)

        return payload
