from typing import Optional

import httpx

from loris_gateway.adapters.implementations.payments.adapter import MpesaAdapter
from loris_gateway.adapters.implementations.storage.adapter import StorageAdapter
from loris_gateway.core.config import Settings
from loris_gateway.core.logging import get_logger

logger = get_logger(__name__)


class AdaptorFactory:
    """
    Factory for creating adaptor instances from application settings.

    An HTTP client may be injected to share one connection pool between the
    adaptors (or to point them at a mock transport in tests).
    """

    def __init__(self, settings: Settings, http_client: Optional[httpx.AsyncClient] = None):
        """
        Initialize the adaptor factory.

        Args:
            settings: Application settings
            http_client: Optional HTTP client shared by created adaptors
        """
        self.settings = settings
        self.http_client = http_client

    def create_storage_adaptor(self) -> StorageAdapter:
        settings = self.settings
        if not settings.B2_KEY_ID or not settings.B2_APPLICATION_KEY:
            logger.warning("B2 credentials are not configured; storage calls will fail")

        return StorageAdapter(
            key_id=settings.B2_KEY_ID,
            application_key=settings.B2_APPLICATION_KEY,
            bucket_name=settings.B2_BUCKET_NAME,
            bucket_id=settings.B2_BUCKET_ID,
            auth_url=settings.B2_AUTH_URL,
            public_url_base=settings.B2_PUBLIC_URL_BASE,
            max_upload_size=settings.MAX_UPLOAD_SIZE,
            http_client=self.http_client,
            timeout=settings.HTTP_TIMEOUT
        )

    def create_payment_adaptor(self) -> MpesaAdapter:
        settings = self.settings
        if not settings.MPESA_CONSUMER_KEY or not settings.MPESA_CONSUMER_SECRET:
            logger.warning("M-PESA credentials are not configured; payment calls will fail")

        return MpesaAdapter(
            consumer_key=settings.MPESA_CONSUMER_KEY,
            consumer_secret=settings.MPESA_CONSUMER_SECRET,
            shortcode=settings.MPESA_SHORTCODE,
            passkey=settings.MPESA_PASSKEY,
            callback_url=settings.MPESA_CALLBACK_URL,
            base_url=settings.mpesa_base_url,
            account_reference=settings.MPESA_ACCOUNT_REFERENCE,
            utc_offset_hours=settings.MPESA_UTC_OFFSET_HOURS,
            http_client=self.http_client,
            timeout=settings.HTTP_TIMEOUT
        )
