from fastapi import Depends, Request

from loris_gateway.adapters.implementations.payments.adapter import MpesaAdapter
from loris_gateway.adapters.implementations.storage.adapter import StorageAdapter
from loris_gateway.core.config import Settings, get_settings
from loris_gateway.services.payment_service import PaymentService
from loris_gateway.services.storage_service import StorageService


def get_app_settings(request: Request) -> Settings:
    """Settings the running application was built with."""
    return getattr(request.app.state, "settings", None) or get_settings()


def get_storage_adapter(request: Request) -> StorageAdapter:
    return request.app.state.storage_adapter


def get_payment_adapter(request: Request) -> MpesaAdapter:
    return request.app.state.payment_adapter


def get_storage_service(
    adapter: StorageAdapter = Depends(get_storage_adapter),
    settings: Settings = Depends(get_app_settings)
) -> StorageService:
    """
    Dependency for providing the storage service.

    The service is stateless; the adapter it wraps is shared by all requests
    so that the B2 session and bucket are cached process-wide.
    """
    return StorageService(
        adapter,
        tmp_dir=settings.UPLOAD_TMP_DIR,
        max_upload_size=settings.MAX_UPLOAD_SIZE,
        max_files=settings.MAX_UPLOAD_FILES
    )


def get_payment_service(adapter: MpesaAdapter = Depends(get_payment_adapter)) -> PaymentService:
    return PaymentService(adapter)
