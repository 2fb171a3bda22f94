"""
Services package for the gateway.

Services validate inbound requests and orchestrate calls to the remote
service adapters.
"""

from loris_gateway.services.payment_service import PaymentService
from loris_gateway.services.storage_service import StorageService

__all__ = ["PaymentService", "StorageService"]
