"""
Domain models for the gateway.
"""

from .storage import BucketDescriptor, UploadRequest, UploadResult
from .payment import CallbackNotification, PaymentInitiationResult, PaymentRequest, StatusRequest

__all__ = [
    "BucketDescriptor",
    "UploadRequest",
    "UploadResult",
    "CallbackNotification",
    "PaymentInitiationResult",
    "PaymentRequest",
    "StatusRequest",
]
