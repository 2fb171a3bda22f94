from fastapi import status
from typing import Any, Dict, Optional


class GatewayError(Exception):
    """
    Base exception for gateway errors.

    ``detail`` is the public message sent back to HTTP callers; ``context``
    holds internal diagnostics that are only exposed in development mode.
    Subclasses set ``status_code``, ``code`` and ``default_detail``.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "internal_error"
    default_detail: str = "Something went wrong on the server"

    def __init__(
        self,
        detail: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.detail = detail or self.default_detail
        self.context = dict(context or {})
        self.original_exception = original_exception

        if original_exception is not None:
            self.context["original_error"] = str(original_exception)

        super().__init__(self.detail)

    def to_dict(self, include_details: bool = False) -> Dict[str, Any]:
        """Response body: ``{success: false, message}``, plus ``error`` when details are requested."""
        body: Dict[str, Any] = {"success": False, "message": self.detail}
        if include_details:
            body["error"] = self.context.get("original_error", self.detail)
        return body


class ValidationError(GatewayError):
    """Request data is missing or malformed; raised before any remote call."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_error"
    default_detail = "Validation error"

    def __init__(
        self,
        detail: Optional[str] = None,
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        merged_context = {"field": field} if field else {}
        merged_context.update(context or {})
        super().__init__(detail, context=merged_context)


class AuthError(GatewayError):
    """The credential exchange with a remote service failed."""

    status_code = status.HTTP_502_BAD_GATEWAY
    code = "authentication_error"
    default_detail = "Authentication with remote service failed"


class ConfigError(GatewayError):
    """A remote target cannot be resolved from configuration."""

    code = "config_error"
    default_detail = "Remote target is not configured"


class NotFoundError(GatewayError):
    """A referenced remote object does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found_error"

    def __init__(self, resource_type: str, resource_id: str, detail: Optional[str] = None):
        super().__init__(
            detail or f'{resource_type} "{resource_id}" not found',
            context={"resource_type": resource_type, "resource_id": str(resource_id)}
        )


class UploadError(GatewayError):
    code = "upload_error"
    default_detail = "Failed to upload file to storage"


class DeleteError(GatewayError):
    code = "delete_error"
    default_detail = "Failed to delete file from storage"


class PaymentError(GatewayError):
    code = "payment_error"
    default_detail = "Failed to process payment request"
