from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from loris_gateway.api.dependencies import get_app_settings
from loris_gateway.core.exceptions import GatewayError, NotFoundError, ValidationError
from loris_gateway.core.logging import get_logger

# Initialize logger
logger = get_logger(__name__)


async def handle_gateway_error(request: Request, exc: GatewayError) -> JSONResponse:
    """
    Handle GatewayError instances.

    Internal error text is only included in the body in development mode;
    it is always logged.

    Args:
        request: FastAPI request object
        exc: GatewayError instance

    Returns:
        JSONResponse: Formatted error response
    """
    if isinstance(exc, ValidationError):
        logger.warning(f"Validation error: {exc.detail}", extra={"data": {"context": exc.context}})
    elif isinstance(exc, NotFoundError):
        logger.info(f"Resource not found: {exc.detail}", extra={"data": {"context": exc.context}})
    else:
        logger.error(
            f"{request.method} {request.url.path} failed: {exc.detail}",
            extra={
                "data": {
                    "status_code": exc.status_code,
                    "error_code": exc.code,
                    "context": exc.context
                }
            }
        )

    settings = get_app_settings(request)
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(include_details=settings.is_development)
    )


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies are reported with the same envelope as other errors."""
    errors = [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]
    logger.warning("Request validation error", extra={"data": {"errors": errors}})

    content = {"success": False, "message": "Invalid request"}
    if get_app_settings(request).is_development:
        content["error"] = errors
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=content)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)

    content = {"success": False, "message": "Something went wrong on the server"}
    if get_app_settings(request).is_development:
        content["error"] = str(exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(GatewayError, handle_gateway_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
