from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
import time
import uuid
from typing import Callable, Optional

import httpx

from loris_gateway.adapters.factory import AdaptorFactory
from loris_gateway.api.error_handlers import register_exception_handlers
from loris_gateway.core.config import Settings, get_settings, load_env_file
from loris_gateway.core.logging import configure_logging, get_logger, set_correlation_id

CORRELATION_HEADER = "X-Correlation-ID"

load_env_file()
configure_logging()
logger = get_logger(__name__)


def create_application(
    settings: Optional[Settings] = None,
    http_client: Optional[httpx.AsyncClient] = None
) -> FastAPI:
    """
    Build the gateway application.

    Both remote service adapters are created here, once, and kept on
    ``app.state`` so that their sessions are shared by every request.

    Args:
        settings: Settings to build the app with, defaults to the environment
        http_client: Optional HTTP client for the adapters (tests inject a
            mock transport here)

    Returns:
        FastAPI: Configured application
    """
    settings = settings or get_settings()

    app = FastAPI(title=settings.PROJECT_NAME, debug=settings.DEBUG)
    app.state.settings = settings

    factory = AdaptorFactory(settings, http_client=http_client)
    app.state.storage_adapter = factory.create_storage_adaptor()
    app.state.payment_adapter = factory.create_payment_adaptor()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )
    app.middleware("http")(track_request)

    register_exception_handlers(app)
    register_routers(app)

    @app.on_event("startup")
    async def startup_event():
        logger.info(
            f"{settings.PROJECT_NAME} listening on port {settings.PORT}",
            extra={"data": {"env": settings.ENV, "mpesa_base_url": settings.mpesa_base_url}}
        )

    @app.on_event("shutdown")
    async def shutdown_event():
        logger.info(f"Stopping {settings.PROJECT_NAME}")
        await app.state.storage_adapter.aclose()
        await app.state.payment_adapter.aclose()

    return app


async def track_request(request: Request, call_next: Callable):
    """Tag the request with a correlation id and log its outcome and duration."""
    corr_id = set_correlation_id(request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4()))
    started = time.perf_counter()
    request_info = {"method": request.method, "request_path": request.url.path}

    try:
        response = await call_next(request)
    except Exception as e:
        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        logger.error(
            f"Request failed: {str(e)}",
            extra={"data": {**request_info, "process_time_ms": elapsed_ms}},
            exc_info=True
        )
        raise

    elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
    response.headers[CORRELATION_HEADER] = corr_id
    logger.info(
        f"{request.method} {request.url.path} {response.status_code}",
        extra={"data": {**request_info, "status_code": response.status_code, "process_time_ms": elapsed_ms}}
    )
    return response


def register_routers(app: FastAPI) -> None:
    # Imported here to avoid circular imports
    from loris_gateway.api.routes import health_router, mpesa_router, storage_router

    app.include_router(health_router, prefix="/health", tags=["Health"])
    app.include_router(storage_router, prefix="/api/storage", tags=["Storage"])
    app.include_router(mpesa_router, prefix="/api/mpesa", tags=["M-PESA"])


app = create_application()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=get_settings().PORT)
