from .health import health_router
from .mpesa import mpesa_router
from .storage import storage_router

__all__ = ["health_router", "mpesa_router", "storage_router"]
