from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, Optional

import httpx

from loris_gateway.core.logging import get_logger
from loris_gateway.infrastructure.auth.session import Session, SessionManager

logger = get_logger(__name__)


class HttpMethod(str, Enum):
    """Enum defining the HTTP methods used against remote services."""
    GET = "GET"
    POST = "POST"
    DELETE = "DELETE"


class RemoteServiceAdapter(ABC):
    """
    Base class for remote service adapters.

    Owns the HTTP client and the session manager of one remote service.
    Subclasses implement :meth:`authenticate` (the credential handshake) and
    extend :meth:`reset` when they cache more than the session.
    """

    service_name = "remote service"

    def __init__(self, http_client: Optional[httpx.AsyncClient] = None, timeout: float = 10.0):
        """
        Initialize the adapter.

        Args:
            http_client: Optional shared HTTP client. When omitted the adapter
                creates and owns one.
            timeout: Per-call timeout in seconds for an owned client
        """
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(timeout=timeout)
        self.sessions = SessionManager(self.service_name, self.authenticate)

    @abstractmethod
    async def authenticate(self) -> Session:
        """Exchange long-lived credentials for a fresh session."""
        pass

    async def request(
        self,
        method: HttpMethod,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Any] = None,
        content: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> Dict[str, Any]:
        """
        Make an HTTP request and decode the JSON response.

        Raises:
            httpx.HTTPStatusError: For non-2xx responses
            httpx.RequestError: For transport failures
            ValueError: If the body is not JSON
        """
        response = await self.http_client.request(
            method.value,
            url,
            params=params,
            json=json,
            content=content,
            headers=headers
        )
        logger.debug(
            f"{self.service_name} {method.value} {url} -> {response.status_code}"
        )
        response.raise_for_status()
        return response.json()

    def reset(self) -> None:
        """Invalidate every piece of cached remote state."""
        self.sessions.invalidate()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.http_client.aclose()


def response_body(exc: Exception) -> Any:
    """Best-effort decoded body of a failed HTTP response."""
    if isinstance(exc, httpx.HTTPStatusError):
        try:
            return exc.response.json()
        except ValueError:
            return exc.response.text
    return None
