import asyncio
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional

from pydantic import BaseModel, Field

from loris_gateway.core.exceptions import AuthError
from loris_gateway.core.logging import get_logger

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Session(BaseModel):
    """Short-lived access token plus the endpoint metadata that came with it."""
    token: str
    api_url: str
    issued_at: datetime = Field(default_factory=_utcnow)
    account_id: Optional[str] = None
    download_url: Optional[str] = None


class SessionManager:
    """
    Caches the session of one remote service.

    There is no expiry timer: a cached session is trusted until a downstream
    call fails, at which point the owner calls :meth:`invalidate` and the
    next :meth:`ensure_session` performs the handshake from scratch.
    Concurrent callers that find the cache empty share a single handshake.
    """

    def __init__(self, name: str, authenticate: Callable[[], Awaitable[Session]]):
        """
        Initialize the session manager.

        Args:
            name: Remote service name, used in logs
            authenticate: Coroutine function exchanging long-lived credentials
                for a fresh session
        """
        self.name = name
        self._authenticate = authenticate
        self._session: Optional[Session] = None
        self._lock = asyncio.Lock()
        self.authentication_count = 0

    @property
    def session(self) -> Optional[Session]:
        return self._session

    async def ensure_session(self) -> Session:
        """
        Return the cached session, authenticating first if there is none.

        Returns:
            A valid session

        Raises:
            AuthError: If the handshake fails
        """
        session = self._session
        if session is not None:
            return session

        async with self._lock:
            # Another request may have authenticated while we waited
            if self._session is not None:
                return self._session

            self.authentication_count += 1
            try:
                session = await self._authenticate()
            except AuthError:
                logger.error(f"{self.name} authentication failed")
                raise
            except Exception as e:
                logger.error(f"{self.name} authentication error: {str(e)}")
                raise AuthError(
                    f"Failed to authenticate with {self.name}",
                    original_exception=e
                )

            self._session = session
            logger.info(f"Successfully authenticated with {self.name}")
            return session

    def invalidate(self) -> None:
        """Drop the cached session so the next call re-authenticates."""
        if self._session is not None:
            logger.info(f"Invalidating {self.name} session")
        self._session = None
