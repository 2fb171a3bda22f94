"""Authentication mechanisms for external API integrations."""

from loris_gateway.infrastructure.auth.session import Session, SessionManager
from loris_gateway.infrastructure.auth.basic_auth import BasicAuthHandler

__all__ = ["Session", "SessionManager", "BasicAuthHandler"]
