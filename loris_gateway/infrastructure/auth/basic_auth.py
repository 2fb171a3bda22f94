import base64
from typing import Dict, Optional

from loris_gateway.core.exceptions import AuthError
from loris_gateway.core.logging import get_logger

logger = get_logger(__name__)


class BasicAuthHandler:
    """
    Basic-auth header for a credential handshake.

    B2 signs ``b2_authorize_account`` with ``keyId:applicationKey`` and Daraja
    signs its OAuth call with ``consumerKey:consumerSecret``.
    """

    def __init__(self, key: Optional[str] = None, secret: Optional[str] = None, label: str = "remote service"):
        self.key = key
        self.secret = secret
        self.label = label

    def generate_header(self) -> Dict[str, str]:
        """
        Returns:
            ``{"Authorization": "Basic <base64(key:secret)>"}``

        Raises:
            AuthError: If either half of the credential pair is missing
        """
        if not self.key or not self.secret:
            logger.error(f"Missing {self.label} credentials")
            raise AuthError(f"{self.label} credentials are not configured")

        return {"Authorization": f"Basic {self.encode_credentials(self.key, self.secret)}"}

    @staticmethod
    def encode_credentials(key: str, secret: str) -> str:
        return base64.b64encode(f"{key}:{secret}".encode("utf-8")).decode("ascii")
