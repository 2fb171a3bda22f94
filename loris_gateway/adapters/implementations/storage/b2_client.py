"""
Wire-level client for the Backblaze B2 native API (v2).

Each method maps one local call onto one B2 endpoint and returns the decoded
JSON body untouched; interpreting the body is the adapter's job.
"""
import hashlib
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from loris_gateway.adapters.interfaces.connector import HttpMethod, RemoteServiceAdapter
from loris_gateway.adapters.interfaces.normalizer import require_fields
from loris_gateway.core.exceptions import AuthError
from loris_gateway.infrastructure.auth.basic_auth import BasicAuthHandler
from loris_gateway.infrastructure.auth.session import Session

API_PREFIX = "/b2api/v2"


class B2Client:
    """Translates storage operations into B2 native API requests."""

    def __init__(
        self,
        connector: RemoteServiceAdapter,
        key_id: Optional[str],
        application_key: Optional[str],
        auth_url: str = "https://api.backblazeb2.com"
    ):
        self.connector = connector
        self.auth = BasicAuthHandler(key_id, application_key, label="B2")
        self.auth_url = auth_url.rstrip("/")

    def _api(self, session: Session, operation: str) -> str:
        return f"{session.api_url.rstrip('/')}{API_PREFIX}/{operation}"

    async def authorize_account(self) -> Session:
        """
        Exchange the application key for an account authorization token.

        Returns:
            Session carrying the token, API URL, account ID and download URL

        Raises:
            AuthError: If credentials are missing or the response is incomplete
        """
        payload = await self.connector.request(
            HttpMethod.GET,
            f"{self.auth_url}{API_PREFIX}/b2_authorize_account",
            headers=self.auth.generate_header()
        )
        fields = require_fields(
            payload,
            ("authorizationToken", "apiUrl"),
            AuthError,
            "Failed to authenticate with B2 storage"
        )
        return Session(
            token=fields["authorizationToken"],
            api_url=fields["apiUrl"],
            account_id=payload.get("accountId"),
            download_url=payload.get("downloadUrl")
        )

    async def list_buckets(self, session: Session) -> List[Dict[str, Any]]:
        payload = await self.connector.request(
            HttpMethod.POST,
            self._api(session, "b2_list_buckets"),
            json={"accountId": session.account_id},
            headers={"Authorization": session.token}
        )
        return payload.get("buckets") or []

    async def get_upload_url(self, session: Session, bucket_id: str) -> Dict[str, Any]:
        return await self.connector.request(
            HttpMethod.POST,
            self._api(session, "b2_get_upload_url"),
            json={"bucketId": bucket_id},
            headers={"Authorization": session.token}
        )

    async def upload_file(
        self,
        upload_url: str,
        upload_token: str,
        key: str,
        content: bytes,
        content_type: str
    ) -> Dict[str, Any]:
        """
        Upload file content to a one-time upload URL.

        Args:
            upload_url: URL returned by b2_get_upload_url
            upload_token: Authorization token returned with the URL
            key: Remote file name
            content: File bytes
            content_type: MIME type stored with the file

        Returns:
            Decoded B2 file info
        """
        headers = {
            "Authorization": upload_token,
            "X-Bz-File-Name": quote(key, safe="/"),
            "Content-Type": content_type,
            "X-Bz-Content-Sha1": hashlib.sha1(content).hexdigest(),
        }
        return await self.connector.request(
            HttpMethod.POST,
            upload_url,
            content=content,
            headers=headers
        )

    async def list_file_names(
        self,
        session: Session,
        bucket_id: str,
        prefix: str,
        max_file_count: int = 1
    ) -> List[Dict[str, Any]]:
        payload = await self.connector.request(
            HttpMethod.POST,
            self._api(session, "b2_list_file_names"),
            json={
                "bucketId": bucket_id,
                "prefix": prefix,
                "startFileName": prefix,
                "maxFileCount": max_file_count,
            },
            headers={"Authorization": session.token}
        )
        return payload.get("files") or []

    async def delete_file_version(self, session: Session, key: str, file_id: str) -> Dict[str, Any]:
        return await self.connector.request(
            HttpMethod.POST,
            self._api(session, "b2_delete_file_version"),
            json={"fileName": key, "fileId": file_id},
            headers={"Authorization": session.token}
        )
