import mimetypes
import os
import uuid
from typing import Any, Dict, Optional

import httpx

from loris_gateway.adapters.implementations.storage.b2_client import B2Client
from loris_gateway.adapters.interfaces.connector import RemoteServiceAdapter
from loris_gateway.adapters.interfaces.normalizer import extract_field, require_fields
from loris_gateway.core.exceptions import (
    ConfigError,
    DeleteError,
    GatewayError,
    NotFoundError,
    UploadError,
    ValidationError,
)
from loris_gateway.core.logging import get_logger
from loris_gateway.domain.models.storage import BucketDescriptor, UploadRequest, UploadResult
from loris_gateway.infrastructure.auth.session import Session

logger = get_logger(__name__)

ALLOWED_EXTENSIONS = {".jpeg", ".jpg", ".png", ".webp"}
ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/webp"}
DEFAULT_CONTENT_TYPE = "application/octet-stream"
DEFAULT_CATEGORY = "products"
MAX_UPLOAD_SIZE = 5 * 1024 * 1024

mimetypes.add_type("image/webp", ".webp")


def validate_image(request: UploadRequest, max_size: int = MAX_UPLOAD_SIZE) -> None:
    """
    Reject anything that is not a small jpeg/png/webp image.

    Both the filename extension and, when the client declared one, the
    content type must belong to the accepted set.

    Raises:
        ValidationError: If the file type or size is not accepted
    """
    extension = os.path.splitext(request.original_name or "")[1].lower()
    content_type = (request.content_type or "").split(";")[0].strip().lower()

    if extension not in ALLOWED_EXTENSIONS or (content_type and content_type not in ALLOWED_CONTENT_TYPES):
        raise ValidationError(
            "Only image files (jpeg, jpg, png, webp) are allowed!",
            field="image",
            context={"filename": request.original_name, "content_type": request.content_type}
        )

    if request.size >= max_size:
        raise ValidationError(
            f"File too large. Maximum size is {max_size // (1024 * 1024)}MB",
            field="image",
            context={"filename": request.original_name, "size": request.size}
        )


def guess_content_type(filename: str) -> str:
    content_type, _ = mimetypes.guess_type(filename)
    return content_type or DEFAULT_CONTENT_TYPE


class StorageAdapter(RemoteServiceAdapter):
    """
    Backblaze B2 adapter for image uploads and deletes.

    Holds the B2 account session and the resolved bucket descriptor. Both are
    dropped together whenever a remote call fails; nothing is retried.
    """

    service_name = "B2 storage"

    def __init__(
        self,
        key_id: Optional[str],
        application_key: Optional[str],
        bucket_name: Optional[str] = None,
        bucket_id: Optional[str] = None,
        auth_url: str = "https://api.backblazeb2.com",
        public_url_base: str = "https://f003.backblazeb2.com",
        max_upload_size: int = MAX_UPLOAD_SIZE,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0
    ):
        super().__init__(http_client=http_client, timeout=timeout)
        self.client = B2Client(self, key_id, application_key, auth_url)
        self.bucket_name = bucket_name
        self.bucket_id = bucket_id
        self.public_url_base = public_url_base.rstrip("/")
        self.max_upload_size = max_upload_size
        self._bucket: Optional[BucketDescriptor] = None

    @property
    def bucket(self) -> Optional[BucketDescriptor]:
        return self._bucket

    async def authenticate(self) -> Session:
        return await self.client.authorize_account()

    def reset(self) -> None:
        super().reset()
        self._bucket = None

    async def resolve_target(self) -> BucketDescriptor:
        """
        Resolve the bucket to write to.

        A configured bucket ID is used as-is; otherwise the account's buckets
        are listed and matched by name. The result is cached until reset.

        Returns:
            The bucket descriptor

        Raises:
            ConfigError: If the bucket cannot be resolved
        """
        if self._bucket is not None:
            return self._bucket

        if not self.bucket_name:
            raise ConfigError(
                "B2_BUCKET_NAME is not configured; it is required to build public file URLs, "
                "even when B2_BUCKET_ID is set"
            )

        if self.bucket_id:
            self._bucket = BucketDescriptor(id=self.bucket_id, name=self.bucket_name)
            return self._bucket

        session = await self.sessions.ensure_session()
        try:
            buckets = await self.client.list_buckets(session)
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Error getting bucket info: {str(e)}")
            raise ConfigError("Failed to get bucket info", original_exception=e)

        for bucket in buckets:
            if bucket.get("bucketName") == self.bucket_name:
                self._bucket = BucketDescriptor(id=bucket["bucketId"], name=bucket["bucketName"])
                logger.info(f"Found bucket: {self._bucket.name} ({self._bucket.id})")
                return self._bucket

        available = ", ".join(b.get("bucketName", "?") for b in buckets)
        raise ConfigError(
            f'Bucket "{self.bucket_name}" not found. Available buckets: {available}',
            context={"available_buckets": available}
        )

    def public_url(self, bucket: BucketDescriptor, key: str) -> str:
        return f"{self.public_url_base}/file/{bucket.name}/{key}"

    async def upload(self, request: UploadRequest, category: str = DEFAULT_CATEGORY) -> UploadResult:
        """
        Upload an image and return where it can be fetched.

        The local temporary copy is removed whatever the outcome.

        Args:
            request: Spooled upload
            category: Key prefix used to group files

        Returns:
            UploadResult with the public URL, key and remote file ID

        Raises:
            ValidationError: Rejected before any remote call
            AuthError: Credential exchange failed
            ConfigError: Bucket could not be resolved
            UploadError: Any other failure
        """
        try:
            validate_image(request, self.max_upload_size)
            return await self._upload(request, category or DEFAULT_CATEGORY)
        finally:
            self.remove_temp_file(request.path)

    async def _upload(self, request: UploadRequest, category: str) -> UploadResult:
        try:
            session = await self.sessions.ensure_session()
            bucket = await self.resolve_target()

            with open(request.path, "rb") as fh:
                content = fh.read()

            extension = os.path.splitext(request.original_name)[1]
            key = f"{category}/{uuid.uuid4()}{extension}"
            content_type = guess_content_type(request.original_name)

            logger.info(f"Uploading file: {key} ({content_type}, {request.size} bytes)")

            upload_target = await self.client.get_upload_url(session, bucket.id)
            fields = require_fields(
                upload_target,
                ("uploadUrl", "authorizationToken"),
                UploadError,
                "Could not get valid upload URL and authorization token"
            )

            uploaded = await self.client.upload_file(
                fields["uploadUrl"],
                fields["authorizationToken"],
                key,
                content,
                content_type
            )
            remote_id = extract_field(uploaded, "fileId")
        except GatewayError:
            self.reset()
            raise
        except Exception as e:
            logger.error(f"File upload error: {str(e)}")
            self.reset()
            raise UploadError(original_exception=e)

        logger.info(f"File uploaded successfully: {key}")
        return UploadResult(
            url=self.public_url(bucket, key),
            key=key,
            remote_id=remote_id,
            size=request.size,
            content_type=content_type
        )

    async def delete(self, key: str) -> Dict[str, Any]:
        """
        Delete a file by its storage key.

        Args:
            key: Full storage key, e.g. ``products/<uuid>.png``

        Returns:
            Confirmation dict

        Raises:
            NotFoundError: If no file has exactly this key
            DeleteError: If the remote delete fails
        """
        try:
            session = await self.sessions.ensure_session()
            bucket = await self.resolve_target()

            files = await self.client.list_file_names(session, bucket.id, key, max_file_count=1)
            match = next((f for f in files if f.get("fileName") == key), None)
            if match is None or not match.get("fileId"):
                raise NotFoundError("File", key)

            await self.client.delete_file_version(session, key, match["fileId"])
        except NotFoundError:
            raise
        except GatewayError:
            self.reset()
            raise
        except Exception as e:
            logger.error(f"File deletion error: {str(e)}")
            self.reset()
            raise DeleteError(original_exception=e)

        logger.info(f"File deleted successfully: {key}")
        return {
            "success": True,
            "message": f"File {key} deleted successfully"
        }

    @staticmethod
    def remove_temp_file(path: Optional[str]) -> None:
        if not path or not os.path.exists(path):
            return
        try:
            os.remove(path)
        except OSError as e:
            logger.error(f"Error deleting temporary file {path}: {str(e)}")
