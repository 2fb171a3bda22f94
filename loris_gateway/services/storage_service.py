import asyncio
import os
import tempfile
import time
from typing import Any, Dict, List, Optional, Sequence

from fastapi import UploadFile

from loris_gateway.adapters.implementations.storage.adapter import (
    DEFAULT_CATEGORY,
    StorageAdapter,
    validate_image,
)
from loris_gateway.core.exceptions import GatewayError, UploadError, ValidationError
from loris_gateway.core.logging import get_logger
from loris_gateway.domain.models.storage import UploadRequest, UploadResult

logger = get_logger(__name__)

CHUNK_SIZE = 64 * 1024


def normalize_category(category: Optional[str]) -> str:
    """Blank categories fall back to the default prefix."""
    category = (category or "").strip().strip("/")
    return category or DEFAULT_CATEGORY


class StorageService:
    """Coordinates image uploads between the HTTP layer and the storage adapter."""

    def __init__(
        self,
        adapter: StorageAdapter,
        tmp_dir: str = "uploads",
        max_upload_size: int = 5 * 1024 * 1024,
        max_files: int = 10
    ):
        """
        Initialize the storage service.

        Args:
            adapter: Storage adapter performing the remote calls
            tmp_dir: Directory for temporary copies of incoming files
            max_upload_size: Size ceiling in bytes
            max_files: Maximum number of files per multi-upload
        """
        self.adapter = adapter
        self.tmp_dir = tmp_dir
        self.max_upload_size = max_upload_size
        self.max_files = max_files

    async def _spool(self, upload: UploadFile) -> UploadRequest:
        """
        Copy an incoming file to a local temporary file.

        The file is counted to the end but its content stops being written
        once the size ceiling is reached; validation rejects it afterwards.
        """
        os.makedirs(self.tmp_dir, exist_ok=True)
        original_name = upload.filename or ""
        extension = os.path.splitext(original_name)[1]
        fd, path = tempfile.mkstemp(
            prefix=f"{int(time.time() * 1000)}-",
            suffix=extension,
            dir=self.tmp_dir
        )

        size = 0
        try:
            with os.fdopen(fd, "wb") as fh:
                while True:
                    chunk = await upload.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    size += len(chunk)
                    if size <= self.max_upload_size:
                        fh.write(chunk)
        except OSError as e:
            logger.error(f"Error writing temporary file {path}: {str(e)}")
            if os.path.exists(path):
                os.remove(path)
            raise UploadError(original_exception=e)

        return UploadRequest(
            path=path,
            original_name=original_name,
            size=size,
            content_type=upload.content_type
        )

    async def upload_image(self, upload: UploadFile, category: Optional[str] = None) -> UploadResult:
        """
        Upload a single image.

        Args:
            upload: Incoming multipart file
            category: Key prefix, defaults to "products"

        Returns:
            UploadResult
        """
        request = await self._spool(upload)
        return await self.adapter.upload(request, normalize_category(category))

    async def upload_images(
        self,
        uploads: Sequence[UploadFile],
        category: Optional[str] = None
    ) -> List[UploadResult]:
        """
        Upload several images concurrently.

        The whole batch is spooled and validated first; one rejected file
        rejects the request before any remote call. Every upload then runs
        to completion (each cleans up its own temporary copy) before the
        first failure, if any, is raised.
        """
        if not uploads:
            raise ValidationError("No image files provided", field="images")
        if len(uploads) > self.max_files:
            raise ValidationError(
                f"Too many files. A maximum of {self.max_files} images can be uploaded at once",
                field="images"
            )

        requests: List[UploadRequest] = []
        try:
            for upload in uploads:
                requests.append(await self._spool(upload))
            for request in requests:
                validate_image(request, self.adapter.max_upload_size)
        except GatewayError:
            for request in requests:
                self.adapter.remove_temp_file(request.path)
            raise

        prefix = normalize_category(category)
        outcomes = await asyncio.gather(
            *(self.adapter.upload(request, prefix) for request in requests),
            return_exceptions=True
        )
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome
        return list(outcomes)

    async def delete_image(self, key: str) -> Dict[str, Any]:
        key = (key or "").strip()
        if not key:
            raise ValidationError("File name is required", field="fileName")
        return await self.adapter.delete(key)
