from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


@dataclass
class UploadRequest:
    """A file received over HTTP and spooled to a local temporary copy."""

    path: str
    original_name: str
    size: int
    content_type: Optional[str] = None


class BucketDescriptor(BaseModel):
    """Resolved identity of the storage bucket in use."""
    id: str
    name: str


class UploadResult(BaseModel):
    """Outcome of a successful upload."""
    model_config = ConfigDict(populate_by_name=True)

    url: str
    key: str
    remote_id: Optional[str] = Field(default=None, alias="remoteId")
    size: int
    content_type: str = Field(alias="contentType")
