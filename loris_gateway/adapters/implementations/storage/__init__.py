from .adapter import StorageAdapter, validate_image
from .b2_client import B2Client

__all__ = ["StorageAdapter", "B2Client", "validate_image"]
