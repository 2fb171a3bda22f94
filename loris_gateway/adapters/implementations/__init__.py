"""
Concrete adapter implementations.

- storage: Backblaze B2 image uploads and deletes
- payments: M-PESA Daraja STK push
"""

from .storage import StorageAdapter
from .payments import MpesaAdapter

__all__ = ["StorageAdapter", "MpesaAdapter"]
