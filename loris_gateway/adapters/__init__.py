"""
Adapters package for the gateway.

This package contains components for integrating with remote services:
- Shared base adapter and response normalization
- Concrete adapters for B2 storage and M-PESA payments
- Factory building adapter instances from settings
"""

from . import interfaces
from .factory import AdaptorFactory

__all__ = [
    'interfaces',
    'AdaptorFactory',
]
