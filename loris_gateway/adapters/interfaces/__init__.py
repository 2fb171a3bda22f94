"""
Interfaces package for the gateway adapters.

This package contains the base adapter, HTTP helpers and response
normalization shared by all remote service adapters.
"""

from .connector import HttpMethod, RemoteServiceAdapter, response_body
from .normalizer import extract_field, require_fields, error_message

__all__ = [
    # Connector
    'HttpMethod',
    'RemoteServiceAdapter',
    'response_body',

    # Normalizer
    'extract_field',
    'require_fields',
    'error_message',
]
