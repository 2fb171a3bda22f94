from .adapter import MpesaAdapter
from .daraja import generate_password, generate_timestamp, normalize_phone_number

__all__ = [
    "MpesaAdapter",
    "generate_password",
    "generate_timestamp",
    "normalize_phone_number",
]
