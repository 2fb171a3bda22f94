"""
Request translation for the Safaricom Daraja API.

Pure helpers: phone number canonicalization, the 14-digit request timestamp
and the STK push password. They carry no state and make no network calls.
"""
import base64
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

COUNTRY_PREFIX = "254"
TRUNK_PREFIX = "0"
TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"


def normalize_phone_number(phone_number: Union[str, int]) -> str:
    """
    Convert a Kenyan phone number to the 2547XXXXXXXX form Daraja expects.

    ``0712345678`` -> ``254712345678``, ``712345678`` -> ``254712345678``;
    numbers already starting with 254 are returned as-is. Whitespace and a
    leading ``+`` are dropped first, so the function is idempotent.
    """
    phone = "".join(str(phone_number).split()).lstrip("+")

    if phone.startswith(TRUNK_PREFIX):
        return COUNTRY_PREFIX + phone[len(TRUNK_PREFIX):]
    if not phone.startswith(COUNTRY_PREFIX):
        return COUNTRY_PREFIX + phone
    return phone


def generate_timestamp(now: Optional[datetime] = None, utc_offset_hours: int = 3) -> str:
    """Return the current time in East Africa Time as YYYYMMDDHHMMSS."""
    tz = timezone(timedelta(hours=utc_offset_hours))
    if now is None:
        now = datetime.now(tz)
    elif now.tzinfo is not None:
        now = now.astimezone(tz)
    return now.strftime(TIMESTAMP_FORMAT)


def generate_password(shortcode: str, passkey: str, timestamp: str) -> str:
    """Base64 of shortcode + passkey + timestamp."""
    raw = f"{shortcode}{passkey}{timestamp}"
    return base64.b64encode(raw.encode("utf-8")).decode("utf-8")
