import base64
import re
from datetime import datetime, timezone

import pytest

from loris_gateway.adapters.implementations.payments.adapter import round_amount
from loris_gateway.adapters.implementations.payments.daraja import (
    generate_password,
    generate_timestamp,
    normalize_phone_number,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("0712345678", "254712345678"),
        ("0112345678", "254112345678"),
        ("712345678", "254712345678"),
        ("254712345678", "254712345678"),
        ("+254712345678", "254712345678"),
        (" 0712 345 678 ", "254712345678"),
        (712345678, "254712345678"),
    ],
)
def test_normalize_phone_number(raw, expected):
    assert normalize_phone_number(raw) == expected


@pytest.mark.parametrize(
    "raw",
    ["0712345678", "712345678", "254712345678", "+254712345678", "0", "", "2547", "00712345678"],
)
def test_normalize_phone_number_is_idempotent(raw):
    once = normalize_phone_number(raw)
    assert normalize_phone_number(once) == once


def test_generate_timestamp_is_fourteen_digits():
    assert re.fullmatch(r"\d{14}", generate_timestamp())


def test_generate_timestamp_uses_east_africa_time():
    now = datetime(2024, 1, 31, 22, 5, 9, tzinfo=timezone.utc)
    assert generate_timestamp(now) == "20240201010509"


def test_generate_password():
    password = generate_password("174379", "passkey", "20240201010509")
    assert base64.b64decode(password).decode() == "174379passkey20240201010509"


@pytest.mark.parametrize("amount, expected", [(100, 100), (99.5, 100), ("10.49", 10), (2.5, 3)])
def test_round_amount_rounds_half_up(amount, expected):
    assert round_amount(amount) == expected
