import base64
from urllib.parse import quote

import pytest

from authunpack.google.decoder import get_payload_class


def build_payload_bytes(*accounts, **batch) -> bytes:
    """Serialize account dicts (and optional batch fields) with the decoder's own message class."""
    payload = get_payload_class()()
    for params in accounts:
        otp = payload.otp_parameters.add()
        otp.secret = params.get("secret", b"TESTSECRET")
        otp.name = params.get("name", "user@example.com")
        otp.issuer = params.get("issuer", "")
        otp.algorithm = int(params.get("algorithm", 0))
        otp.digits = int(params.get("digits", 0))
        otp.type = int(params.get("type", 0))
        otp.counter = params.get("counter", 0)
    for key, value in batch.items():
        setattr(payload, key, value)
    return payload.SerializeToString()


def migration_uri(data: bytes, quoted: bool = True) -> str:
    b64 = base64.b64encode(data).decode()
    if quoted:
        b64 = quote(b64, safe="")
    return f"otpauth-migration://offline?data={b64}"


# Raw wire helpers for payloads the message class will not produce


def varint(n: int) -> bytes:
    out = bytearray()
    while True:
        to_write = n & 0x7F
        n >>= 7
        if n:
            out.append(to_write | 0x80)
        else:
            out.append(to_write)
            break
    return bytes(out)


def varint_field(tag: int, value: int) -> bytes:
    return varint(tag << 3) + varint(value)


def len_delimited(tag: int, payload: bytes) -> bytes:
    return varint((tag << 3) | 2) + varint(len(payload)) + payload


@pytest.fixture
def alice_uri():
    from authunpack.common.models import Algorithm, DigitCount, OtpType

    data = build_payload_bytes({
        "secret": bytes.fromhex("48656c6c6f"),
        "name": "alice",
        "issuer": "Example",
        "algorithm": Algorithm.SHA256,
        "digits": DigitCount.EIGHT,
        "type": OtpType.TOTP,
    })
    return migration_uri(data)
