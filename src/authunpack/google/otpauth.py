# src/authunpack/google/otpauth.py

import base64
from typing import Union
from urllib.parse import quote

from authunpack.common.models import (
    AccountRecord,
    Algorithm,
    DigitCount,
    NormalizedRecord,
    OtpType,
)

DEFAULT_ALGORITHM = Algorithm.SHA1
DEFAULT_DIGITS = DigitCount.SIX
DEFAULT_TYPE = OtpType.TOTP
TOTP_PERIOD = 30

# Characters encodeURIComponent leaves alone on top of quote()'s defaults
_URI_COMPONENT_SAFE = "!*'()"


def normalize(record: Union[AccountRecord, NormalizedRecord]) -> NormalizedRecord:
    """Resolve UNSPECIFIED enum values to the conventional defaults."""
    return NormalizedRecord(
        secret=record.secret,
        name=record.name,
        issuer=record.issuer,
        algorithm=Algorithm(record.algorithm) or DEFAULT_ALGORITHM,
        digits=DigitCount(record.digits) or DEFAULT_DIGITS,
        type=OtpType(record.type) or DEFAULT_TYPE,
        counter=record.counter,
    )


def secret_to_base32(secret: bytes) -> str:
    return base64.b32encode(secret).decode("ascii").rstrip("=")


def _encode_component(value: str) -> str:
    return quote(value, safe=_URI_COMPONENT_SAFE)


def reconstruct(record: NormalizedRecord) -> str:
    """
    Build the canonical ``otpauth://`` provisioning URI for a normalized record.

    Parameters always come out in the same order: secret, issuer, algorithm,
    digits, then counter (hotp) or period (totp).
    """
    otp_type = record.type_name
    query_params = [f"secret={secret_to_base32(record.secret)}"]

    if record.issuer:
        query_params.append(f"issuer={_encode_component(record.issuer)}")

    query_params.append(f"algorithm={record.algorithm.name}")
    query_params.append(f"digits={record.digit_count}")

    if otp_type == "hotp" and record.counter:
        query_params.append(f"counter={record.counter}")

    if otp_type == "totp":
        query_params.append(f"period={TOTP_PERIOD}")

    return f"otpauth://{otp_type}/{_encode_component(record.name)}?" + "&".join(query_params)
