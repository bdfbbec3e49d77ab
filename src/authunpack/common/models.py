# src/authunpack/common/models.py

from dataclasses import dataclass, asdict
from enum import IntEnum
from typing import Tuple, Dict, Any


class Algorithm(IntEnum):
    UNSPECIFIED = 0
    SHA1 = 1
    SHA256 = 2
    SHA512 = 3
    MD5 = 4


class DigitCount(IntEnum):
    UNSPECIFIED = 0
    SIX = 1
    EIGHT = 2


class OtpType(IntEnum):
    UNSPECIFIED = 0
    HOTP = 1
    TOTP = 2


@dataclass(frozen=True)
class AccountRecord:
    """One credential exactly as it was transferred, enums possibly UNSPECIFIED."""

    secret: bytes
    name: str = ""
    issuer: str = ""
    algorithm: Algorithm = Algorithm.UNSPECIFIED
    digits: DigitCount = DigitCount.UNSPECIFIED
    type: OtpType = OtpType.UNSPECIFIED
    counter: int = 0


@dataclass(frozen=True)
class NormalizedRecord:
    """An AccountRecord whose algorithm, digits and type are all concrete."""

    secret: bytes
    name: str
    issuer: str
    algorithm: Algorithm
    digits: DigitCount
    type: OtpType
    counter: int = 0

    @property
    def digit_count(self) -> int:
        return 8 if self.digits is DigitCount.EIGHT else 6

    @property
    def type_name(self) -> str:
        return self.type.name.lower()


@dataclass(frozen=True)
class MigrationPayload:
    records: Tuple[AccountRecord, ...] = ()
    version: int = 0
    batch_size: int = 0
    batch_index: int = 0
    batch_id: int = 0


@dataclass(frozen=True)
class ExportedAccount:
    # Flat record handed to the report renderers
    name: str
    issuer: str
    secret_hex: str
    type: str
    algorithm: str
    digits: int
    canonical_uri: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
