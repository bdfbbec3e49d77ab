# src/authunpack/google/extractor.py

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Tuple

from authunpack.common.errors import MigrationError
from authunpack.common.models import AccountRecord, ExportedAccount, MigrationPayload
from authunpack.google.decoder import decode
from authunpack.google.otpauth import normalize, reconstruct
from authunpack.google.transport import unwrap

logger = logging.getLogger(__name__)

# How much of a failing URI to echo back when it has no data parameter
REDACTED_PREFIX_LENGTH = 40


@dataclass
class ExtractionResult:
    accounts: List[ExportedAccount] = field(default_factory=list)
    failures: List[Tuple[int, MigrationError]] = field(default_factory=list)
    payloads: List[MigrationPayload] = field(default_factory=list)


def export_account(record: AccountRecord) -> ExportedAccount:
    normalized = normalize(record)
    return ExportedAccount(
        name=normalized.name,
        issuer=normalized.issuer,
        secret_hex=normalized.secret.hex(),
        type=normalized.type.name,
        algorithm=normalized.algorithm.name,
        digits=normalized.digit_count,
        canonical_uri=reconstruct(normalized),
    )


def decode_uri(uri: str) -> Tuple[MigrationPayload, List[ExportedAccount]]:
    """Run one migration URI through unwrap, decode, normalize and reconstruct."""
    payload = decode(unwrap(uri))
    return payload, [export_account(record) for record in payload.records]


def redact(uri: str) -> str:
    uri = uri.strip()
    head, sep, payload = uri.partition("data=")
    if sep:
        # the payload carries the secrets
        return head + sep + ("..." if payload else "")
    if len(uri) <= REDACTED_PREFIX_LENGTH:
        return uri
    return uri[:REDACTED_PREFIX_LENGTH] + "..."


def missing_batches(payloads: Iterable[MigrationPayload]) -> Dict[int, List[int]]:
    """
    For multi-QR exports, map each batch id to the batch indices that were
    never supplied. Complete or single-QR exports do not appear.
    """
    seen: Dict[int, set] = {}
    sizes: Dict[int, int] = {}
    for payload in payloads:
        if payload.batch_size <= 1:
            continue
        seen.setdefault(payload.batch_id, set()).add(payload.batch_index)
        sizes[payload.batch_id] = max(sizes.get(payload.batch_id, 0), payload.batch_size)

    missing = {}
    for batch_id, indices in seen.items():
        gaps = [i for i in range(sizes[batch_id]) if i not in indices]
        if gaps:
            missing[batch_id] = gaps
    return missing


def collect_accounts(uris: Iterable[str]) -> ExtractionResult:
    """
    Decode every URI in order. A URI that fails is logged and contributes no
    accounts; the others are unaffected.
    """
    result = ExtractionResult()
    for position, uri in enumerate(uris, 1):
        try:
            payload, accounts = decode_uri(uri)
        except MigrationError as e:
            logger.error("Skipping input #%d (%s): %s [%s]", position, e.kind, e, redact(uri))
            result.failures.append((position, e))
            continue

        logger.debug("Input #%d yielded %d account(s)", position, len(accounts))
        result.payloads.append(payload)
        result.accounts.extend(accounts)

    for batch_id, gaps in missing_batches(result.payloads).items():
        logger.warning(
            "Export batch %d is incomplete: QR code(s) %s were not supplied",
            batch_id,
            ", ".join(str(i + 1) for i in gaps),
        )
    return result
