import logging

from authunpack.common.errors import InvalidTransportError
from authunpack.common.models import AccountRecord, Algorithm, ExportedAccount, MigrationPayload, OtpType
from authunpack.google.extractor import collect_accounts, decode_uri, export_account, missing_batches, redact

from conftest import build_payload_bytes, migration_uri


def _errors(caplog):
    return [r for r in caplog.records if r.levelno >= logging.ERROR]


def test_decode_uri_concrete_account(alice_uri):
    payload, accounts = decode_uri(alice_uri)

    assert len(payload.records) == 1
    assert accounts == [
        ExportedAccount(
            name="alice",
            issuer="Example",
            secret_hex="48656c6c6f",
            type="TOTP",
            algorithm="SHA256",
            digits=8,
            canonical_uri="otpauth://totp/alice?secret=JBSWY3DP&issuer=Example&algorithm=SHA256&digits=8&period=30",
        )
    ]


def test_export_account_resolves_defaults():
    account = export_account(AccountRecord(secret=b"\x0a\xff", name="x", type=OtpType.HOTP, counter=1))

    assert account.secret_hex == "0aff"
    assert account.type == "HOTP"
    assert account.algorithm == "SHA1"
    assert account.digits == 6
    assert account.to_dict()["canonical_uri"].startswith("otpauth://hotp/x?")


def test_partial_failure_keeps_the_good_uri(caplog):
    good = migration_uri(build_payload_bytes({"name": "one"}, {"name": "two"}))
    bad = "https://offline?data=aGVsbG8"

    result = collect_accounts([bad, good])

    assert [a.name for a in result.accounts] == ["one", "two"]
    assert len(result.failures) == 1
    position, error = result.failures[0]
    assert position == 1
    assert isinstance(error, InvalidTransportError)
    assert len(_errors(caplog)) == 1
    assert "input #1" in _errors(caplog)[0].getMessage()


def test_failing_uri_is_not_logged_in_full(caplog):
    long_garbage = "otpauth-migration://offline?data=" + "Q" * 200 + "*"
    collect_accounts([long_garbage])

    message = _errors(caplog)[0].getMessage()
    assert "QQ" not in message
    assert "otpauth-migration://offline?data=..." in message
    assert "malformed payload" in message


def test_redact_hides_the_whole_payload():
    assert redact("otpauth-migration://offline?data=CjEKCkhlbGxv") == "otpauth-migration://offline?data=..."
    assert redact("otpauth-migration://offline?data=") == "otpauth-migration://offline?data="
    assert redact("https://example.com") == "https://example.com"
    assert redact("x" * 50) == "x" * 40 + "..."


def test_accounts_from_several_uris_keep_input_order():
    first = migration_uri(build_payload_bytes({"name": "a"}, {"name": "b"}))
    second = migration_uri(build_payload_bytes({"name": "c", "algorithm": Algorithm.SHA512}))

    result = collect_accounts([first, second])

    assert [a.name for a in result.accounts] == ["a", "b", "c"]
    assert result.accounts[2].algorithm == "SHA512"
    assert len(result.payloads) == 2
    assert result.failures == []


def test_space_in_data_decodes_like_plus():
    # two leading zero bytes line the secret up so it encodes to "++++"
    data = build_payload_bytes({"name": "spaced", "secret": b"\x00\x00" + bytes.fromhex("fbefbe") * 4})
    plus_uri = migration_uri(data, quoted=False)
    assert "+" in plus_uri

    _, with_plus = decode_uri(plus_uri)
    _, with_space = decode_uri(plus_uri.replace("+", " "))
    assert with_plus == with_space


class TestBatches:
    def test_single_qr_exports_are_ignored(self):
        assert missing_batches([MigrationPayload(batch_size=1, batch_id=5)]) == {}

    def test_missing_indices_are_reported(self):
        payloads = [
            MigrationPayload(batch_size=3, batch_index=0, batch_id=7),
            MigrationPayload(batch_size=3, batch_index=2, batch_id=7),
            MigrationPayload(batch_size=2, batch_index=0, batch_id=8),
            MigrationPayload(batch_size=2, batch_index=1, batch_id=8),
        ]
        assert missing_batches(payloads) == {7: [1]}

    def test_incomplete_batch_is_warned_about(self, caplog):
        uri = migration_uri(build_payload_bytes({"name": "a"}, batch_size=2, batch_index=0, batch_id=99))

        result = collect_accounts([uri])

        assert len(result.accounts) == 1
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert "batch 99" in warnings[0].getMessage()
