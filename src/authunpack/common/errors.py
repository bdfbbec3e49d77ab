# src/authunpack/common/errors.py


class MigrationError(ValueError):
    """Base class for everything that can go wrong while unpacking one URI."""

    kind = "migration error"


class InvalidTransportError(MigrationError):
    kind = "invalid transport"


class MalformedPayloadError(MigrationError):
    kind = "malformed payload"


class EmptySecretError(MalformedPayloadError):
    kind = "empty secret"
