# src/authunpack/google/transport.py

import base64
import binascii
from urllib.parse import urlparse, parse_qs

from authunpack.common.errors import InvalidTransportError, MalformedPayloadError

MIGRATION_SCHEME = "otpauth-migration"
MIGRATION_HOST = "offline"


def unwrap(uri: str) -> bytes:
    """
    Return the raw payload bytes carried in the ``data`` parameter of an
    ``otpauth-migration://offline?data=...`` URI.
    """
    parsed_uri = urlparse(uri.strip())
    if parsed_uri.scheme != MIGRATION_SCHEME or parsed_uri.netloc != MIGRATION_HOST:
        raise InvalidTransportError(
            f"expected a {MIGRATION_SCHEME}://{MIGRATION_HOST} URI, "
            f"got scheme {parsed_uri.scheme!r} and host {parsed_uri.netloc!r}"
        )

    query_params = parse_qs(parsed_uri.query)
    data_list = query_params.get("data")
    if not data_list or not data_list[0]:
        raise MalformedPayloadError("the URI has no 'data' parameter")

    # parse_qs turns a literal '+' into a space
    encoded_data = data_list[0].replace(" ", "+")

    # QR readers often drop the trailing padding
    padding_needed = len(encoded_data) % 4
    if padding_needed:
        encoded_data += "=" * (4 - padding_needed)

    try:
        return base64.b64decode(encoded_data, validate=True)
    except binascii.Error as e:
        raise MalformedPayloadError(f"the 'data' parameter is not valid base64: {e}") from e
