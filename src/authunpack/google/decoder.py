# src/authunpack/google/decoder.py

import logging
from typing import Type

from google.protobuf import descriptor_pb2
from google.protobuf import descriptor_pool
from google.protobuf import message_factory
from google.protobuf.message import DecodeError, Message
from google.protobuf.unknown_fields import UnknownFieldSet

from authunpack.common.errors import EmptySecretError, MalformedPayloadError
from authunpack.common.models import (
    AccountRecord,
    Algorithm,
    DigitCount,
    MigrationPayload,
    OtpType,
)

logger = logging.getLogger(__name__)

_FDP = descriptor_pb2.FieldDescriptorProto

PROTO_PACKAGE = "authunpack"
PAYLOAD_MESSAGE = "MigrationPayload"
OTP_MESSAGE = "OtpParameters"

# (name, number, type). The three enums are declared as int32 so that raw
# values reach us untouched and can be validated against our own IntEnums.
OTP_PARAMETER_FIELDS = (
    ("secret", 1, _FDP.TYPE_BYTES),
    ("name", 2, _FDP.TYPE_STRING),
    ("issuer", 3, _FDP.TYPE_STRING),
    ("algorithm", 4, _FDP.TYPE_INT32),
    ("digits", 5, _FDP.TYPE_INT32),
    ("type", 6, _FDP.TYPE_INT32),
    ("counter", 7, _FDP.TYPE_UINT64),
)

BATCH_FIELDS = (
    ("version", 2, _FDP.TYPE_INT32),
    ("batch_size", 3, _FDP.TYPE_INT32),
    ("batch_index", 4, _FDP.TYPE_INT32),
    ("batch_id", 5, _FDP.TYPE_INT32),
)

OTP_FIELD_NUMBERS = frozenset(f_num for _, f_num, _ in OTP_PARAMETER_FIELDS)
PAYLOAD_FIELD_NUMBERS = frozenset([1] + [f_num for _, f_num, _ in BATCH_FIELDS])


def _build_file_descriptor() -> descriptor_pb2.FileDescriptorProto:
    file_descriptor_proto = descriptor_pb2.FileDescriptorProto()
    file_descriptor_proto.name = "authunpack/migration_payload.proto"
    file_descriptor_proto.package = PROTO_PACKAGE
    file_descriptor_proto.syntax = "proto3"

    msg = file_descriptor_proto.message_type.add()
    msg.name = PAYLOAD_MESSAGE

    inner_msg = msg.nested_type.add()
    inner_msg.name = OTP_MESSAGE
    for f_name, f_num, f_type in OTP_PARAMETER_FIELDS:
        f = inner_msg.field.add()
        f.name, f.number, f.label, f.type = f_name, f_num, _FDP.LABEL_OPTIONAL, f_type

    f = msg.field.add()
    f.name, f.number, f.label, f.type = "otp_parameters", 1, _FDP.LABEL_REPEATED, _FDP.TYPE_MESSAGE
    f.type_name = f".{PROTO_PACKAGE}.{PAYLOAD_MESSAGE}.{OTP_MESSAGE}"

    for f_name, f_num, f_type in BATCH_FIELDS:
        f = msg.field.add()
        f.name, f.number, f.label, f.type = f_name, f_num, _FDP.LABEL_OPTIONAL, f_type

    return file_descriptor_proto


def get_payload_class() -> Type[Message]:
    """
    Return the protobuf message class for the migration payload, registering
    its descriptor in the default pool on first use.
    """
    pool = descriptor_pool.Default()
    full_name = f"{PROTO_PACKAGE}.{PAYLOAD_MESSAGE}"
    try:
        return message_factory.GetMessageClass(pool.FindMessageTypeByName(full_name))
    except KeyError:
        pass

    pool.Add(_build_file_descriptor())
    return message_factory.GetMessageClass(pool.FindMessageTypeByName(full_name))


def _check_wire_types(message, known_numbers, where: str) -> None:
    # a schema field with the wrong wire type lands among the unknown fields
    for unknown in UnknownFieldSet(message):
        if unknown.field_number in known_numbers:
            raise MalformedPayloadError(
                f"{where} has field {unknown.field_number} with unexpected wire type {unknown.wire_type}"
            )


def _enum_member(enum_cls, raw: int, field: str, position: int):
    try:
        return enum_cls(raw)
    except ValueError:
        raise MalformedPayloadError(
            f"account #{position} has unknown {field} value {raw}"
        ) from None


def _to_record(otp, position: int) -> AccountRecord:
    _check_wire_types(otp, OTP_FIELD_NUMBERS, f"account #{position}")
    if not otp.secret:
        raise EmptySecretError(f"account #{position} ({otp.name!r}) has an empty secret")

    return AccountRecord(
        secret=bytes(otp.secret),
        name=otp.name,
        issuer=otp.issuer,
        algorithm=_enum_member(Algorithm, otp.algorithm, "algorithm", position),
        digits=_enum_member(DigitCount, otp.digits, "digits", position),
        type=_enum_member(OtpType, otp.type, "type", position),
        counter=otp.counter,
    )


def decode(data: bytes) -> MigrationPayload:
    """Parse migration payload bytes into a MigrationPayload."""
    payload = get_payload_class()()
    try:
        payload.ParseFromString(bytes(data))
    except DecodeError as e:
        raise MalformedPayloadError(f"the payload is not a valid migration message: {e}") from e
    _check_wire_types(payload, PAYLOAD_FIELD_NUMBERS, "the payload")

    records = tuple(
        _to_record(otp, position)
        for position, otp in enumerate(payload.otp_parameters, 1)
    )
    logger.debug(
        "Decoded %d account(s), batch %d/%d (id %d, version %d)",
        len(records),
        payload.batch_index + 1,
        payload.batch_size,
        payload.batch_id,
        payload.version,
    )
    return MigrationPayload(
        records=records,
        version=payload.version,
        batch_size=payload.batch_size,
        batch_index=payload.batch_index,
        batch_id=payload.batch_id,
    )
