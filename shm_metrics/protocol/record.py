"""
Fixed-size record format for a single metric.

Every record is exactly RECORD_SIZE (128) bytes so that one write() replaces
it atomically for concurrent readers:

    Offset | Size | Type     | Description
    -------|------|----------|------------
    0      | 10   | ascii    | TTL in seconds, zero-padded decimal
    10     | 1    | '\\n'     | Separator
    11     | 10   | ascii    | Unit, right-padded with spaces
    21     | 1    | '\\n'     | Separator
    22     | 106  | utf-8    | Value, NUL-padded

There is no timestamp field: the file's modification time is the write time.
"""
from dataclasses import dataclass

from shm_metrics.core.errors import InvalidTTL, InvalidValue, Malformed, UnitTooLong, ValueTooLong


RECORD_SIZE = 128

TTL_LEN = 10
TTL_MAX = 10 ** TTL_LEN - 1

UNIT_START = TTL_LEN + 1
UNIT_LEN = 10

PAYLOAD_START = UNIT_START + UNIT_LEN + 1
PAYLOAD_LEN = RECORD_SIZE - PAYLOAD_START


@dataclass(frozen=True)
class MetricRecord:
    ttl: int
    unit: str | None
    value: str


def encode_record(ttl: int, unit: str, value: str) -> bytes:
    """
    Pack ttl, unit and value into a RECORD_SIZE buffer.

    A negative ttl is stored as 0 (never expires).

    Raises:
        InvalidTTL: If ttl does not fit in TTL_LEN digits
        UnitTooLong: If the encoded unit exceeds UNIT_LEN bytes
        ValueTooLong: If the encoded value exceeds PAYLOAD_LEN bytes
        InvalidValue: If value or unit contain NUL, or unit contains a newline
    """
    ttl = max(int(ttl), 0)
    if ttl > TTL_MAX:
        raise InvalidTTL(f"TTL {ttl} exceeds {TTL_MAX}")

    unit_bytes = unit.encode("utf-8")
    value_bytes = value.encode("utf-8")

    if len(value_bytes) > PAYLOAD_LEN:
        raise ValueTooLong(f"Value too long: {len(value_bytes)} > {PAYLOAD_LEN} bytes")
    if len(unit_bytes) > UNIT_LEN:
        raise UnitTooLong(f"Unit too long: {len(unit_bytes)} > {UNIT_LEN} bytes")
    if b"\0" in value_bytes:
        raise InvalidValue("Value must not contain NUL bytes")
    if b"\0" in unit_bytes or b"\n" in unit_bytes:
        raise InvalidValue("Unit must not contain NUL or newline")

    return b"".join((
        str(ttl).zfill(TTL_LEN).encode("ascii"),
        b"\n",
        unit_bytes.ljust(UNIT_LEN, b" "),
        b"\n",
        value_bytes.ljust(PAYLOAD_LEN, b"\0"),
    ))


def decode_ttl(data: bytes) -> int:
    """
    Parse the ttl field from the start of a record.

    Raises:
        Malformed: If the field is short or not all ASCII digits
    """
    field = data[:TTL_LEN]
    if len(field) != TTL_LEN or not field.isdigit():
        raise Malformed(f"Invalid ttl field: {field!r}")
    return int(field)


def decode_record(data: bytes, need_unit: bool = True) -> MetricRecord:
    """
    Unpack a RECORD_SIZE buffer.

    Args:
        data: Raw record bytes
        need_unit: When False the unit field is not decoded and is returned as None

    Raises:
        Malformed: If the buffer size is wrong, the ttl is not numeric or
                   the text fields are not valid UTF-8
    """
    if len(data) != RECORD_SIZE:
        raise Malformed(f"Record size mismatch: expected {RECORD_SIZE} bytes, got {len(data)}")

    ttl = decode_ttl(data)

    try:
        unit = None
        if need_unit:
            unit = data[UNIT_START:UNIT_START + UNIT_LEN + 1].rstrip(b" \n").decode("utf-8")
        value = data[PAYLOAD_START:].split(b"\0", 1)[0].decode("utf-8")
    except UnicodeDecodeError as e:
        raise Malformed(f"Record text is not valid UTF-8: {e}") from e

    return MetricRecord(ttl=ttl, unit=unit, value=value)
