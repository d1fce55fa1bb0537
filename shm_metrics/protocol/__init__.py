"""
On-disk formats for shared metrics: filename scheme and fixed-size record.
"""
from .naming import (
    MetricKey,
    encode_filename,
    decode_filename,
    split_asset,
    is_metric_filename,
    METRIC_SUFFIX,
    NAME_MAX,
    TEMP_NAME,
)
from .record import (
    MetricRecord,
    encode_record,
    decode_record,
    decode_ttl,
    RECORD_SIZE,
    PAYLOAD_START,
    PAYLOAD_LEN,
    UNIT_LEN,
)

__all__ = [
    "MetricKey",
    "encode_filename",
    "decode_filename",
    "split_asset",
    "is_metric_filename",
    "METRIC_SUFFIX",
    "NAME_MAX",
    "TEMP_NAME",
    "MetricRecord",
    "encode_record",
    "decode_record",
    "decode_ttl",
    "RECORD_SIZE",
    "PAYLOAD_START",
    "PAYLOAD_LEN",
    "UNIT_LEN",
]
