"""
Filename scheme for metric records.

Each (asset, metric) pair maps to exactly one directory entry:

    <asset>:<metric>.metric

Neither component may contain '/', ':' or NUL, which keeps the mapping
bijective. The reaper's scratch name has no separator, so it can never be
mistaken for a metric.
"""
from dataclasses import dataclass

from shm_metrics.core.errors import InvalidName, NameTooLong, NotAMetricFile


METRIC_SUFFIX = ".metric"
SEPARATOR = ":"
NAME_MAX = 255
PATH_MAX = 4096
TEMP_NAME = ".delete"

_FORBIDDEN = ("/", SEPARATOR, "\0")


@dataclass(frozen=True)
class MetricKey:
    asset: str
    metric: str


def encode_filename(asset: str, metric: str) -> str:
    """
    Build the directory entry name for an (asset, metric) pair.

    Raises:
        NameTooLong: If the encoded name exceeds NAME_MAX bytes
        InvalidName: If either component contains '/', ':' or NUL
    """
    filename = f"{asset}{SEPARATOR}{metric}{METRIC_SUFFIX}"
    if len(filename.encode("utf-8")) > NAME_MAX:
        raise NameTooLong(f"Metric name too long: {len(filename.encode('utf-8'))} > {NAME_MAX} bytes")

    for component in (asset, metric):
        for char in _FORBIDDEN:
            if char in component:
                raise InvalidName(f"Invalid character {char!r} in {component!r}")

    return filename


def decode_filename(filename: str) -> MetricKey:
    """
    Parse a directory entry name back into its (asset, metric) pair.

    Raises:
        NotAMetricFile: If the suffix is missing or the separator count is not one
    """
    if not is_metric_filename(filename):
        raise NotAMetricFile(f"Not a metric file: {filename!r}")

    stem = filename[:-len(METRIC_SUFFIX)]
    if stem.count(SEPARATOR) != 1:
        raise NotAMetricFile(f"Expected exactly one {SEPARATOR!r} in {filename!r}")

    asset, metric = stem.split(SEPARATOR)
    return MetricKey(asset=asset, metric=metric)


def split_asset(filename: str) -> str | None:
    """Asset component of a directory entry, or None when it has no separator."""
    asset, sep, _ = filename.partition(SEPARATOR)
    if not sep:
        return None
    return asset


def is_metric_filename(filename: str) -> bool:
    return len(filename) > len(METRIC_SUFFIX) and filename.endswith(METRIC_SUFFIX)
