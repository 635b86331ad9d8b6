"""
Timestamp normalization.

Stored timestamps reach us in several shapes: ISO strings from PostgREST,
epoch numbers from older clients, datetime objects, and SDK timestamp objects
(anything with a to_datetime()/ToDatetime()/toDate() method, or a
{"seconds", "nanoseconds"} mapping). classify() tags the raw value, and
to_instant() maps every tag to a timezone-aware UTC datetime.

to_instant() never raises; anything it cannot read becomes EPOCH_ZERO.
"""

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from typing import Any, Mapping, Optional, Union

logger = logging.getLogger("RenoDesk.Shared.Dates")

EPOCH_ZERO = datetime(1970, 1, 1, tzinfo=timezone.utc)

_TIMESTAMP_METHODS = ("to_datetime", "ToDatetime", "toDate")


@dataclass(frozen=True)
class NativeInstant:
    value: Union[datetime, date]


@dataclass(frozen=True)
class IsoString:
    value: str


@dataclass(frozen=True)
class EpochMillis:
    value: float


@dataclass(frozen=True)
class BackendTimestamp:
    value: Any


@dataclass(frozen=True)
class Unknown:
    value: Any


TimestampLike = Union[NativeInstant, IsoString, EpochMillis, BackendTimestamp, Unknown]


def _is_seconds_mapping(value: Any) -> bool:
    return isinstance(value, Mapping) and "seconds" in value


def classify(value: Any) -> TimestampLike:
    """Tag a raw stored value with the shape it arrived in."""
    if isinstance(value, (datetime, date)):
        return NativeInstant(value)
    if isinstance(value, str):
        return IsoString(value)
    if isinstance(value, bool):
        return Unknown(value)
    if isinstance(value, (int, float)):
        return EpochMillis(value)
    if _is_seconds_mapping(value):
        return BackendTimestamp(value)
    if any(callable(getattr(value, name, None)) for name in _TIMESTAMP_METHODS):
        return BackendTimestamp(value)
    return Unknown(value)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _from_native(value: Union[datetime, date]) -> datetime:
    if isinstance(value, datetime):
        return _as_utc(value)
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def _from_iso(value: str) -> Optional[datetime]:
    text = value.strip()
    if not text:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return _as_utc(datetime.fromisoformat(text))
    except ValueError:
        pass
    # PostgREST may hand back more than six fractional digits
    if "." in text:
        head, _, tail = text.partition(".")
        digits = "".join(ch for ch in tail if ch.isdigit())
        offset = tail[len(digits):]
        try:
            return _as_utc(datetime.fromisoformat(f"{head}.{digits[:6].ljust(6, '0')}{offset}"))
        except ValueError:
            return None
    return None


def _from_epoch_millis(value: float) -> Optional[datetime]:
    if not math.isfinite(value):
        return None
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


def _from_backend(value: Any) -> Optional[datetime]:
    if _is_seconds_mapping(value):
        seconds = float(value.get("seconds") or 0)
        nanos = float(value.get("nanoseconds") or value.get("nanos") or 0)
        return _from_epoch_millis(seconds * 1000 + nanos / 1_000_000)
    for name in _TIMESTAMP_METHODS:
        method = getattr(value, name, None)
        if callable(method):
            converted = method()
            if isinstance(converted, (datetime, date)):
                return _from_native(converted)
            return None
    return None


def to_instant(value: Any) -> datetime:
    """
    Convert any stored timestamp shape into an aware UTC datetime.

    Returns EPOCH_ZERO for None, empty and malformed input.
    """
    tagged = classify(value)
    try:
        if isinstance(tagged, NativeInstant):
            result = _from_native(tagged.value)
        elif isinstance(tagged, IsoString):
            result = _from_iso(tagged.value)
        elif isinstance(tagged, EpochMillis):
            result = _from_epoch_millis(tagged.value)
        elif isinstance(tagged, BackendTimestamp):
            result = _from_backend(tagged.value)
        else:
            result = None
    except Exception as e:
        logger.debug(f"Unreadable timestamp {value!r}: {e}")
        result = None

    return result if result is not None else EPOCH_ZERO


def to_optional_instant(value: Any) -> Optional[datetime]:
    """Like to_instant() but keeps a missing optional date missing."""
    if value is None or value == "":
        return None
    return to_instant(value)


def is_valid_instant(value: Any) -> bool:
    """True for an aware datetime that can be serialized back to ISO form."""
    if not isinstance(value, datetime) or value.tzinfo is None:
        return False
    try:
        value.isoformat()
    except (ValueError, OverflowError):
        return False
    return True


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    return utc_now().isoformat()
