"""Conversions applied to values read from or written to JSON."""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from typing import Any

from .ids import EncodedId, Hashids, MalformedIdError

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_I64_MIN = -(1 << 63)
_I64_MAX = (1 << 63) - 1


def _failure(value: Any, unit: str) -> str:
    return f"failed to parse `{value}` as UTC datetime (in {unit})"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _from_epoch(secs: int, micros: int, value: Any, unit: str) -> datetime:
    try:
        return _EPOCH + timedelta(seconds=secs, microseconds=micros)
    except OverflowError:
        raise ValueError(_failure(value, unit)) from None


def string_or_list(value: Any) -> list[Any]:
    """Return a list unchanged (as a new list), or wrap a single value in one."""
    if isinstance(value, list):
        return list(value)
    return [value]


def utc_from_seconds(value: int | float) -> datetime:
    """Read a UTC datetime from a count of seconds; fractions keep whole milliseconds."""
    if not _is_number(value):
        raise ValueError(_failure(value, "seconds"))
    if isinstance(value, int) and _I64_MIN <= value <= _I64_MAX:
        return _from_epoch(value, 0, value, "seconds")
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(_failure(value, "seconds"))
    secs = math.trunc(number)
    fraction = number - secs
    # Negative fractions saturate to zero milliseconds.
    millis = max(0, math.trunc(fraction * 1000.0))
    return _from_epoch(secs, millis * 1000, value, "seconds")


def utc_from_milliseconds(value: int) -> datetime:
    """Read a UTC datetime from an integer count of milliseconds."""
    if not (isinstance(value, int) and not isinstance(value, bool)):
        raise ValueError(_failure(value, "milliseconds"))
    if not _I64_MIN <= value <= _I64_MAX:
        raise ValueError(_failure(value, "milliseconds"))
    secs = abs(value) // 1000 * (1 if value >= 0 else -1)
    rest = value - secs * 1000
    if rest < 0:
        raise ValueError(_failure(value, "milliseconds"))
    return _from_epoch(secs, rest * 1000, value, "milliseconds")


def utc_to_milliseconds(dt: datetime) -> int:
    """The number of milliseconds since the epoch; naive values are taken as UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return (dt - _EPOCH) // timedelta(milliseconds=1)


def naive_to_utc(naive: datetime) -> str:
    """Format a datetime taken as UTC in RFC 3339 form with a ``Z`` suffix."""
    if naive.tzinfo is not None:
        naive = naive.astimezone(timezone.utc).replace(tzinfo=None)
    text = (
        f"{naive.year:04d}-{naive.month:02d}-{naive.day:02d}"
        f"T{naive.hour:02d}:{naive.minute:02d}:{naive.second:02d}"
    )
    micros = naive.microsecond
    if micros:
        if micros % 1000 == 0:
            text += f".{micros // 1000:03d}"
        else:
            text += f".{micros:06d}"
    return text + "Z"


def maybe_naive_to_utc(naive: datetime | None) -> str | None:
    """Like :func:`naive_to_utc`, passing None through."""
    return None if naive is None else naive_to_utc(naive)


def _split_commas(value: Any) -> list[str]:
    if not isinstance(value, str):
        raise TypeError(f"expected a string, not {type(value).__name__}")
    return [part for part in value.split(",") if part]


def array_like_maybe(value: str | None) -> list[str] | None:
    """Split a comma separated string, dropping empty parts; None stays None."""
    if value is None:
        return None
    return _split_commas(value)


def decode_ids_maybe(value: str | None, codec: Hashids | None = None) -> list[int] | None:
    """Decode comma separated encoded ids; any malformed id yields an empty list."""
    if value is None:
        return None
    try:
        return [EncodedId.decode(part, codec) for part in _split_commas(value)]
    except MalformedIdError:
        return []