"""Subscription levels reported by the accounts service."""

from __future__ import annotations

from enum import Enum


class Subscription(Enum):
    """A subscription level; members are ordered as declared."""

    CORE = "core"
    MDN_PLUS_5M = "mdn_plus_5m"
    MDN_PLUS_10M = "mdn_plus_10m"
    MDN_PLUS_5Y = "mdn_plus_5y"
    MDN_PLUS_10Y = "mdn_plus_10y"
    UNKNOWN = "Unknown"

    @classmethod
    def from_value(cls, value: str) -> Subscription:
        """Parse an incoming subscription name; unrecognised names become UNKNOWN."""
        if not isinstance(value, str):
            raise TypeError(f"subscription must be a string, not {type(value).__name__}")
        return _INCOMING.get(value, cls.UNKNOWN)

    def to_json(self) -> str:
        """The name used when the subscription is written out."""
        return self.value

    def db_value(self) -> str:
        """The stored subscription name; UNKNOWN is stored as core."""
        if self is Subscription.UNKNOWN:
            return Subscription.CORE.value
        return self.value

    def _rank(self) -> int:
        return _ORDER[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Subscription):
            return NotImplemented
        return self._rank() < other._rank()

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Subscription):
            return NotImplemented
        return self._rank() <= other._rank()

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Subscription):
            return NotImplemented
        return self._rank() > other._rank()

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Subscription):
            return NotImplemented
        return self._rank() >= other._rank()


_ORDER = {member: rank for rank, member in enumerate(Subscription)}

# The core level is only accepted under its declared name.
_INCOMING = {
    "Core": Subscription.CORE,
    "mdn_plus_5m": Subscription.MDN_PLUS_5M,
    "mdn_plus_10m": Subscription.MDN_PLUS_10M,
    "mdn_plus_5y": Subscription.MDN_PLUS_5Y,
    "mdn_plus_10y": Subscription.MDN_PLUS_10Y,
}