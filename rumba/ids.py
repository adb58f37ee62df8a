"""Short public identifiers for numeric database ids."""

from __future__ import annotations

import functools
import itertools
import math
import re
from dataclasses import dataclass

from .settings import get_settings

DEFAULT_ALPHABET = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ1234567890"
DEFAULT_SEPARATORS = "cfhistuCFHISTU"
ENCODED_ID_LENGTH = 4

_SEPARATOR_RATIO = 3.5
_GUARD_RATIO = 12
_MIN_ALPHABET_LENGTH = 16
_U64 = 1 << 64
_I64_SIGN = 1 << 63


class MalformedIdError(ValueError):
    """An encoded identifier could not be decoded."""


def _shuffle(alphabet: str, salt: str) -> str:
    if not salt:
        return alphabet
    chars = list(alphabet)
    total = 0
    positions = range(len(chars) - 1, 0, -1)
    for i, (index, salt_char) in zip(positions, itertools.cycle(enumerate(salt))):
        code = ord(salt_char)
        total += code
        j = (code + index + total) % i
        chars[i], chars[j] = chars[j], chars[i]
    return "".join(chars)


def _hash(number: int, alphabet: str) -> str:
    base = len(alphabet)
    digits = []
    while True:
        number, rest = divmod(number, base)
        digits.append(alphabet[rest])
        if not number:
            return "".join(reversed(digits))


def _unhash(text: str, alphabet: str) -> int:
    base = len(alphabet)
    number = 0
    for char in text:
        number = number * base + alphabet.index(char)
    return number


def _char_class(chars: str) -> re.Pattern[str]:
    return re.compile("[" + re.escape(chars) + "]")


class Hashids:
    """Reversible encoding of non-negative integers into short strings."""

    def __init__(
        self, salt: str = "", min_length: int = 0, alphabet: str = DEFAULT_ALPHABET
    ) -> None:
        if min_length < 0:
            raise ValueError("minimum length must not be negative")
        unique = "".join(dict.fromkeys(alphabet))
        if len(unique) < _MIN_ALPHABET_LENGTH:
            raise ValueError(
                f"alphabet must contain at least {_MIN_ALPHABET_LENGTH} unique characters"
            )
        if " " in unique:
            raise ValueError("alphabet must not contain spaces")

        separators = "".join(c for c in DEFAULT_SEPARATORS if c in unique)
        alphabet = "".join(c for c in unique if c not in separators)
        separators = _shuffle(separators, salt)

        missing = math.ceil(len(alphabet) / _SEPARATOR_RATIO) - len(separators)
        if missing > 0:
            separators += alphabet[:missing]
            alphabet = alphabet[missing:]

        alphabet = _shuffle(alphabet, salt)
        guard_count = math.ceil(len(alphabet) / _GUARD_RATIO)
        if len(alphabet) < 3:
            guards, separators = separators[:guard_count], separators[guard_count:]
        else:
            guards, alphabet = alphabet[:guard_count], alphabet[guard_count:]

        self._salt = salt
        self._min_length = min_length
        self._alphabet = alphabet
        self._separators = separators
        self._guards = guards
        self._separator_re = _char_class(separators)
        self._guard_re = _char_class(guards)

    def encode(self, *args: int) -> str:
        """Encode non-negative integers; no arguments give an empty string."""
        for value in args:
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValueError(f"cannot encode {value!r}: expected a non-negative integer")
        if not args:
            return ""

        alphabet = self._alphabet
        values_hash = sum(value % (i + 100) for i, value in enumerate(args))
        lottery = alphabet[values_hash % len(alphabet)]
        pieces = [lottery]
        for i, value in enumerate(args):
            alphabet = _shuffle(alphabet, (lottery + self._salt + alphabet)[: len(alphabet)])
            hashed = _hash(value, alphabet)
            pieces.append(hashed)
            value %= ord(hashed[0]) + i
            pieces.append(self._separators[value % len(self._separators)])
        encoded = "".join(pieces[:-1])

        if len(encoded) >= self._min_length:
            return encoded
        return self._pad(encoded, alphabet, values_hash)

    def _pad(self, encoded: str, alphabet: str, values_hash: int) -> str:
        guards = self._guards
        encoded = guards[(values_hash + ord(encoded[0])) % len(guards)] + encoded
        if len(encoded) < self._min_length:
            encoded += guards[(values_hash + ord(encoded[2])) % len(guards)]
        half = len(alphabet) // 2
        while len(encoded) < self._min_length:
            alphabet = _shuffle(alphabet, alphabet)
            encoded = alphabet[half:] + encoded + alphabet[:half]
            excess = len(encoded) - self._min_length
            if excess > 0:
                start = excess // 2
                encoded = encoded[start : start + self._min_length]
        return encoded

    def decode(self, hashid: str) -> tuple[int, ...]:
        """Decode a string made by :meth:`encode`; anything else raises MalformedIdError."""
        if not isinstance(hashid, str) or not hashid:
            raise MalformedIdError(f"malformed id {hashid!r}")
        parts = self._guard_re.split(hashid)
        core = parts[1] if 2 <= len(parts) <= 3 else parts[0]
        if not core:
            raise MalformedIdError(f"malformed id {hashid!r}")

        lottery, body = core[0], core[1:]
        alphabet = self._alphabet
        numbers = []
        for part in self._separator_re.split(body):
            alphabet = _shuffle(alphabet, (lottery + self._salt + alphabet)[: len(alphabet)])
            try:
                numbers.append(_unhash(part, alphabet))
            except ValueError:
                raise MalformedIdError(f"malformed id {hashid!r}") from None

        result = tuple(numbers)
        if self.encode(*result) != hashid:
            raise MalformedIdError(f"malformed id {hashid!r}")
        return result


@functools.cache
def default_codec() -> Hashids:
    """The codec configured with the application's salt."""
    salt = get_settings().application.encoded_id_salt
    return Hashids(salt=salt, min_length=ENCODED_ID_LENGTH)


@dataclass(frozen=True)
class EncodedId:
    """An identifier as it appears in URLs."""

    id: str

    def get(self, codec: Hashids | None = None) -> int:
        """Decode this identifier to its numeric id."""
        return EncodedId.decode(self.id, codec)

    @staticmethod
    def encode(val: int, codec: Hashids | None = None) -> str:
        """Encode a signed 64-bit id."""
        return (codec if codec is not None else default_codec()).encode(val % _U64)

    @staticmethod
    def decode(val: str, codec: Hashids | None = None) -> int:
        """Decode an encoded id back to a signed 64-bit id."""
        values = (codec if codec is not None else default_codec()).decode(val)
        if not values or any(v >= _U64 for v in values):
            raise MalformedIdError(f"malformed id {val!r}")
        first = values[0]
        return first - _U64 if first >= _I64_SIGN else first