"""
NFUID codec.

A packed identifier is one unsigned integer, most significant bit first::

    [ flag:1 ][ header:6 ][ timestamp:N (optional) ][ random:M ]

The flag is always 1 so the value's minimal binary form gives the exact
width. The header carries N XOR the low 6 random bits, and the timestamp is
XORed with the top N random bits. Both pads stay readable in the random
field, so a decoder recovers N and M from the value alone.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from core.bigint import get_arithmetic
from core.errors import ConfigurationError, DecodeError, MalformedIdError
from utils.entropy import SystemRandomSource
from utils.timestamp import UNITS, format_datetime, now_millis, now_seconds, timestamp_to_datetime

DEFAULT_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
DEFAULT_TIMESTAMP_LENGTH = 43
DEFAULT_ENTROPY_LENGTH = 78
DEFAULT_TIMESTAMP_UNIT = "ms"

HEADER_BITS = 6
FLAG_BITS = 1
MAX_TIMESTAMP_LENGTH = (1 << HEADER_BITS) - 1

_CLOCKS = {"ms": now_millis, "s": now_seconds}


@dataclass(frozen=True)
class DecodedId:
    """Fields recovered from one identifier."""

    timestamp_length: int
    timestamp: int
    random_length: int
    random: str
    formatted_timestamp: Optional[datetime]
    binary: str

    def to_dict(self):
        formatted = self.formatted_timestamp
        return {
            "timestamp_length": self.timestamp_length,
            "timestamp": self.timestamp,
            "random_length": self.random_length,
            "random": self.random,
            "formatted_timestamp": format_datetime(formatted) if formatted is not None else None,
            "binary": self.binary,
        }


def validate_alphabet(alphabet):
    """Raise ConfigurationError unless ``alphabet`` is usable as a digit set."""
    if not isinstance(alphabet, str) or len(alphabet) < 2:
        raise ConfigurationError(
            "Base alphabet must be a string of at least 2 characters", option="base_alphabet"
        )
    for char in alphabet:
        if not "\x21" <= char <= "\x7e":
            raise ConfigurationError(
                "Base alphabet must contain only valid ASCII characters without whitespace",
                option="base_alphabet",
                context={"character": char},
            )
    if len(set(alphabet)) != len(alphabet):
        raise ConfigurationError(
            "Base alphabet must not contain duplicate characters", option="base_alphabet"
        )


def _is_int(value):
    return isinstance(value, int) and not isinstance(value, bool)


def encoded_length(total_bits, radix):
    """Characters needed to hold ``total_bits`` bits in base ``radix``."""
    return math.ceil(total_bits / math.log2(radix))


class NFUID:
    """Generate and decode self-describing identifiers.

    Instances hold only read-only state, so one codec can be shared between
    threads. ``random_source`` needs ``fill(bytearray)``; ``clock`` is a
    callable returning an integer count of ``timestamp_unit`` since the epoch.
    """

    __slots__ = (
        "_alphabet",
        "_char_index",
        "_radix",
        "_timestamp_bits",
        "_entropy_bits",
        "_unit",
        "_math",
        "_random_source",
        "_clock",
        "_length",
    )

    def __init__(
        self,
        base_alphabet=DEFAULT_ALPHABET,
        timestamp_length=DEFAULT_TIMESTAMP_LENGTH,
        entropy_length=DEFAULT_ENTROPY_LENGTH,
        timestamp_unit=DEFAULT_TIMESTAMP_UNIT,
        arithmetic="native",
        random_source=None,
        clock=None,
    ):
        validate_alphabet(base_alphabet)

        if not _is_int(timestamp_length) or not 0 <= timestamp_length <= MAX_TIMESTAMP_LENGTH:
            raise ConfigurationError(
                f"Timestamp length must be between 0 and {MAX_TIMESTAMP_LENGTH} bits",
                option="timestamp_length",
            )

        if not _is_int(entropy_length) or entropy_length < HEADER_BITS + timestamp_length:
            raise ConfigurationError(
                f"Entropy length must be at least {HEADER_BITS + timestamp_length} bits "
                f"(timestamp + {HEADER_BITS} bits)",
                option="entropy_length",
            )

        if timestamp_unit not in UNITS:
            raise ConfigurationError(
                f"Timestamp unit must be one of {UNITS}, got {timestamp_unit!r}",
                option="timestamp_unit",
            )

        self._alphabet = base_alphabet
        self._char_index = {char: i for i, char in enumerate(base_alphabet)}
        self._radix = len(base_alphabet)
        self._timestamp_bits = timestamp_length
        self._entropy_bits = entropy_length
        self._unit = timestamp_unit
        self._math = get_arithmetic(arithmetic)
        self._random_source = random_source or SystemRandomSource()
        self._clock = clock or _CLOCKS[timestamp_unit]
        self._length = encoded_length(self.total_bits, self._radix)

    @classmethod
    def from_config(cls, config, **collaborators):
        """Build a codec from a ``CodecConfig``."""
        return cls(
            base_alphabet=config.base_alphabet,
            timestamp_length=config.timestamp_length,
            entropy_length=config.entropy_length,
            timestamp_unit=config.timestamp_unit,
            arithmetic=config.arithmetic,
            **collaborators,
        )

    @property
    def alphabet(self):
        return self._alphabet

    @property
    def radix(self):
        return self._radix

    @property
    def timestamp_length(self):
        return self._timestamp_bits

    @property
    def entropy_length(self):
        return self._entropy_bits

    @property
    def timestamp_unit(self):
        return self._unit

    @property
    def arithmetic(self):
        return self._math.name

    @property
    def total_bits(self):
        return FLAG_BITS + HEADER_BITS + self._timestamp_bits + self._entropy_bits

    @property
    def length(self):
        """Length of every generated identifier."""
        return self._length

    def __repr__(self):
        return (
            f"NFUID(radix={self._radix}, timestamp_length={self._timestamp_bits}, "
            f"entropy_length={self._entropy_bits}, unit={self._unit!r}, arithmetic={self.arithmetic!r})"
        )

    def _random_bits(self, bits):
        m = self._math
        buffer = bytearray((bits + 7) // 8)
        self._random_source.fill(buffer)
        value = m.from_int(0)
        byte_base = m.from_int(256)
        for byte in buffer:
            value = m.add(m.mul(value, byte_base), m.from_int(byte))
        return m.bit_and(value, m.mask(bits))

    def generate(self):
        """Return a fresh identifier string."""
        m = self._math
        rand = self._random_bits(self._entropy_bits)

        header_pad = m.bit_and(rand, m.mask(HEADER_BITS))
        header = m.bit_xor(m.from_int(self._timestamp_bits), header_pad)
        packed = m.bit_or(m.shift_left(m.from_int(1), HEADER_BITS), header)

        if self._timestamp_bits:
            raw = m.bit_and(m.from_int(self._clock()), m.mask(self._timestamp_bits))
            pad = m.shift_right(rand, self._entropy_bits - self._timestamp_bits)
            packed = m.bit_or(m.shift_left(packed, self._timestamp_bits), m.bit_xor(raw, pad))

        packed = m.bit_or(m.shift_left(packed, self._entropy_bits), rand)
        return m.to_radix(packed, self._radix, self._alphabet, self._length)

    def generate_many(self, count):
        if count < 0:
            raise ValueError(f"count must be non-negative, got {count}")
        return [self.generate() for _ in range(count)]

    def decode(self, nfuid):
        """Recover the fields of ``nfuid``.

        Only the alphabet is needed: the field widths come from the value.
        Raises InvalidCharacterError or MalformedIdError.
        """
        if not nfuid:
            raise MalformedIdError("Identifier is empty", nfuid=nfuid)

        m = self._math
        full = m.from_radix(nfuid, self._char_index, self._radix)
        if m.is_zero(full):
            raise MalformedIdError("Identifier has no flag bit", nfuid=nfuid)

        binary = m.to_binary(full)[FLAG_BITS:]
        full_length = len(binary)
        if full_length < HEADER_BITS:
            raise MalformedIdError(
                f"Identifier carries {full_length} payload bits, fewer than the {HEADER_BITS}-bit header",
                nfuid=nfuid,
            )

        value = m.sub(full, m.shift_left(m.from_int(1), full_length))
        header_mask = m.mask(HEADER_BITS)
        encoded_header = m.bit_and(m.shift_right(value, full_length - HEADER_BITS), header_mask)
        header_pad = m.bit_and(value, header_mask)
        timestamp_bits = m.to_int(m.bit_xor(encoded_header, header_pad))

        random_bits = full_length - HEADER_BITS - timestamp_bits
        if random_bits < 0:
            raise MalformedIdError(
                f"Header claims a {timestamp_bits}-bit timestamp but only "
                f"{full_length - HEADER_BITS} bits follow it",
                nfuid=nfuid,
            )
        if random_bits < timestamp_bits + HEADER_BITS:
            raise MalformedIdError(
                f"Random field of {random_bits} bits cannot pad a {timestamp_bits}-bit timestamp",
                nfuid=nfuid,
            )

        encoded_random = m.bit_and(value, m.mask(random_bits))
        timestamp = 0
        formatted = None
        if timestamp_bits:
            encoded_timestamp = m.bit_and(m.shift_right(value, random_bits), m.mask(timestamp_bits))
            pad = m.shift_right(encoded_random, random_bits - timestamp_bits)
            timestamp = m.to_int(m.bit_xor(encoded_timestamp, pad))
            try:
                formatted = timestamp_to_datetime(timestamp, self._unit)
            except OverflowError:
                # past the datetime range; the raw timestamp is still returned
                formatted = None

        return DecodedId(
            timestamp_length=timestamp_bits,
            timestamp=timestamp,
            random_length=random_bits,
            random=m.to_hex(encoded_random),
            formatted_timestamp=formatted,
            binary=binary,
        )

    def is_valid(self, nfuid):
        try:
            self.decode(nfuid)
        except DecodeError:
            return False
        return True
