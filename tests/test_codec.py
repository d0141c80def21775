"""Unit tests for the NFUID codec."""

import math
from datetime import timedelta

import pytest

from config import CodecConfig
from core.codec import (
    DEFAULT_ALPHABET,
    NFUID,
    DecodedId,
    encoded_length,
)
from core.errors import ConfigurationError, DecodeError, InvalidCharacterError, MalformedIdError
from utils.timestamp import EPOCH, now_micros, now_millis


def pack(timestamp_bits, entropy_bits, rand, clock_value):
    """Reference packing with plain ints."""
    rand &= (1 << entropy_bits) - 1
    header = timestamp_bits ^ (rand & 0x3F)
    packed = (1 << 6) | header
    if timestamp_bits:
        raw = clock_value & ((1 << timestamp_bits) - 1)
        packed = (packed << timestamp_bits) | (raw ^ (rand >> (entropy_bits - timestamp_bits)))
    return (packed << entropy_bits) | rand


class TestConstruction:
    """Configuration is validated eagerly."""

    def test_defaults(self, codec):
        """Default codec uses base58 with a 43/78 layout."""
        assert codec.alphabet == DEFAULT_ALPHABET
        assert codec.radix == 58
        assert codec.timestamp_length == 43
        assert codec.entropy_length == 78
        assert codec.timestamp_unit == "ms"
        assert codec.arithmetic == "native"
        assert codec.total_bits == 128
        assert codec.length == 22

    @pytest.mark.parametrize("alphabet", [
        "abc def",       # space
        "abcda",         # duplicate
        "abcé",     # non-ASCII
        "ab\tc",         # control/whitespace
        "ab\x7f",        # DEL
        "a",             # radix 1
        "",
    ])
    def test_rejects_bad_alphabet(self, alphabet):
        """Malformed alphabets fail construction."""
        with pytest.raises(ConfigurationError):
            NFUID(base_alphabet=alphabet)

    def test_rejected_alphabet_names_option(self):
        with pytest.raises(ConfigurationError) as excinfo:
            NFUID(base_alphabet="abca")
        assert excinfo.value.context["option"] == "base_alphabet"

    @pytest.mark.parametrize("length", [-1, 64, 100, 8.0, True, "8"])
    def test_rejects_timestamp_length(self, length):
        with pytest.raises(ConfigurationError, match="Timestamp length"):
            NFUID(timestamp_length=length, entropy_length=200)

    def test_rejects_short_entropy(self):
        """Entropy must cover the header pad plus the timestamp pad."""
        with pytest.raises(ConfigurationError, match="at least 49 bits"):
            NFUID(timestamp_length=43, entropy_length=48)

    def test_minimum_entropy_accepted(self):
        codec = NFUID(timestamp_length=63, entropy_length=69)
        assert codec.total_bits == 1 + 6 + 63 + 69

    def test_rejects_unknown_unit(self):
        with pytest.raises(ConfigurationError, match="Timestamp unit"):
            NFUID(timestamp_unit="ns")

    def test_rejects_unknown_backend(self):
        with pytest.raises(ConfigurationError):
            NFUID(arithmetic="gmp")

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            NFUID(timestamp_length=70)

    def test_from_config(self):
        config = CodecConfig(base_alphabet="0123456789abcdef", timestamp_length=32,
                             entropy_length=64, timestamp_unit="s", arithmetic="decimal")
        codec = NFUID.from_config(config)
        assert codec.radix == 16
        assert codec.timestamp_length == 32
        assert codec.entropy_length == 64
        assert codec.timestamp_unit == "s"
        assert codec.arithmetic == "decimal"
        assert codec.length == 26  # ceil(103 / 4)


class TestGenerate:
    """Identifier generation."""

    def test_concrete_decimal_layout(self, random_source, fixed_clock):
        """Decimal alphabet, 8/16 bits: 31 bits in 10 characters."""
        codec = NFUID(base_alphabet="0123456789", timestamp_length=8, entropy_length=16,
                      random_source=random_source, clock=fixed_clock)
        nfuid = codec.generate()

        rand = int.from_bytes(random_source.pattern[:2], "big")
        expected = pack(8, 16, rand, fixed_clock.value)
        assert len(nfuid) == 10 == math.ceil(31 / math.log2(10))
        assert nfuid == str(expected).rjust(10, "0")

    def test_binary_alphabet_shows_layout(self, random_source, fixed_clock):
        """With a binary alphabet the identifier is the packed bit string."""
        codec = NFUID(base_alphabet="01", timestamp_length=10, entropy_length=20,
                      random_source=random_source, clock=fixed_clock)
        nfuid = codec.generate()

        rand = int.from_bytes(random_source.pattern[:3], "big")
        assert nfuid == format(pack(10, 20, rand, fixed_clock.value), "b")
        assert nfuid[0] == "1"
        assert len(nfuid) == 1 + 6 + 10 + 20

    def test_entropy_keeps_low_bits_of_last_byte(self, make_random_source, fixed_clock):
        """78 entropy bits come from 10 bytes with the top 2 bits dropped."""
        source = make_random_source(bytes(range(0xF0, 0xFA)))
        codec = NFUID(random_source=source, clock=fixed_clock)
        record = codec.decode(codec.generate())
        expected = int.from_bytes(bytes(range(0xF0, 0xFA)), "big") & ((1 << 78) - 1)
        assert record.random == format(expected, "x")

    def test_length_is_constant(self, codec):
        """Every identifier of one configuration has the same length."""
        lengths = {len(codec.generate()) for _ in range(300)}
        assert lengths == {codec.length}

    def test_zero_value_still_padded(self, make_random_source):
        """All-zero entropy still yields a full-length identifier."""
        codec = NFUID(timestamp_length=0, entropy_length=6, random_source=make_random_source(b"\x00"))
        nfuid = codec.generate()
        assert len(nfuid) == encoded_length(13, 58)
        assert codec.decode(nfuid).timestamp_length == 0

    def test_generates_unique_ids(self, codec):
        ids = codec.generate_many(500)
        assert len(set(ids)) == 500

    def test_generate_many_zero(self, codec):
        assert codec.generate_many(0) == []

    def test_generate_many_negative(self, codec):
        with pytest.raises(ValueError):
            codec.generate_many(-1)

    def test_url_safe_characters(self, codec):
        nfuid = codec.generate()
        assert set(nfuid) <= set(DEFAULT_ALPHABET)


class TestDecode:
    """Decoding and self-description."""

    def test_round_trip_fixed_clock(self, random_source, fixed_clock):
        codec = NFUID(random_source=random_source, clock=fixed_clock)
        record = codec.decode(codec.generate())

        assert isinstance(record, DecodedId)
        assert record.timestamp_length == 43
        assert record.random_length == 78
        assert record.timestamp == fixed_clock.value & ((1 << 43) - 1)
        assert record.formatted_timestamp == EPOCH + timedelta(milliseconds=fixed_clock.value)
        assert len(record.binary) == 6 + 43 + 78

    def test_round_trip_live_clock(self):
        """Decoded timestamp matches the clock within the masking window."""
        codec = NFUID(base_alphabet="0123456789", timestamp_length=8, entropy_length=16)
        for _ in range(50):
            before = now_millis()
            record = codec.decode(codec.generate())
            after = now_millis()
            assert record.timestamp_length == 8
            assert record.random_length == 16
            assert (record.timestamp - before) % 256 <= after - before

    @pytest.mark.parametrize("timestamp_length,entropy_length", [
        (0, 6), (0, 96), (8, 16), (32, 96), (43, 78), (63, 69),
    ])
    def test_self_describing(self, timestamp_length, entropy_length, fixed_clock):
        """A decoder that shares only the alphabet recovers the field widths."""
        generator = NFUID(timestamp_length=timestamp_length, entropy_length=entropy_length,
                          clock=fixed_clock)
        decoder = NFUID()

        for _ in range(20):
            record = decoder.decode(generator.generate())
            assert record.timestamp_length == timestamp_length
            assert record.random_length == entropy_length
            assert record.timestamp == fixed_clock.value & ((1 << timestamp_length) - 1)

    def test_no_timestamp_field(self):
        """Width 0 means no timestamp and no formatted date."""
        codec = NFUID(timestamp_length=0, entropy_length=96)
        record = codec.decode(codec.generate())
        assert record.timestamp_length == 0
        assert record.timestamp == 0
        assert record.formatted_timestamp is None
        assert record.random_length == 96

    def test_seconds_unit(self, fixed_clock):
        seconds = fixed_clock.value // 1000
        codec = NFUID(timestamp_length=32, entropy_length=96, timestamp_unit="s",
                      clock=lambda: seconds)
        record = codec.decode(codec.generate())
        assert record.timestamp == seconds
        assert record.formatted_timestamp == EPOCH + timedelta(seconds=seconds)

    def test_random_field_round_trips(self, random_source, fixed_clock):
        codec = NFUID(base_alphabet="0123456789", timestamp_length=8, entropy_length=16,
                      random_source=random_source, clock=fixed_clock)
        record = codec.decode(codec.generate())
        assert record.random == "9a3c"
        assert record.binary == format(pack(8, 16, 0x9A3C, fixed_clock.value), "b")[1:]

    def test_binary_keeps_leading_zero_bits(self, make_random_source):
        """``binary`` is the full payload even when the header starts with zeros."""
        codec = NFUID(timestamp_length=0, entropy_length=8, random_source=make_random_source(b"\x00"))
        record = codec.decode(codec.generate())
        assert record.binary == "000000" + "00000000"

    def test_invalid_character(self, codec):
        """Characters outside the alphabet are rejected by name."""
        nfuid = codec.generate()
        with pytest.raises(InvalidCharacterError) as excinfo:
            codec.decode(nfuid[:-1] + "0")
        assert excinfo.value.context["character"] == "0"
        assert "'0'" in str(excinfo.value)

    def test_empty_identifier(self, codec):
        with pytest.raises(MalformedIdError, match="empty"):
            codec.decode("")

    def test_missing_flag(self, codec):
        """A string of zero characters has no flag bit."""
        with pytest.raises(MalformedIdError, match="flag"):
            codec.decode("1111")

    def test_payload_shorter_than_header(self):
        codec = NFUID(base_alphabet="01")
        with pytest.raises(MalformedIdError):
            codec.decode("11010")

    def test_negative_random_width(self):
        """A header claiming more timestamp bits than exist is malformed."""
        codec = NFUID(base_alphabet="01")
        # header 111111 XOR pad 000000 -> 63 timestamp bits, only 6 bits follow
        with pytest.raises(MalformedIdError, match="63-bit timestamp"):
            codec.decode("1" + "111111" + "000000")

    def test_random_too_narrow_for_pads(self):
        codec = NFUID(base_alphabet="01")
        # header 001000 -> 8 timestamp bits, leaving a 6-bit random field
        with pytest.raises(MalformedIdError, match="cannot pad"):
            codec.decode("1" + "001000" + "00000000" + "000000")

    def test_timestamp_outside_date_range(self):
        """Timestamps past the datetime range decode with no formatted value."""
        codec = NFUID(timestamp_length=63, entropy_length=69, clock=lambda: (1 << 63) - 1)
        record = codec.decode(codec.generate())
        assert record.timestamp_length == 63
        assert record.timestamp == (1 << 63) - 1
        assert record.formatted_timestamp is None
        assert record.to_dict()["formatted_timestamp"] is None

    def test_microsecond_clock_round_trips(self):
        codec = NFUID(timestamp_length=63, entropy_length=69, clock=now_micros)
        before = now_micros()
        record = codec.decode(codec.generate())
        assert record.timestamp >= before
        assert record.formatted_timestamp is None

    def test_decoder_with_other_unit_reads_wide_timestamp(self, fixed_clock):
        """A seconds decoder still accepts a 55-bit millisecond identifier."""
        nfuid = NFUID(timestamp_length=55, entropy_length=69, clock=fixed_clock).generate()
        decoder = NFUID(timestamp_unit="s")
        record = decoder.decode(nfuid)
        assert record.timestamp_length == 55
        assert record.timestamp == fixed_clock.value
        assert record.formatted_timestamp is None
        assert decoder.is_valid(nfuid)

    def test_decode_error_hierarchy(self, codec):
        with pytest.raises(DecodeError):
            codec.decode("0")
        with pytest.raises(ValueError):
            codec.decode("")

    def test_is_valid(self, codec):
        assert codec.is_valid(codec.generate())
        assert not codec.is_valid("")
        assert not codec.is_valid("O0Il")


class TestDecodedId:
    """The decoded record."""

    def test_is_frozen(self, codec):
        record = codec.decode(codec.generate())
        with pytest.raises(AttributeError):
            record.timestamp = 0

    def test_to_dict(self, fixed_clock):
        codec = NFUID(clock=fixed_clock)
        data = codec.decode(codec.generate()).to_dict()
        assert set(data) == {
            "timestamp_length", "timestamp", "random_length", "random", "formatted_timestamp", "binary",
        }
        assert data["formatted_timestamp"] == "2025-10-09T08:53:20.123000Z"

    def test_to_dict_without_timestamp(self):
        codec = NFUID(timestamp_length=0, entropy_length=16)
        assert codec.decode(codec.generate()).to_dict()["formatted_timestamp"] is None


class TestDecimalBackend:
    """The digit-string backend produces the same identifiers as native ints."""

    @pytest.mark.parametrize("timestamp_length,entropy_length", [(0, 16), (8, 16), (43, 78), (63, 69)])
    def test_same_output_as_native(self, random_source, fixed_clock, timestamp_length, entropy_length):
        kwargs = dict(timestamp_length=timestamp_length, entropy_length=entropy_length,
                      random_source=random_source, clock=fixed_clock)
        native = NFUID(arithmetic="native", **kwargs)
        decimal = NFUID(arithmetic="decimal", **kwargs)

        nfuid = native.generate()
        assert decimal.generate() == nfuid
        assert decimal.decode(nfuid) == native.decode(nfuid)

    def test_decimal_round_trip_with_system_random(self, fixed_clock):
        codec = NFUID(arithmetic="decimal", clock=fixed_clock)
        for _ in range(5):
            nfuid = codec.generate()
            assert len(nfuid) == 22
            record = codec.decode(nfuid)
            assert record.timestamp_length == 43
            assert record.timestamp == fixed_clock.value

    def test_decimal_invalid_character(self):
        codec = NFUID(arithmetic="decimal")
        with pytest.raises(InvalidCharacterError):
            codec.decode("abc-def")
