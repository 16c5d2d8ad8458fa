"""
Tests for the VarInt codec.

Tests cover:
- Known encodings and minimal length
- varint_size agreeing with encode_varint
- Buffer and stream decoding
- Truncated and over-long input
"""
import pytest

from honeypot.exceptions import MalformedVarIntError, TruncatedStreamError
from honeypot.protocol.varint import decode_varint, encode_varint, read_varint, varint_size
from streams import make_reader

KNOWN_ENCODINGS = [
    (0, b"\x00"),
    (1, b"\x01"),
    (127, b"\x7f"),
    (128, b"\x80\x01"),
    (255, b"\xff\x01"),
    (772, b"\x84\x06"),
    (25565, b"\xdd\xc7\x01"),
    (2097151, b"\xff\xff\x7f"),
    (2147483647, b"\xff\xff\xff\xff\x07"),
    (4294967295, b"\xff\xff\xff\xff\x0f"),
]

BOUNDARIES = [0, 127, 128, 2**14 - 1, 2**14, 2**21 - 1, 2**21, 2**28 - 1, 2**28, 2**32 - 1]


class TestEncode:
    @pytest.mark.parametrize("value,expected", KNOWN_ENCODINGS)
    def test_known_encodings(self, value, expected):
        assert encode_varint(value) == expected

    @pytest.mark.parametrize("value", BOUNDARIES)
    def test_size_matches_encoding(self, value):
        """Test that varint_size agrees with the encoder"""
        assert varint_size(value) == len(encode_varint(value))

    @pytest.mark.parametrize("value", BOUNDARIES)
    def test_encoding_is_minimal(self, value):
        """No encoding ends in a zero continuation group unless it is 0 itself."""
        encoded = encode_varint(value)
        if value:
            assert encoded[-1] != 0x00
        assert all(b & 0x80 for b in encoded[:-1])
        assert not encoded[-1] & 0x80

    @pytest.mark.parametrize("value", [-1, 2**32])
    def test_rejects_out_of_range(self, value):
        with pytest.raises(ValueError):
            encode_varint(value)


class TestDecodeBuffer:
    @pytest.mark.parametrize("value,encoded", KNOWN_ENCODINGS)
    def test_known_encodings(self, value, encoded):
        assert decode_varint(encoded) == (value, len(encoded))

    def test_decodes_at_offset(self):
        """Test decoding from the middle of a buffer"""
        data = b"\xaa\xbb" + encode_varint(25565) + b"\xcc"
        assert decode_varint(data, 2) == (25565, 3)

    def test_truncated(self):
        with pytest.raises(TruncatedStreamError):
            decode_varint(b"\x80\x80")

    def test_empty(self):
        with pytest.raises(TruncatedStreamError):
            decode_varint(b"")

    def test_sixth_byte_is_malformed(self):
        """Test that a continuation bit on the fifth byte is rejected"""
        with pytest.raises(MalformedVarIntError):
            decode_varint(b"\x80\x80\x80\x80\x80\x01")

    def test_fifth_byte_high_bits_are_discarded(self):
        """The accumulator is 32 bits wide."""
        value, consumed = decode_varint(b"\xff\xff\xff\xff\x7f")
        assert value == 0xFFFFFFFF
        assert consumed == 5


class TestReadStream:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("value,encoded", KNOWN_ENCODINGS)
    async def test_known_encodings(self, value, encoded):
        reader = make_reader(encoded + b"\x99")
        assert await read_varint(reader) == (value, len(encoded))
        # trailing byte left for the next reader
        assert await reader.read() == b"\x99"

    @pytest.mark.asyncio
    async def test_truncated_stream(self):
        with pytest.raises(TruncatedStreamError):
            await read_varint(make_reader(b"\xff\xff"))

    @pytest.mark.asyncio
    async def test_closed_stream(self):
        """Test that EOF before the first byte is a truncation"""
        with pytest.raises(TruncatedStreamError):
            await read_varint(make_reader(b""))

    @pytest.mark.asyncio
    async def test_sixth_byte_is_malformed(self):
        reader = make_reader(b"\x80\x80\x80\x80\x80\x01")
        with pytest.raises(MalformedVarIntError):
            await read_varint(reader)
        # stops after five bytes
        assert await reader.read() == b"\x01"
