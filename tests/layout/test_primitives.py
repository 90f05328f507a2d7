"""Tests for integer and raw byte encoding."""

import pytest

from pyoracle.io.raw_reader import BytesReader
from pyoracle.io.raw_writer import BytesWriter
from pyoracle.layout import BytesItem, UintItem
from pyoracle.layout.compiler import (
    compile_layout,
    decode_bytes,
    decode_uint,
    deserialize_layout,
    encode_bytes,
    encode_uint,
    serialize_layout
)
from pyoracle.layout.error import (
    IntegerRangeError,
    SizeMismatchError,
    TrailingBytesError,
    TruncatedInputError
)


@pytest.mark.parametrize(
    "value, width, expected",
    [
        (0, 1, b'\x00'),
        (255, 1, b'\xff'),
        (0x0102, 2, b'\x01\x02'),
        (0x010203, 3, b'\x01\x02\x03'),
        (1, 4, b'\x00\x00\x00\x01'),
        (3, 6, b'\x00\x00\x00\x00\x00\x03'),
        (2**64 - 1, 8, b'\xff' * 8),
        (2**128 - 1, 16, b'\xff' * 16),
    ],
)
def test_uint_is_big_endian(value: int, width: int, expected: bytes) -> None:
    assert encode_uint(value, width) == expected
    assert decode_uint(expected, width) == value


@pytest.mark.parametrize("value, width", [(256, 1), (2**48, 6), (-1, 4)])
def test_uint_out_of_range(value: int, width: int) -> None:
    with pytest.raises(IntegerRangeError, match="does not fit"):
        encode_uint(value, width)


@pytest.mark.parametrize("value", ["1", 1.0, True, None])
def test_uint_requires_int(value) -> None:
    with pytest.raises(TypeError):
        encode_uint(value, 4)


def test_decode_uint_short_input() -> None:
    with pytest.raises(TruncatedInputError):
        decode_uint(b'\x00\x01', 4)


def test_bytes_fixed_width() -> None:
    assert encode_bytes(b'abc', 3) == b'abc'
    assert encode_bytes(bytearray(b'abc')) == b'abc'
    with pytest.raises(SizeMismatchError, match="Expected 4 bytes, got 3"):
        encode_bytes(b'abc', 4)
    with pytest.raises(TypeError):
        encode_bytes("abc")


def test_decode_bytes() -> None:
    assert decode_bytes(b'abcd', 2) == b'ab'
    assert decode_bytes(b'abcd') == b'abcd'
    with pytest.raises(TruncatedInputError):
        decode_bytes(b'a', 2)


def test_uint_item_roundtrip() -> None:
    item = UintItem(6)
    data = serialize_layout(item, 0x0102030405)
    assert data == b'\x00\x01\x02\x03\x04\x05'
    assert deserialize_layout(item, data) == 0x0102030405


def test_uint_item_truncated_and_trailing() -> None:
    item = UintItem(4)
    with pytest.raises(TruncatedInputError):
        deserialize_layout(item, b'\x00\x00\x01')
    with pytest.raises(TrailingBytesError, match="1 bytes left"):
        deserialize_layout(item, b'\x00\x00\x00\x01\x00')
    assert deserialize_layout(item, b'\x00\x00\x00\x01\x00', consume_all=False) == 1


def test_bytes_item_framings() -> None:
    """Fixed size, length prefixed and unframed bytes."""
    fixed = BytesItem(size=2)
    assert serialize_layout(fixed, b'ab') == b'ab'
    with pytest.raises(SizeMismatchError):
        serialize_layout(fixed, b'abc')

    prefixed = BytesItem(length_size=2)
    assert serialize_layout(prefixed, b'abc') == b'\x00\x03abc'
    assert deserialize_layout(prefixed, b'\x00\x03abc') == b'abc'
    with pytest.raises(TruncatedInputError):
        deserialize_layout(prefixed, b'\x00\x04abc')

    rest = BytesItem()
    assert serialize_layout(rest, b'anything') == b'anything'
    assert deserialize_layout(rest, b'anything') == b'anything'
    assert deserialize_layout(rest, b'') == b''


def test_length_prefix_too_small() -> None:
    with pytest.raises(IntegerRangeError):
        serialize_layout(BytesItem(length_size=1), bytes(256))


def test_decode_from_leaves_rest_unread() -> None:
    codec = compile_layout(UintItem(2))
    reader = BytesReader(b'\x00\x01\x00\x02\xff')
    assert codec.decode_from(reader) == 1
    assert codec.decode_from(reader) == 2
    assert reader.remaining() == 1
    assert reader.read() == b'\xff'


def test_encode_into_appends_to_writer() -> None:
    codec = compile_layout(BytesItem(length_size=1))
    writer = BytesWriter()
    writer.write(b'\xaa')
    codec.encode_into(writer, b'xy')
    codec.encode_into(writer, b'')
    assert writer.as_bytes() == b'\xaa\x02xy\x00'
