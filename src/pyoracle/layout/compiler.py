"""Compile layout descriptions into encoder/decoder function pairs."""
from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from pyoracle.io.raw_reader import BytesReader
from pyoracle.io.raw_writer import BytesWriter
from pyoracle.layout import (
    ArrayItem,
    BytesItem,
    CustomConversion,
    Field,
    Layout,
    LayoutItem,
    SwitchItem,
    UintItem,
    calc_static_size,
    is_record
)
from pyoracle.layout.error import (
    FixedValueMismatchError,
    IntegerRangeError,
    LayoutDefinitionError,
    MissingFieldError,
    SizeMismatchError,
    TrailingBytesError,
    TruncatedInputError,
    UnknownDiscriminatorError
)

logger = logging.getLogger(__name__)

Encoder = Callable[[BytesWriter, Any], None]
Decoder = Callable[[BytesReader], Any]

# Widths with a native struct code, everything else goes through int.to_bytes
_UINT_STRUCT = {
    1: struct.Struct('>B'),
    2: struct.Struct('>H'),
    4: struct.Struct('>I'),
    8: struct.Struct('>Q'),
}

# Primitive codec -------------------------------------------------------------

def encode_uint(value: int, width: int) -> bytes:
    """Encode ``value`` as a ``width``-byte big-endian unsigned integer."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f'Expected an int, got {type(value).__name__}')
    if not 0 <= value < 1 << (8 * width):
        raise IntegerRangeError(f'{value} does not fit in an unsigned {width}-byte integer')
    if (packer := _UINT_STRUCT.get(width)) is not None:
        return packer.pack(value)
    return value.to_bytes(width, 'big')


def decode_uint(data: bytes, width: int) -> int:
    """Decode the first ``width`` bytes of ``data`` as a big-endian unsigned integer."""
    if len(data) < width:
        raise TruncatedInputError(f'Expected {width} bytes for an integer, got {len(data)}')
    if (packer := _UINT_STRUCT.get(width)) is not None:
        return packer.unpack_from(data)[0]
    return int.from_bytes(data[:width], 'big')


def encode_bytes(value: bytes, width: int | None = None) -> bytes:
    if not isinstance(value, (bytes, bytearray, memoryview)):
        raise TypeError(f'Expected bytes, got {type(value).__name__}')
    if width is not None and len(value) != width:
        raise SizeMismatchError(f'Expected {width} bytes, got {len(value)}')
    return bytes(value)


def decode_bytes(data: bytes, width: int | None = None) -> bytes:
    if width is None:
        return bytes(data)
    if len(data) < width:
        raise TruncatedInputError(f'Expected {width} bytes, got {len(data)}')
    return bytes(data[:width])


# Item compilers --------------------------------------------------------------

def _has_fixed_value(item: Layout) -> bool:
    return isinstance(item, (UintItem, BytesItem)) and isinstance(item.custom, (int, bytes))


def _with_custom(
    custom: CustomConversion | None,
    encode: Encoder,
    decode: Decoder,
) -> tuple[Encoder, Decoder]:
    if custom is None:
        return encode, decode
    to_domain, from_raw = custom.to_domain, custom.from_raw

    def encode_custom(writer: BytesWriter, value: Any) -> None:
        encode(writer, from_raw(value))

    def decode_custom(reader: BytesReader) -> Any:
        return to_domain(decode(reader))

    return encode_custom, decode_custom


def _compile_fixed(item: UintItem | BytesItem) -> tuple[Encoder, Decoder]:
    expected = item.custom
    if isinstance(item, UintItem):
        fixed = encode_uint(expected, item.size)
    else:
        fixed = expected
    size = len(fixed)

    def encode(writer: BytesWriter, value: Any) -> None:
        if value is not None and value != expected:
            raise FixedValueMismatchError(f'Expected fixed value {expected!r}, got {value!r}')
        writer.write(fixed)

    def decode(reader: BytesReader) -> Any:
        data = reader.read(size)
        if item.omit:
            return None
        if data != fixed:
            raise FixedValueMismatchError(f'Expected fixed value {fixed.hex()}, got {data.hex()}')
        return expected

    return encode, decode


def _compile_uint(item: UintItem) -> tuple[Encoder, Decoder]:
    if _has_fixed_value(item):
        return _compile_fixed(item)
    size = item.size

    def encode(writer: BytesWriter, value: Any) -> None:
        writer.write(encode_uint(value, size))

    def decode(reader: BytesReader) -> int:
        return decode_uint(reader.read(size), size)

    return _with_custom(item.custom, encode, decode)


def _compile_bytes(item: BytesItem) -> tuple[Encoder, Decoder]:
    if _has_fixed_value(item):
        return _compile_fixed(item)

    inner_encode: Encoder | None = None
    inner_decode: Decoder | None = None
    if item.layout is not None:
        inner_encode, inner_decode = _compile(item.layout)
        if item.size is None and item.length_size is None:
            # Unframed nested layout is written inline
            return _with_custom(item.custom, inner_encode, inner_decode)

    def to_payload(value: Any) -> bytes:
        if inner_encode is None:
            return encode_bytes(value)
        buffer = BytesWriter()
        inner_encode(buffer, value)
        return buffer.as_bytes()

    def from_payload(sub: BytesReader) -> Any:
        if inner_decode is None:
            return sub.read()
        value = inner_decode(sub)
        if sub.remaining():
            raise TrailingBytesError(
                f'Nested layout left {sub.remaining()} of {sub.size()} bytes unread'
            )
        return value

    if item.size is not None:
        size = item.size

        def encode(writer: BytesWriter, value: Any) -> None:
            writer.write(encode_bytes(to_payload(value), size))

        def decode(reader: BytesReader) -> Any:
            return from_payload(reader.slice(size))

    elif item.length_size is not None:
        length_size = item.length_size

        def encode(writer: BytesWriter, value: Any) -> None:
            payload = to_payload(value)
            writer.write(encode_uint(len(payload), length_size))
            writer.write(payload)

        def decode(reader: BytesReader) -> Any:
            length = decode_uint(reader.read(length_size), length_size)
            return from_payload(reader.slice(length))

    else:
        def encode(writer: BytesWriter, value: Any) -> None:
            writer.write(encode_bytes(value))

        def decode(reader: BytesReader) -> Any:
            return reader.read()

    return _with_custom(item.custom, encode, decode)


def _compile_array(item: ArrayItem) -> tuple[Encoder, Decoder]:
    element_encode, element_decode = _compile(item.layout)
    length, length_size = item.length, item.length_size
    if length is None and length_size is None and calc_static_size(item.layout) == 0:
        raise LayoutDefinitionError('Unframed array elements must occupy at least one byte')

    def encode(writer: BytesWriter, values: Any) -> None:
        if not isinstance(values, (list, tuple)):
            raise TypeError(f'Expected a list for array, got {type(values).__name__}')
        if length is not None and len(values) != length:
            raise SizeMismatchError(f'Expected {length} array elements, got {len(values)}')
        if length_size is not None:
            writer.write(encode_uint(len(values), length_size))
        for value in values:
            element_encode(writer, value)

    def decode(reader: BytesReader) -> list[Any]:
        if length is None and length_size is None:
            values = []
            while reader.remaining():
                start = reader.tell()
                values.append(element_decode(reader))
                if reader.tell() == start:
                    raise LayoutDefinitionError(
                        f'Array element {len(values) - 1} consumed no input at offset {start}'
                    )
            return values

        count = length if length is not None else decode_uint(reader.read(length_size), length_size)
        values = []
        for index in range(count):
            try:
                values.append(element_decode(reader))
            except TruncatedInputError as e:
                raise TruncatedInputError(
                    f'Array declares {count} elements but input ends in element {index}: {e}'
                ) from e
        return values

    return _with_custom(item.custom, encode, decode)


def _compile_switch(item: SwitchItem) -> tuple[Encoder, Decoder]:
    id_size, id_tag = item.id_size, item.id_tag
    by_name: dict[str, tuple[bytes, Encoder]] = {}
    by_id: dict[int, tuple[str, Decoder]] = {}
    for case in item.cases:
        case_encode, case_decode = _compile(case.layout)
        by_name[case.name] = (encode_uint(case.id, id_size), case_encode)
        by_id[case.id] = (case.name, case_decode)

    def encode(writer: BytesWriter, value: Any) -> None:
        try:
            name = value[id_tag]
        except KeyError:
            raise MissingFieldError(f'Switch value has no {id_tag!r} entry') from None
        if (entry := by_name.get(name)) is None:
            raise UnknownDiscriminatorError(f'Unknown switch case {name!r}')
        tag, case_encode = entry
        writer.write(tag)
        case_encode(writer, value)

    def decode(reader: BytesReader) -> dict[str, Any]:
        case_id = decode_uint(reader.read(id_size), id_size)
        if (entry := by_id.get(case_id)) is None:
            raise UnknownDiscriminatorError(f'Unknown switch discriminator {case_id}')
        name, case_decode = entry
        return {id_tag: name, **case_decode(reader)}

    return _with_custom(item.custom, encode, decode)


def _compile_record(fields: tuple[Field, ...]) -> tuple[Encoder, Decoder]:
    names = [field.name for field in fields]
    if len(set(names)) != len(names):
        raise LayoutDefinitionError(f'Record field names must be unique: {names}')

    # (name, has fixed value, is omitted, encoder, decoder)
    compiled = []
    for field in fields:
        fixed = _has_fixed_value(field.item)
        omitted = fixed and field.item.omit
        compiled.append((field.name, fixed, omitted, *_compile(field.item)))

    def encode(writer: BytesWriter, value: Mapping[str, Any]) -> None:
        if not isinstance(value, Mapping):
            raise TypeError(f'Expected a mapping for record, got {type(value).__name__}')
        for name, fixed, omitted, field_encode, _ in compiled:
            if omitted:
                field_encode(writer, None)
            elif fixed:
                field_encode(writer, value.get(name))
            elif name not in value:
                raise MissingFieldError(f'Missing field {name!r}')
            else:
                field_encode(writer, value[name])

    def decode(reader: BytesReader) -> dict[str, Any]:
        result = {}
        for name, _, omitted, _, field_decode in compiled:
            field_value = field_decode(reader)
            if not omitted:
                result[name] = field_value
        return result

    return encode, decode


def _compile(layout: Layout) -> tuple[Encoder, Decoder]:
    if isinstance(layout, UintItem):
        return _compile_uint(layout)
    if isinstance(layout, BytesItem):
        return _compile_bytes(layout)
    if isinstance(layout, ArrayItem):
        return _compile_array(layout)
    if isinstance(layout, SwitchItem):
        return _compile_switch(layout)
    if is_record(layout):
        return _compile_record(layout)
    raise LayoutDefinitionError(f'Not a layout: {layout!r}')


# Public API ------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class LayoutCodec:
    """Encoder/decoder pair compiled from a layout."""
    layout: Layout
    static_size: int | None
    _encode: Encoder
    _decode: Decoder

    def encode(self, value: Any) -> bytes:
        writer = BytesWriter()
        self._encode(writer, value)
        return writer.as_bytes()

    def encode_into(self, writer: BytesWriter, value: Any) -> None:
        self._encode(writer, value)

    def decode(self, data: bytes, *, consume_all: bool = True) -> Any:
        reader = BytesReader(data)
        value = self._decode(reader)
        if consume_all and reader.remaining():
            raise TrailingBytesError(f'{reader.remaining()} bytes left after decoding')
        return value

    def decode_from(self, reader: BytesReader) -> Any:
        """Decode one value from ``reader``, leaving any further bytes unread."""
        return self._decode(reader)


# Never evicted: layouts carrying fresh conversion closures always add an
# entry, so build layouts once at import rather than per message.
_compiled: dict[Any, LayoutCodec] = {}


def compile_layout(layout: Layout) -> LayoutCodec:
    """Compile ``layout`` into a :class:`LayoutCodec`, reusing earlier compilations."""
    if isinstance(layout, list):
        layout = tuple(layout)
    if not isinstance(layout, LayoutItem) and not is_record(layout):
        raise LayoutDefinitionError(f'Not a layout: {layout!r}')
    if (codec := _compiled.get(layout)) is None:
        encode, decode = _compile(layout)
        codec = LayoutCodec(layout, calc_static_size(layout), encode, decode)
        _compiled[layout] = codec
        logger.debug(f'Compiled layout with static size {codec.static_size}')
    return codec


def serialize_layout(layout: Layout, value: Any) -> bytes:
    return compile_layout(layout).encode(value)


def deserialize_layout(layout: Layout, data: bytes, *, consume_all: bool = True) -> Any:
    return compile_layout(layout).decode(data, consume_all=consume_all)
