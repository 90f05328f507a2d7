"""Declarative descriptions of binary layouts.

A layout is either a single item (``UintItem``, ``BytesItem``, ``ArrayItem``,
``SwitchItem``) or a record: a tuple of named ``Field`` entries encoded back to
back in declaration order. Layouts nest, and any item may carry a
``CustomConversion`` that reshapes the structurally decoded value.
"""
from __future__ import annotations

from abc import ABC
from dataclasses import dataclass
from typing import Any, Callable, TypeAlias

from pyoracle.layout.error import LayoutDefinitionError


@dataclass(frozen=True, slots=True)
class CustomConversion:
    """Pair of pure functions applied around a structural codec.

    ``to_domain`` runs after the structural decode, ``from_raw`` before the
    structural encode. They must be inverses over the valid domain.
    """
    to_domain: Callable[[Any], Any]
    from_raw: Callable[[Any], Any]


@dataclass(frozen=True)
class LayoutItem(ABC):
    ...


@dataclass(frozen=True)
class UintItem(LayoutItem):
    """Big-endian unsigned integer of ``size`` bytes.

    ``custom`` is either a conversion or a fixed value written on every encode.
    """
    size: int
    custom: CustomConversion | int | None = None
    omit: bool = False

    def __post_init__(self) -> None:
        if self.size <= 0:
            raise LayoutDefinitionError(f'Uint size must be positive, got {self.size}')
        if isinstance(self.custom, int) and not 0 <= self.custom < 1 << (8 * self.size):
            raise LayoutDefinitionError(
                f'Fixed value {self.custom} does not fit in {self.size} bytes'
            )
        if self.omit and not isinstance(self.custom, int):
            raise LayoutDefinitionError('Only fixed-value items can be omitted')


@dataclass(frozen=True)
class BytesItem(LayoutItem):
    """Raw bytes, optionally wrapping a nested layout.

    Framing is one of a fixed ``size``, a ``length_size``-byte length prefix,
    or none. Without framing a nested layout is written inline and raw bytes
    run to the end of the enclosing buffer.
    """
    size: int | None = None
    length_size: int | None = None
    layout: Layout | None = None
    custom: CustomConversion | bytes | None = None
    omit: bool = False

    def __post_init__(self) -> None:
        if self.size is not None and self.length_size is not None:
            raise LayoutDefinitionError('Bytes item cannot have both size and length_size')
        if isinstance(self.custom, (bytes, bytearray)):
            if self.layout is not None:
                raise LayoutDefinitionError('Fixed-value bytes cannot wrap a layout')
            if self.size is not None and self.size != len(self.custom):
                raise LayoutDefinitionError(
                    f'Fixed value has {len(self.custom)} bytes but size is {self.size}'
                )
            object.__setattr__(self, 'custom', bytes(self.custom))
        elif self.omit:
            raise LayoutDefinitionError('Only fixed-value items can be omitted')
        if self.layout is not None:
            object.__setattr__(self, 'layout', _freeze(self.layout))


@dataclass(frozen=True)
class ArrayItem(LayoutItem):
    """Sequence of elements sharing one layout.

    The element count is a fixed ``length``, a ``length_size``-byte prefix, or,
    with neither, whatever fits in the rest of the enclosing buffer.
    """
    layout: Layout
    length: int | None = None
    length_size: int | None = None
    custom: CustomConversion | None = None

    def __post_init__(self) -> None:
        if self.length is not None and self.length_size is not None:
            raise LayoutDefinitionError('Array item cannot have both length and length_size')
        object.__setattr__(self, 'layout', _freeze(self.layout))


@dataclass(frozen=True)
class SwitchCase:
    id: int
    name: str
    layout: Layout

    def __post_init__(self) -> None:
        object.__setattr__(self, 'layout', _freeze(self.layout))


@dataclass(frozen=True)
class SwitchItem(LayoutItem):
    """Tagged union keyed by an ``id_size``-byte discriminator.

    Decoded values are dicts holding the case name under ``id_tag`` next to
    the fields of the case's record layout.
    """
    id_size: int
    cases: tuple[SwitchCase, ...]
    id_tag: str = 'id'
    custom: CustomConversion | None = None

    def __post_init__(self) -> None:
        cases = tuple(
            case if isinstance(case, SwitchCase) else SwitchCase(*case)
            for case in self.cases
        )
        object.__setattr__(self, 'cases', cases)
        if not cases:
            raise LayoutDefinitionError('Switch item needs at least one case')
        ids = [case.id for case in cases]
        names = [case.name for case in cases]
        if len(set(ids)) != len(ids):
            raise LayoutDefinitionError(f'Switch case ids must be unique: {ids}')
        if len(set(names)) != len(names):
            raise LayoutDefinitionError(f'Switch case names must be unique: {names}')
        for case in cases:
            if not 0 <= case.id < 1 << (8 * self.id_size):
                raise LayoutDefinitionError(
                    f'Switch case id {case.id} does not fit in {self.id_size} bytes'
                )
            if not is_record(case.layout):
                raise LayoutDefinitionError(f'Switch case {case.name!r} must be a record layout')
            if any(field.name == self.id_tag for field in case.layout):
                raise LayoutDefinitionError(
                    f'Switch case {case.name!r} has a field named like the id tag {self.id_tag!r}'
                )


@dataclass(frozen=True)
class Field:
    """Named entry of a record; ``item`` may itself be a nested record."""
    name: str
    item: Layout

    def __post_init__(self) -> None:
        object.__setattr__(self, 'item', _freeze(self.item))


Layout: TypeAlias = 'LayoutItem | tuple[Field, ...]'


def is_record(layout: Any) -> bool:
    return isinstance(layout, tuple) and all(isinstance(entry, Field) for entry in layout)


def _freeze(layout: Any) -> Any:
    # Records may be written as lists; tuples keep the layout hashable
    if isinstance(layout, list):
        return tuple(layout)
    return layout


def fixed_size(item: LayoutItem) -> int | None:
    """Number of bytes ``item`` occupies on the wire if known up front."""
    if isinstance(item, UintItem):
        return item.size
    if isinstance(item, BytesItem):
        if item.size is not None:
            return item.size
        if isinstance(item.custom, bytes):
            return len(item.custom)
        if item.length_size is None and item.layout is not None:
            return calc_static_size(item.layout)
        return None
    if isinstance(item, ArrayItem):
        if item.length is None:
            return None
        element_size = calc_static_size(item.layout)
        return None if element_size is None else item.length * element_size
    if isinstance(item, SwitchItem):
        # Static only when every case has the same static size
        sizes = {calc_static_size(case.layout) for case in item.cases}
        if len(sizes) != 1 or None in sizes:
            return None
        return item.id_size + sizes.pop()
    raise LayoutDefinitionError(f'Unknown layout item: {item!r}')


def calc_static_size(layout: Layout) -> int | None:
    """Total encoded size of ``layout``, or ``None`` if it depends on the value."""
    if isinstance(layout, LayoutItem):
        return fixed_size(layout)
    if isinstance(layout, list):
        layout = tuple(layout)
    if not is_record(layout):
        raise LayoutDefinitionError(f'Not a layout: {layout!r}')
    total = 0
    for field in layout:
        size = calc_static_size(field.item)
        if size is None:
            return None
        total += size
    return total


__all__ = [
    'ArrayItem',
    'BytesItem',
    'CustomConversion',
    'Field',
    'Layout',
    'LayoutItem',
    'SwitchCase',
    'SwitchItem',
    'UintItem',
    'calc_static_size',
    'fixed_size',
    'is_record',
]
