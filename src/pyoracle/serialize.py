from pyoracle.layout import Layout
from pyoracle.layout.compiler import compile_layout
from pyoracle.price_update import PriceUpdate, price_update_layout


class PriceUpdateSerializer:
    """Serialize price updates with a compiled price-update layout."""

    def __init__(self, layout: Layout = price_update_layout) -> None:
        self._codec = compile_layout(layout)

    @property
    def layout(self) -> Layout:
        return self._codec.layout

    def serialize(self, update: PriceUpdate) -> bytes:
        return self._codec.encode(update)


_default = PriceUpdateSerializer()


def serialize(update: PriceUpdate) -> bytes:
    """Serialize ``update`` with the default price-update layout."""
    return _default.serialize(update)
