from pyoracle.layout import Layout
from pyoracle.layout.compiler import compile_layout
from pyoracle.price_update import PriceUpdate, price_update_layout


class PriceUpdateDeserializer:
    """
    Decodes whole price-update messages. Any structural or validation error
    rejects the message; nothing is returned for the entries that did decode.
    """

    def __init__(self, layout: Layout = price_update_layout) -> None:
        self._codec = compile_layout(layout)

    @property
    def layout(self) -> Layout:
        return self._codec.layout

    def deserialize(self, data: bytes) -> PriceUpdate:
        return self._codec.decode(data)


_default = PriceUpdateDeserializer()


def deserialize(data: bytes) -> PriceUpdate:
    """Deserialize ``data`` with the default price-update layout."""
    return _default.deserialize(data)
