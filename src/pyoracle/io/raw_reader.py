from abc import ABC, abstractmethod

from pyoracle.layout.error import TruncatedInputError


class BaseReader(ABC):
    @abstractmethod
    def peek(self, size: int) -> bytes:
        """Peek at the next bytes in the reader."""
        ...  # pragma: no cover

    @abstractmethod
    def read(self, size: int | None = None) -> bytes:
        """Read the next bytes in the reader."""
        ...  # pragma: no cover

    @abstractmethod
    def remaining(self) -> int:
        """Number of bytes left to read."""
        ...  # pragma: no cover

    @abstractmethod
    def tell(self) -> int:
        """Get the current position in the reader."""
        ...  # pragma: no cover


class BytesReader(BaseReader):
    """Cursor over an immutable in-memory buffer.

    Unlike a file, reading past the end is an error: a layout that asks for
    more bytes than are present is decoding a truncated message.
    """

    def __init__(self, data: bytes):
        self._data = bytes(data)
        self.position = 0
        self._length = len(self._data)

    def peek(self, size: int) -> bytes:
        # Returns fewer bytes when near the end of data
        return self._data[self.position:self.position + size]

    def read(self, size: int | None = None) -> bytes:
        if size is None:
            result = self._data[self.position:]
            self.position = self._length
            return result
        if size > self._length - self.position:
            raise TruncatedInputError(
                f'Expected {size} bytes at offset {self.position}, '
                f'only {self._length - self.position} available'
            )
        result = self._data[self.position:self.position + size]
        self.position += size
        return result

    def slice(self, size: int) -> 'BytesReader':
        """Return a reader over the next ``size`` bytes and skip past them."""
        return BytesReader(self.read(size))

    def remaining(self) -> int:
        return self._length - self.position

    def tell(self) -> int:
        return self.position

    def size(self) -> int:
        return self._length
