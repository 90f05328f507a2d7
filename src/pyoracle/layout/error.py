class LayoutError(Exception):
    """Base exception for all layout encoding and decoding errors."""


class LayoutDefinitionError(LayoutError):
    """Exception raised when a layout description is malformed."""
    def __init__(self, message: str):
        super().__init__(message)


class IntegerRangeError(LayoutError):
    """Exception raised when an integer does not fit its declared width."""
    def __init__(self, message: str):
        super().__init__(message)


class SizeMismatchError(LayoutError):
    """Exception raised when a fixed-size item is given the wrong number of bytes or elements."""
    def __init__(self, message: str):
        super().__init__(message)


class TruncatedInputError(LayoutError):
    """Exception raised when fewer bytes are available than the layout requires."""
    def __init__(self, message: str):
        super().__init__(message)


class TrailingBytesError(LayoutError):
    """Exception raised when input bytes are left over after decoding."""
    def __init__(self, message: str):
        super().__init__(message)


class UnknownDiscriminatorError(LayoutError):
    """Exception raised when a switch id or case name is not in the case table."""
    def __init__(self, message: str):
        super().__init__(message)


class MissingFieldError(LayoutError):
    """Exception raised when a record value lacks one of the layout's fields."""
    def __init__(self, message: str):
        super().__init__(message)


class FixedValueMismatchError(LayoutError):
    """Exception raised when a fixed-value item decodes to something else."""
    def __init__(self, message: str):
        super().__init__(message)
