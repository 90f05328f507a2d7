from pyoracle.layout.error import LayoutError


class PriceUpdateError(LayoutError):
    """Base exception for price-update messages that are well formed but invalid."""


class InvalidCommandForPlatformError(PriceUpdateError):
    """Exception raised when a command does not apply to the chain's platform."""
    def __init__(self, message: str):
        super().__init__(message)


class UnsupportedChainError(PriceUpdateError):
    """Exception raised when a chain id is unknown or not accepted by the schema."""
    def __init__(self, message: str):
        super().__init__(message)
