from importlib.metadata import version

__version__ = version("pyoracle-sdk")

from .chains import Chain, Platform, platform_of
from .deserialize import PriceUpdateDeserializer, deserialize
from .price_update import (
    ChainCommand,
    Command,
    EvmFeeParams,
    PriceUpdate,
    SolanaFeeParams,
    build_price_update_layout,
    price_update_layout
)
from .serialize import PriceUpdateSerializer, serialize

__all__ = [
    'Chain',
    'ChainCommand',
    'Command',
    'EvmFeeParams',
    'Platform',
    'PriceUpdate',
    'PriceUpdateDeserializer',
    'PriceUpdateSerializer',
    'SolanaFeeParams',
    'build_price_update_layout',
    'deserialize',
    'platform_of',
    'price_update_layout',
    'serialize',
    '__version__',
]
