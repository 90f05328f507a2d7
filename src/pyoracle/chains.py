"""Wormhole chain identifiers and the platform each chain runs on."""
from enum import Enum, IntEnum


class Platform(Enum):
    EVM = 'Evm'
    SOLANA = 'Solana'
    SUI = 'Sui'
    APTOS = 'Aptos'


class Chain(IntEnum):
    SOLANA = 1
    ETHEREUM = 2
    BSC = 4
    POLYGON = 5
    AVALANCHE = 6
    SUI = 21
    APTOS = 22
    ARBITRUM = 23
    OPTIMISM = 24
    BASE = 30


_PLATFORMS = {
    Chain.SOLANA: Platform.SOLANA,
    Chain.ETHEREUM: Platform.EVM,
    Chain.BSC: Platform.EVM,
    Chain.POLYGON: Platform.EVM,
    Chain.AVALANCHE: Platform.EVM,
    Chain.SUI: Platform.SUI,
    Chain.APTOS: Platform.APTOS,
    Chain.ARBITRUM: Platform.EVM,
    Chain.OPTIMISM: Platform.EVM,
    Chain.BASE: Platform.EVM,
}


def platform_of(chain: Chain) -> Platform:
    return _PLATFORMS[Chain(chain)]
