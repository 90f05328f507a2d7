"""Layout of oracle price-update messages.

A price update is a count-prefixed list of chain commands. Every command is
wrapped in a length-prefixed entry holding the target chain and one of six
commands: a full ``fee_params`` record, or one of its fields on its own.

The ``fee_params`` record always occupies a 32 byte slot but its fields
depend on the platform of the chain, so the switch only captures the raw
slot. The custom conversion on each entry resolves the platform and decodes
the slot with that platform's layout.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Iterable, Literal, TypeAlias

from pyoracle.chains import Chain, Platform, platform_of
from pyoracle.error import InvalidCommandForPlatformError, UnsupportedChainError
from pyoracle.layout import (
    ArrayItem,
    BytesItem,
    CustomConversion,
    Field,
    Layout,
    SwitchCase,
    SwitchItem,
    UintItem,
    calc_static_size
)
from pyoracle.layout.compiler import LayoutCodec, compile_layout
from pyoracle.layout.error import LayoutDefinitionError

logger = logging.getLogger(__name__)

SLOT_SIZE = 32
ALLOWED_CHAINS = (Chain.ETHEREUM, Chain.SOLANA)

CommandName = Literal[
    'fee_params',
    'gas_price',
    'blob_base_fee',
    'gas_token_price',
    'solana_account_overhead',
    'solana_size_cost',
]

# Fee parameters --------------------------------------------------------------

gas_price_item = UintItem(4)
blob_base_fee_item = UintItem(4)
gas_token_price_item = UintItem(6)
solana_account_overhead_item = UintItem(4)
solana_size_cost_item = UintItem(4)

evm_fee_params_layout = (
    Field('gas_price', gas_price_item),
    Field('blob_base_fee', blob_base_fee_item),
    Field('gas_token_price', gas_token_price_item),
)

solana_fee_params_layout = (
    Field('solana_account_overhead', solana_account_overhead_item),
    Field('solana_size_cost', solana_size_cost_item),
    Field('gas_token_price', gas_token_price_item),
)


@dataclass(frozen=True, slots=True)
class EvmFeeParams:
    gas_price: int
    blob_base_fee: int
    gas_token_price: int


@dataclass(frozen=True, slots=True)
class SolanaFeeParams:
    solana_account_overhead: int
    solana_size_cost: int
    gas_token_price: int


FeeParams: TypeAlias = EvmFeeParams | SolanaFeeParams


@dataclass(frozen=True, slots=True)
class Command:
    name: CommandName
    value: int | FeeParams


@dataclass(frozen=True, slots=True)
class ChainCommand:
    chain: Chain
    command: Command


PriceUpdate: TypeAlias = list[ChainCommand]


def full_slot_layout(layout: tuple[Field, ...], slot_size: int = SLOT_SIZE) -> tuple[Field, ...]:
    """Pad ``layout`` with reserved zero bytes up to ``slot_size``."""
    size = calc_static_size(layout)
    if size is None:
        raise LayoutDefinitionError('Slot layouts must have a static size')
    if size > slot_size:
        raise LayoutDefinitionError(f'Layout needs {size} bytes but the slot holds {slot_size}')
    return (*layout, Field('reserved', BytesItem(custom=bytes(slot_size - size), omit=True)))


@dataclass(frozen=True)
class FeeParamsSchema:
    """How one platform lays out its fee parameters in the slot."""
    platform: Platform
    params_type: type
    codec: LayoutCodec
    valid_names: frozenset[str]

    @classmethod
    def build(
        cls,
        platform: Platform,
        params_type: type,
        layout: tuple[Field, ...],
        slot_size: int,
    ) -> 'FeeParamsSchema':
        return cls(
            platform=platform,
            params_type=params_type,
            codec=compile_layout(full_slot_layout(layout, slot_size)),
            valid_names=frozenset(field.name for field in layout),
        )

    def to_slot(self, params: FeeParams) -> bytes:
        return self.codec.encode(asdict(params))

    def from_slot(self, data: bytes) -> FeeParams:
        return self.params_type(**self.codec.decode(data))


# Chain commands --------------------------------------------------------------

def chain_item(allowed_chains: Iterable[Chain] | None = None) -> UintItem:
    """Wormhole chain id restricted to ``allowed_chains`` (any known chain if ``None``)."""
    allowed = None if allowed_chains is None else frozenset(allowed_chains)

    def check(chain: Chain) -> Chain:
        if allowed is not None and chain not in allowed:
            raise UnsupportedChainError(f'Chain {chain.name} is not allowed here')
        return chain

    def to_chain(raw: int) -> Chain:
        try:
            chain = Chain(raw)
        except ValueError:
            raise UnsupportedChainError(f'Unknown chain id {raw}') from None
        return check(chain)

    def from_chain(chain: Chain) -> int:
        if not isinstance(chain, Chain):
            raise TypeError(f'Expected a Chain, got {type(chain).__name__}')
        return int(check(chain))

    return UintItem(2, custom=CustomConversion(to_chain, from_chain))


def command_item(slot_size: int = SLOT_SIZE) -> SwitchItem:
    return SwitchItem(
        id_size=1,
        id_tag='name',
        cases=(
            SwitchCase(0, 'fee_params', (Field('value', BytesItem(size=slot_size)),)),
            SwitchCase(1, 'gas_price', (Field('value', gas_price_item),)),
            SwitchCase(2, 'blob_base_fee', (Field('value', blob_base_fee_item),)),
            SwitchCase(3, 'gas_token_price', (Field('value', gas_token_price_item),)),
            SwitchCase(4, 'solana_account_overhead', (Field('value', solana_account_overhead_item),)),
            SwitchCase(5, 'solana_size_cost', (Field('value', solana_size_cost_item),)),
        ),
    )


def chain_command_layout(
    allowed_chains: Iterable[Chain] = ALLOWED_CHAINS,
    slot_size: int = SLOT_SIZE,
) -> tuple[Field, ...]:
    return (
        Field('chain', chain_item(allowed_chains)),
        Field('command', command_item(slot_size)),
    )


def chain_command_conversion(schemas: dict[Platform, FeeParamsSchema]) -> CustomConversion:
    """Conversion between raw ``{chain, command}`` dicts and :class:`ChainCommand`."""
    command_names = {case.name for case in command_item().cases}

    def schema_for(chain: Chain) -> FeeParamsSchema:
        platform = platform_of(chain)
        if (schema := schemas.get(platform)) is None:
            raise UnsupportedChainError(f'No fee parameters defined for platform {platform.value}')
        return schema

    def check_name(name: str, chain: Chain, schema: FeeParamsSchema) -> None:
        # Names outside the case table are left for the switch to reject
        if name in command_names and name not in schema.valid_names:
            raise InvalidCommandForPlatformError(
                f'Invalid command {name} for {chain.name} ({schema.platform.value})'
            )

    def to_domain(raw: dict[str, Any]) -> ChainCommand:
        chain, name, value = raw['chain'], raw['command']['name'], raw['command']['value']
        schema = schema_for(chain)
        if name == 'fee_params':
            return ChainCommand(chain, Command(name, schema.from_slot(value)))
        check_name(name, chain, schema)
        return ChainCommand(chain, Command(name, value))

    def from_raw(chain_command: ChainCommand) -> dict[str, Any]:
        if not isinstance(chain_command, ChainCommand):
            raise TypeError(f'Expected a ChainCommand, got {type(chain_command).__name__}')
        chain, name, value = chain_command.chain, chain_command.command.name, chain_command.command.value
        if not isinstance(chain, Chain):
            raise TypeError(f'Expected a Chain, got {type(chain).__name__}')
        schema = schema_for(chain)
        if name == 'fee_params':
            if not isinstance(value, (EvmFeeParams, SolanaFeeParams)):
                raise TypeError(f'Expected fee parameters, got {type(value).__name__}')
            if not isinstance(value, schema.params_type):
                raise InvalidCommandForPlatformError(
                    f'{type(value).__name__} cannot be sent to {chain.name} ({schema.platform.value})'
                )
            value = schema.to_slot(value)
        else:
            check_name(name, chain, schema)
        return {'chain': chain, 'command': {'name': name, 'value': value}}

    return CustomConversion(to_domain, from_raw)


def build_price_update_layout(
    allowed_chains: Iterable[Chain] = ALLOWED_CHAINS,
    slot_size: int = SLOT_SIZE,
) -> Layout:
    """Build the price-update layout for ``allowed_chains``.

    Every allowed chain must run on a platform with a fee-parameter layout.
    """
    allowed_chains = tuple(allowed_chains)
    schemas = {
        Platform.EVM: FeeParamsSchema.build(
            Platform.EVM, EvmFeeParams, evm_fee_params_layout, slot_size
        ),
        Platform.SOLANA: FeeParamsSchema.build(
            Platform.SOLANA, SolanaFeeParams, solana_fee_params_layout, slot_size
        ),
    }
    for chain in allowed_chains:
        if platform_of(chain) not in schemas:
            raise LayoutDefinitionError(
                f'{chain.name} runs on {platform_of(chain).value}, which has no fee parameters'
            )

    entry = BytesItem(
        length_size=1,
        layout=chain_command_layout(allowed_chains, slot_size),
        custom=chain_command_conversion(schemas),
    )
    logger.debug(f'Built price update layout for {[chain.name for chain in allowed_chains]}')
    return ArrayItem(entry, length_size=1)


price_update_layout = build_price_update_layout()
