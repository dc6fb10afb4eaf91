from typing import List, Optional

from crosschain_gateway.models.chain import ChainModel
from crosschain_gateway.models.crosschain_models import (
    Bridge,
    PairValidationResult,
    Token,
    TokenPair,
)


def bridges_for_route(
    from_chain_index: str, to_chain_index: str, bridges: List[Bridge]
) -> List[Bridge]:
    return [
        bridge for bridge in bridges
        if from_chain_index in bridge.supported_chains and to_chain_index in bridge.supported_chains
    ]


def validate_token_pair(
    from_token: Optional[Token],
    to_token: Optional[Token],
    from_chain: Optional[ChainModel],
    to_chain: Optional[ChainModel],
    supported_pairs: List[TokenPair],
    supported_bridges: List[Bridge],
) -> PairValidationResult:
    """
    Tell whether the selected tokens can be swapped across the selected chains.

    Pure function of the selections and of the loaded reference data. Token
    symbols are compared exactly, 'usdc' does not match 'USDC'.
    """
    if not (from_token and to_token and from_chain and to_chain):
        return PairValidationResult(is_valid=False, message='Please select both tokens')

    for pair in supported_pairs:
        if (
            pair.from_chain_index == from_chain.index
            and pair.to_chain_index == to_chain.index
            and pair.from_token_symbol == from_token.symbol
            and pair.to_token_symbol == to_token.symbol
        ):
            bridges = bridges_for_route(from_chain.index, to_chain.index, supported_bridges)
            return PairValidationResult(
                is_valid=True,
                message=f'Supported pair with {len(bridges)} available bridge(s)',
                available_bridges=bridges,
            )

    route_pairs = [
        pair for pair in supported_pairs
        if pair.from_chain_index == from_chain.index and pair.to_chain_index == to_chain.index
    ]
    if route_pairs:
        available = ', '.join(
            f'{pair.from_token_symbol} → {pair.to_token_symbol}' for pair in route_pairs
        )
        return PairValidationResult(
            is_valid=False,
            message=f'This token pair is not supported. Available pairs: {available}',
        )

    return PairValidationResult(
        is_valid=False,
        message=f'No supported pairs between {from_chain.name} and {to_chain.name}',
    )
