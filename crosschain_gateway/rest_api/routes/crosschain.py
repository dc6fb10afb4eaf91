from typing import Optional

from fastapi import APIRouter, Body, Depends, Query

from crosschain_gateway.rest_api import dependencies
from crosschain_gateway.services.crosschain_service import (
    CHAIN_TOKENS,
    MAX_SLIPPAGE,
    MIN_SLIPPAGE,
    REQUIRED_SWAP_PARAMS,
    CrossChainService,
)
from crosschain_gateway.utils.errors import iso_timestamp, responses

crosschain_route = APIRouter()

OPTIONAL_SWAP_PARAMS = [
    'sort',
    'dexIds',
    'allowBridge',
    'denyBridge',
    'receiveAddress',
    'feePercent',
    'referrerAddress',
    'priceImpactProtectionPercentage',
    'onlyBridge',
    'memo',
]
BUILD_TX_EXAMPLE = {
    'action': 'build-tx',
    'fromChainIndex': '501',
    'toChainIndex': '1',
    'fromChainId': '501',
    'toChainId': '1',
    'fromTokenAddress': '11111111111111111111111111111111',
    'toTokenAddress': '0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48',
    'amount': '100000000',
    'slippage': '0.01',
    'userWalletAddress': 'YourSolanaWalletAddress',
    'sort': '1',
    'feePercent': '0.1',
}


@crosschain_route.get('/cross-chain-bridges', responses=responses)
async def get_bridges(
    chain_index: Optional[str] = Query(None, alias='chainIndex'),
    service: CrossChainService = Depends(dependencies.crosschain_service),
) -> dict:
    """
    Bridges OKX can route through. Pass **chainIndex** to keep only bridges
    touching that chain. Bridges supporting Solana are also listed separately.
    """
    return await service.get_bridges(chain_index)


@crosschain_route.get('/cross-chain-pairs', responses=responses)
async def get_pairs(
    from_chain_index: Optional[str] = Query(None, alias='fromChainIndex'),
    service: CrossChainService = Depends(dependencies.crosschain_service),
) -> dict:
    """Token pairs bridgeable from **fromChainIndex** (Solana by default), grouped by route."""
    return await service.get_pairs(from_chain_index)


@crosschain_route.get('/cross-chain-tokens', responses=responses)
async def get_tokens(
    chain_index: Optional[str] = Query(None, alias='chainIndex'),
    token_type: str = Query(CHAIN_TOKENS, alias='type'),
    service: CrossChainService = Depends(dependencies.crosschain_service),
) -> dict:
    """
    - **type=chain-tokens**: every token of **chainIndex** (required)
    - **type=cross-chain-supported**: tokens usable in cross-chain swaps
    """
    return await service.get_tokens(chain_index, token_type)


@crosschain_route.get('/cross-chain-swap')
async def get_swap_info(
    docs: bool = Query(False),
    chains: dependencies.ChainsConfig = Depends(dependencies.chains),
) -> dict:
    """Health check, ``?docs=true`` returns the endpoint documentation."""
    if docs:
        return {
            'title': 'Cross-Chain Swap API',
            'description': 'API for executing cross-chain swaps using OKX bridge aggregator',
            'version': '1.0.0',
            'endpoints': {
                'POST /api/cross-chain-swap': {
                    'description': 'Build cross-chain swap transaction',
                    'action': 'build-tx',
                    'required': ['action', *REQUIRED_SWAP_PARAMS],
                    'optional': OPTIONAL_SWAP_PARAMS,
                    'example': BUILD_TX_EXAMPLE,
                },
            },
            'supportedChains': chains.names_by_index(),
            'bridgeOptions': {
                'sort': {
                    '0': 'Most tokens received',
                    '1': 'Optimal route (recommended)',
                    '2': 'Fastest route',
                },
                'slippageRange': {
                    'min': str(MIN_SLIPPAGE),
                    'max': str(MAX_SLIPPAGE),
                    'recommended': {'sameToken': '0.002', 'differentToken': '0.01-0.025'},
                },
            },
        }
    return {
        'status': 'healthy',
        'service': 'Cross-Chain Swap API',
        'timestamp': iso_timestamp(),
        'documentation': '/api/cross-chain-swap?docs=true',
        'features': ['build-tx'],
        'supportedChains': [chain.name for chain in chains],
    }


@crosschain_route.post('/cross-chain-swap', responses=responses)
async def build_swap_tx(
    body: dict = Body(..., examples=[BUILD_TX_EXAMPLE]),
    service: CrossChainService = Depends(dependencies.crosschain_service),
) -> dict:
    """
    Build a ready-to-sign cross-chain transaction. **action** must be
    ``build-tx``, at least one leg must be Solana (chainIndex 501) and
    **slippage** must be within 0.002 and 0.5.
    """
    params = dict(body)
    action = params.pop('action', None)
    return await service.build_swap_tx(action, params)
