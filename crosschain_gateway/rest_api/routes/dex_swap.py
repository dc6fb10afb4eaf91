from fastapi import APIRouter, Body, Depends, Query

from crosschain_gateway.rest_api import dependencies
from crosschain_gateway.services.dex_swap_service import (
    DEX_SWAP_ACTIONS,
    OPTIONAL_INSTRUCTION_PARAMS,
    REQUIRED_DEX_SWAP_PARAMS,
    DexSwapService,
)
from crosschain_gateway.utils.errors import iso_timestamp, responses

dex_swap_route = APIRouter()

QUOTE_EXAMPLE = {
    'action': 'quote',
    'chainId': '501',
    'fromTokenAddress': '11111111111111111111111111111111',
    'toTokenAddress': 'EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v',
    'amount': '100000000',
    'slippage': '0.5',
}
INSTRUCTIONS_EXAMPLE = {
    **QUOTE_EXAMPLE,
    'action': 'instructions',
    'userWalletAddress': 'YourSolanaWalletAddress',
}


@dex_swap_route.get('/dex-swap')
async def get_dex_swap_info(docs: bool = Query(False)) -> dict:
    """Health check, ``?docs=true`` returns the endpoint documentation."""
    if docs:
        return {
            'title': 'DEX Swap API',
            'description': 'API for single-chain swaps using OKX DEX aggregator',
            'version': '1.0.0',
            'endpoints': {
                'POST /api/dex-swap': {
                    'actions': {
                        'quote': {
                            'description': 'Get swap quote without execution',
                            'required': ['action', *REQUIRED_DEX_SWAP_PARAMS],
                            'optional': ['userWalletAddress'],
                        },
                        'instructions': {
                            'description': 'Get swap instructions for Solana',
                            'required': ['action', *REQUIRED_DEX_SWAP_PARAMS, 'userWalletAddress'],
                            'optional': OPTIONAL_INSTRUCTION_PARAMS,
                        },
                    },
                    'examples': {'quote': QUOTE_EXAMPLE, 'instructions': INSTRUCTIONS_EXAMPLE},
                },
            },
            'supportedChains': {'501': 'Solana (quote, instructions)'},
        }
    return {
        'status': 'healthy',
        'service': 'DEX Swap API',
        'timestamp': iso_timestamp(),
        'documentation': '/api/dex-swap?docs=true',
        'features': list(DEX_SWAP_ACTIONS),
        'supportedChains': ['Solana (501)'],
    }


@dex_swap_route.post('/dex-swap', responses=responses)
async def dex_swap(
    body: dict = Body(..., examples=[QUOTE_EXAMPLE, INSTRUCTIONS_EXAMPLE]),
    service: DexSwapService = Depends(dependencies.dex_swap_service),
) -> dict:
    """
    - **action=quote**: best aggregator route on **chainId**
    - **action=instructions**: the route as instructions for **userWalletAddress** to sign

    **slippage** is a percentage between 0 and 100.
    """
    params = dict(body)
    action = params.pop('action', None)
    return await service.swap(action, params)
