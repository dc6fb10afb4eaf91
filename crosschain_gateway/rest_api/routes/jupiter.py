from fastapi import APIRouter, Depends, Query

from crosschain_gateway.clients.jupiter_client import JupiterClient
from crosschain_gateway.models.jupiter_models import JupiterSwapRequest
from crosschain_gateway.rest_api import dependencies
from crosschain_gateway.utils.errors import responses

jupiter_route = APIRouter()


@jupiter_route.get('/quote', responses=responses)
async def get_quote(
    input_mint: str = Query(..., alias='inputMint'),
    output_mint: str = Query(..., alias='outputMint'),
    amount: int = Query(..., gt=0, description='Amount in base units'),
    slippage_bps: int = Query(50, ge=0, le=10000, alias='slippageBps'),
    only_direct_routes: bool = Query(False, alias='onlyDirectRoutes'),
    jupiter_client: JupiterClient = Depends(dependencies.jupiter_client),
) -> dict:
    """Best Jupiter route for swapping **amount** of **inputMint** into **outputMint** on Solana."""
    quote = await jupiter_client.get_quote(
        input_mint, output_mint, amount, slippage_bps, only_direct_routes
    )
    return {'success': True, 'data': quote.model_dump(by_alias=True)}


@jupiter_route.get('/tokens', responses=responses)
async def get_tokens(
    jupiter_client: JupiterClient = Depends(dependencies.jupiter_client),
) -> dict:
    tokens = await jupiter_client.get_strict_tokens()
    return {'success': True, 'data': [token.model_dump(by_alias=True) for token in tokens]}


@jupiter_route.post('/swap', responses=responses)
async def build_swap_transaction(
    body: JupiterSwapRequest,
    jupiter_client: JupiterClient = Depends(dependencies.jupiter_client),
) -> dict:
    """
    Quote the swap, then let Jupiter serialize the transaction for
    **userPublicKey**. The transaction comes back unsigned.
    """
    quote = await jupiter_client.get_quote(
        body.input_mint, body.output_mint, int(body.amount), body.slippage_bps
    )
    swap = await jupiter_client.get_swap_transaction(
        quote,
        body.user_public_key,
        wrap_and_unwrap_sol=body.wrap_and_unwrap_sol,
        as_legacy_transaction=body.as_legacy_transaction,
    )
    return {'success': True, 'data': swap.model_dump(by_alias=True)}


@jupiter_route.post('/swap-instructions', responses=responses)
async def build_swap_instructions(
    body: JupiterSwapRequest,
    jupiter_client: JupiterClient = Depends(dependencies.jupiter_client),
) -> dict:
    """Same as ``/swap`` but returns the individual instructions instead of a transaction."""
    quote = await jupiter_client.get_quote(
        body.input_mint, body.output_mint, int(body.amount), body.slippage_bps
    )
    instructions = await jupiter_client.get_swap_instructions(
        quote, body.user_public_key, wrap_and_unwrap_sol=body.wrap_and_unwrap_sol
    )
    return {'success': True, 'data': instructions.model_dump(by_alias=True)}
