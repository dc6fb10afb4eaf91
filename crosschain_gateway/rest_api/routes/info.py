from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path

from crosschain_gateway.models.chain import ChainModel
from crosschain_gateway.rest_api import dependencies

info_route = APIRouter()


@info_route.get('/chains', response_model=List[ChainModel])
@info_route.get('/chains/', include_in_schema=False, response_model=List[ChainModel])
async def get_chains(
    chains: dependencies.ChainsConfig = Depends(dependencies.chains),
) -> List[ChainModel]:
    """Chains the gateway can route between."""
    return list(chains)


@info_route.get(
    '/chains/{chain_index}',
    response_model=ChainModel,
    responses={404: {"description": "Chain not found"}},
)
async def get_chain(
    chain_index: str = Path(..., description='OKX chain index'),
    chains: dependencies.ChainsConfig = Depends(dependencies.chains),
) -> ChainModel:
    try:
        return chains.get_chain_by_index(chain_index)
    except ValueError:
        raise HTTPException(status_code=404, detail='Chain not found')
