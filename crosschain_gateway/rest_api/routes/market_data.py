from fastapi import APIRouter, Body, Depends

from crosschain_gateway.rest_api import dependencies
from crosschain_gateway.services.market_data_service import MarketDataService
from crosschain_gateway.utils.errors import responses

market_data_route = APIRouter()


@market_data_route.post('/market_data', responses=responses)
async def forward_market_request(
    body: dict = Body(
        ...,
        examples=[{
            'method': 'POST',
            'path': '/api/v5/dex/market/price',
            'data': [{'chainIndex': '501', 'tokenContractAddress': 'So11111111111111111111111111111111111111112'}],
        }],
    ),
    service: MarketDataService = Depends(dependencies.market_data_service),
):
    """
    Signed passthrough for OKX market, balance and transaction history
    endpoints. **path** selects the endpoint, **method** must match it and
    **data** carries its parameters.
    """
    return await service.forward(body)
