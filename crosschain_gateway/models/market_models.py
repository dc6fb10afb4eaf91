"""Request shapes accepted by the market data proxy.

Every supported OKX endpoint is one variant of ``MarketDataRequest``,
discriminated by ``path``. A variant knows the HTTP method the endpoint
expects, which parameters are required and whether they travel in the
query string or in the JSON body.
"""
from typing import Annotated, Any, ClassVar, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

QUERY = 'query'
BODY = 'body'


class BaseMarketRequest(BaseModel):
    METHOD: ClassVar[str] = 'GET'
    REQUIRED: ClassVar[tuple[str, ...]] = ()
    PARAM_LOCATION: ClassVar[str] = QUERY

    method: str
    path: str
    data: Optional[Union[dict[str, Any], list[dict[str, Any]]]] = None

    def params(self) -> Union[dict, list[dict]]:
        if isinstance(self.data, list):
            if self.PARAM_LOCATION == BODY:
                return self.data
            return self.data[0] if self.data else {}
        return self.data or {}

    def missing_param(self) -> Optional[str]:
        params = self.params()
        for item in params if isinstance(params, list) else [params]:
            for key in self.REQUIRED:
                if item.get(key) in (None, ''):
                    return key
        return None


class TokenPriceRequest(BaseMarketRequest):
    METHOD = 'POST'
    REQUIRED = ('chainIndex', 'tokenContractAddress')
    PARAM_LOCATION = BODY
    path: Literal['/api/v5/dex/market/price']


class TokenTradesRequest(BaseMarketRequest):
    REQUIRED = ('chainIndex', 'tokenContractAddress')
    path: Literal['/api/v5/dex/market/trades']


class TokenPriceInfoRequest(BaseMarketRequest):
    METHOD = 'POST'
    REQUIRED = ('chainIndex', 'tokenContractAddress')
    PARAM_LOCATION = BODY
    path: Literal['/api/v5/dex/market/price-info']


class BalanceSupportedChainsRequest(BaseMarketRequest):
    path: Literal['/api/v5/dex/balance/supported/chain']


class CandlesRequest(BaseMarketRequest):
    REQUIRED = ('chainIndex', 'tokenContractAddress')
    path: Literal['/api/v5/dex/market/candles']


class HistoricalCandlesRequest(BaseMarketRequest):
    REQUIRED = ('chainIndex', 'tokenContractAddress')
    path: Literal['/api/v5/dex/market/historical-candles']


class IndexCurrentPriceRequest(BaseMarketRequest):
    METHOD = 'POST'
    REQUIRED = ('chainIndex', 'tokenContractAddress')
    PARAM_LOCATION = BODY
    path: Literal['/api/dex/index/current-price']


class IndexHistoricalPriceRequest(BaseMarketRequest):
    REQUIRED = ('chainIndex',)
    path: Literal['/api/v5/dex/index/historical-price']


class TotalValueRequest(BaseMarketRequest):
    REQUIRED = ('accountId',)
    path: Literal['/api/v5/dex/balance/total-value']


class AllTokenBalancesRequest(BaseMarketRequest):
    REQUIRED = ('address', 'chains')
    path: Literal['/api/v5/dex/balance/all-token-balances-by-address']


class TokenBalancesRequest(BaseMarketRequest):
    METHOD = 'POST'
    REQUIRED = ('address',)
    PARAM_LOCATION = BODY
    path: Literal['/api/v5/dex/balance/token-balances-by-address']


class TransactionsByAddressRequest(BaseMarketRequest):
    REQUIRED = ('address',)
    path: Literal['/api/v5/dex/post-transaction/transactions-by-address']


class TransactionDetailRequest(BaseMarketRequest):
    REQUIRED = ('chainIndex', 'txHash')
    path: Literal['/api/v5/dex/post-transaction/transaction-detail-by-txhash']


MarketDataRequest = Annotated[
    Union[
        TokenPriceRequest,
        TokenTradesRequest,
        TokenPriceInfoRequest,
        BalanceSupportedChainsRequest,
        CandlesRequest,
        HistoricalCandlesRequest,
        IndexCurrentPriceRequest,
        IndexHistoricalPriceRequest,
        TotalValueRequest,
        AllTokenBalancesRequest,
        TokenBalancesRequest,
        TransactionsByAddressRequest,
        TransactionDetailRequest,
    ],
    Field(discriminator='path'),
]

market_request_adapter = TypeAdapter(MarketDataRequest)
