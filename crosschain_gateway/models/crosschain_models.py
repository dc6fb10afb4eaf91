import json
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Models exchanged with the proxy routes use camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    def to_camel_case_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class Token(CamelModel):
    symbol: str
    name: str = ''
    address: str
    decimals: int
    logo_url: Optional[str] = None
    chain_index: str
    chain_id: Optional[str] = None
    has_logo: bool = False


class TokenPair(CamelModel):
    from_chain_index: str
    to_chain_index: str
    from_chain_id: Optional[str] = None
    to_chain_id: Optional[str] = None
    from_token_address: str = ''
    to_token_address: str = ''
    from_token_symbol: str
    to_token_symbol: str
    pair_id: str = ''

    @property
    def route_key(self) -> str:
        return f'{self.from_chain_index}-{self.to_chain_index}'


class Bridge(CamelModel):
    bridge_id: int
    bridge_name: str
    require_other_native_fee: bool = False
    logo_url: Optional[str] = None
    supported_chains: List[str] = []
    supports_solana: bool = False


class PairValidationResult(CamelModel):
    is_valid: bool = False
    message: str = ''
    available_bridges: List[Bridge] = []


class SwapRouter(CamelModel):
    bridge_id: int
    bridge_name: str
    other_native_fee: Optional[str] = None
    cross_chain_fee: Optional[str] = None
    cross_chain_fee_token_address: Optional[str] = None


class SwapTx(CamelModel):
    data: str
    from_: Optional[str] = Field(None, alias='from')
    to: str
    value: str = '0'
    gas_limit: Optional[str] = None
    gas_price: Optional[str] = None
    max_priority_fee_per_gas: Optional[str] = None


class SwapQuote(CamelModel):
    from_token_amount: str
    to_token_amount: str
    minmum_receive: Optional[str] = None  # sic, OKX field name
    router: Optional[SwapRouter] = None
    tx: SwapTx


class CrossChainSwapResult(CamelModel):
    success: bool = False
    action: Optional[str] = None
    timestamp: Optional[str] = None
    from_chain: Optional[str] = None
    to_chain: Optional[str] = None
    code: Optional[str] = None
    msg: Optional[str] = None
    data: List[SwapQuote] = []


class CrossChainSwapParams(CamelModel):
    """Parameters of a build-tx request, already checked by
    ``validate_crosschain_params``."""

    from_chain_index: str
    to_chain_index: str
    from_chain_id: str
    to_chain_id: str
    from_token_address: str
    to_token_address: str
    amount: str
    slippage: str
    user_wallet_address: str
    sort: Optional[str] = None
    dex_ids: Optional[str] = None
    allow_bridge: Optional[List[int]] = None
    deny_bridge: Optional[List[int]] = None
    receive_address: Optional[str] = None
    fee_percent: Optional[str] = None
    referrer_address: Optional[str] = None
    price_impact_protection_percentage: Optional[str] = None
    only_bridge: Optional[bool] = None
    memo: Optional[str] = None

    def to_query_params(self) -> list[tuple[str, str]]:
        """Query parameters in the order the upstream signature is computed over."""
        query = [
            ('fromChainIndex', self.from_chain_index),
            ('toChainIndex', self.to_chain_index),
            ('fromChainId', self.from_chain_id),
            ('toChainId', self.to_chain_id),
            ('fromTokenAddress', self.from_token_address),
            ('toTokenAddress', self.to_token_address),
            ('amount', self.amount),
            ('slippage', self.slippage),
            ('userWalletAddress', self.user_wallet_address),
        ]
        optional = [
            ('sort', self.sort),
            ('dexIds', self.dex_ids),
            ('receiveAddress', self.receive_address),
            ('feePercent', self.fee_percent),
            ('referrerAddress', self.referrer_address),
            ('priceImpactProtectionPercentage', self.price_impact_protection_percentage),
        ]
        query.extend((key, value) for key, value in optional if value)
        if self.only_bridge is not None:
            query.append(('onlyBridge', str(self.only_bridge).lower()))
        if self.memo:
            query.append(('memo', self.memo))
        if self.allow_bridge:
            query.append(('allowBridge', json.dumps(self.allow_bridge, separators=(',', ':'))))
        if self.deny_bridge:
            query.append(('denyBridge', json.dumps(self.deny_bridge, separators=(',', ':'))))
        return query


class LoadingProgress(CamelModel):
    current_step: str = ''
    progress: int = 0
    current_step_index: int = 0
    total_steps: int = 4
