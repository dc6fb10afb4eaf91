from typing import Optional

from crosschain_gateway.models.crosschain_models import CamelModel


class DexSwapParams(CamelModel):
    """Single-chain aggregator swap, already checked by ``validate_swap_params``."""

    chain_id: str
    from_token_address: str
    to_token_address: str
    amount: str
    slippage: str
    user_wallet_address: Optional[str] = None
    fee_percent: str = '1'
    price_tolerance: str = '0'
    auto_slippage: str = 'false'
    path_num: str = '3'

    def quote_query_params(self) -> list[tuple[str, str]]:
        query = [
            ('chainId', self.chain_id),
            ('fromTokenAddress', self.from_token_address),
            ('toTokenAddress', self.to_token_address),
            ('amount', self.amount),
            ('slippage', self.slippage),
        ]
        if self.user_wallet_address:
            query.append(('userWalletAddress', self.user_wallet_address))
        return query

    def instruction_query_params(self) -> list[tuple[str, str]]:
        return [
            ('chainId', self.chain_id),
            ('fromTokenAddress', self.from_token_address),
            ('toTokenAddress', self.to_token_address),
            ('amount', self.amount),
            ('slippage', self.slippage),
            ('userWalletAddress', self.user_wallet_address or ''),
            ('feePercent', self.fee_percent or '1'),
            ('priceTolerance', self.price_tolerance or '0'),
            ('autoSlippage', self.auto_slippage or 'false'),
            ('pathNum', self.path_num or '3'),
        ]
