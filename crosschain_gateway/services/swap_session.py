import math
from decimal import Decimal, InvalidOperation
from typing import Optional

from pydantic import ValidationError

from crosschain_gateway.clients.gateway_client import GatewayClient
from crosschain_gateway.config import Config
from crosschain_gateway.models.chain import ChainModel
from crosschain_gateway.models.crosschain_models import CrossChainSwapResult
from crosschain_gateway.services.data_loader import DataLoader
from crosschain_gateway.utils.errors import BaseGatewayError
from crosschain_gateway.utils.logger import LogArgs, get_logger

logger = get_logger(__name__)


def to_base_units(amount: str, decimals: int) -> str:
    """'1.5' with 9 decimals -> '1500000000'. Fractions below one unit are dropped."""
    return str(math.floor(Decimal(amount or '0') * (Decimal(10) ** decimals)))


def to_display_amount(amount: str, decimals: int) -> str:
    return f'{Decimal(amount or "0") / (Decimal(10) ** decimals):.6f}'


def parse_amount(amount: Optional[str]) -> Optional[Decimal]:
    try:
        return Decimal(amount) if amount else None
    except InvalidOperation:
        return None


class CrossChainSwapSession:
    """
    Client side of a cross-chain swap: selections live in the ``DataLoader``,
    the session keeps amounts, wallets and the last built transaction.

    ``build_transaction`` never raises for user or upstream errors, it
    stores a readable message in ``error`` and returns None.
    """

    def __init__(
        self,
        *,
        loader: DataLoader,
        gateway: GatewayClient,
        config: Config,
        slippage: str = '0.01',
        sort: int = 1,
        fee_percent: Optional[str] = None,
        price_impact_protection_percentage: str = '0.25',
    ):
        self.loader = loader
        self.gateway = gateway
        self.solana_chain_index = config.SOLANA_CHAIN_INDEX
        self.slippage = slippage
        self.sort = sort
        self.fee_percent = fee_percent
        self.price_impact_protection_percentage = price_impact_protection_percentage

        self.from_amount = ''
        self.to_amount = ''
        self.solana_wallet: Optional[str] = None
        self.evm_wallet: Optional[str] = None
        self.result: Optional[CrossChainSwapResult] = None
        self.error: Optional[str] = None
        self.loading = False

    def wallet_for(self, chain: ChainModel) -> Optional[str]:
        return self.solana_wallet if chain.index == self.solana_chain_index else self.evm_wallet

    def _check(self) -> Optional[str]:
        loader = self.loader
        amount = parse_amount(self.from_amount)
        if amount is None or not amount.is_finite() or amount <= 0:
            return 'Please enter a valid amount'
        if loader.from_chain is None or loader.to_chain is None:
            return 'Please select both chains'
        if not loader.from_token or not loader.to_token:
            return 'Please select both tokens'
        if self.solana_chain_index not in (loader.from_chain.index, loader.to_chain.index):
            return 'At least one chain must be Solana for cross-chain swaps'
        if not loader.pair_validation.is_valid:
            return f'Invalid token pair: {loader.pair_validation.message}'
        return None

    def build_payload(self) -> dict:
        loader = self.loader
        payload = {
            'action': 'build-tx',
            'fromChainIndex': loader.from_chain.index,
            'toChainIndex': loader.to_chain.index,
            'fromChainId': loader.from_chain.id,
            'toChainId': loader.to_chain.id,
            'fromTokenAddress': loader.from_token.address,
            'toTokenAddress': loader.to_token.address,
            'amount': to_base_units(self.from_amount, loader.from_token.decimals),
            'slippage': self.slippage,
            'userWalletAddress': self.wallet_for(loader.from_chain),
            'receiveAddress': self.wallet_for(loader.to_chain),
            'sort': self.sort,
            'priceImpactProtectionPercentage': self.price_impact_protection_percentage,
        }
        if self.fee_percent:
            payload['feePercent'] = self.fee_percent
        return payload

    async def build_transaction(self) -> Optional[CrossChainSwapResult]:
        self.error = self._check()
        if self.error:
            return None

        self.loading = True
        self.result = None
        payload = self.build_payload()
        logger.info(
            'Building cross-chain transaction %(from_chain)s -> %(to_chain)s',
            {LogArgs.from_chain: payload['fromChainIndex'], LogArgs.to_chain: payload['toChainIndex']},
        )
        try:
            data = await self.gateway.build_transaction(payload)
            if data.get('error'):
                self.error = data['error']
            elif data.get('success') and data.get('data'):
                self.result = CrossChainSwapResult.model_validate(data)
                self.to_amount = to_display_amount(
                    self.result.data[0].to_token_amount, self.loader.to_token.decimals
                )
            else:
                self.error = data.get('msg') or 'Failed to build cross-chain transaction'
        except BaseGatewayError as e:
            self.error = e.message or 'Network error occurred'
        except ValidationError as e:
            logger.error('Unexpected build-tx response', extra={'err': e})
            self.error = 'Failed to build cross-chain transaction'
        finally:
            self.loading = False
        return self.result

    def swap_chains(self) -> None:
        self.loader.swap_selection()
        self.from_amount, self.to_amount = self.to_amount, self.from_amount
        self.result = None

    def reset(self) -> None:
        self.result = None
        self.error = None
        self.to_amount = ''
