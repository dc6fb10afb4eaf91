from typing import Optional

from pydantic import ValidationError

from crosschain_gateway.clients.apm_client import ApmClient
from crosschain_gateway.clients.okx_client import OKXClient
from crosschain_gateway.models.dex_swap_models import DexSwapParams
from crosschain_gateway.services.crosschain_service import AMOUNT_RE, NUMERIC_RE
from crosschain_gateway.utils.errors import CrossChainValidationError, iso_timestamp
from crosschain_gateway.utils.logger import LogArgs, get_logger

logger = get_logger(__name__)

QUOTE_PATH = '/api/v5/dex/aggregator/quote'
SWAP_INSTRUCTION_PATH = '/api/v5/dex/aggregator/swap-instruction'

QUOTE = 'quote'
INSTRUCTIONS = 'instructions'
DEX_SWAP_ACTIONS = (QUOTE, INSTRUCTIONS)

REQUIRED_DEX_SWAP_PARAMS = ('chainId', 'fromTokenAddress', 'toTokenAddress', 'amount', 'slippage')
OPTIONAL_INSTRUCTION_PARAMS = ['feePercent', 'priceTolerance', 'autoSlippage', 'pathNum']
MAX_DEX_SLIPPAGE = 100


def validate_swap_params(params: dict, require_wallet: bool = False) -> Optional[str]:
    """Return the first problem with aggregator swap parameters, None when they are fine."""
    required = list(REQUIRED_DEX_SWAP_PARAMS)
    if require_wallet:
        required.append('userWalletAddress')
    for name in required:
        if not params.get(name):
            return f'Missing required parameter: {name}'

    if not NUMERIC_RE.match(str(params['chainId'])):
        return 'Invalid chainId format. Must be a numeric string.'
    if not AMOUNT_RE.match(str(params['amount'])):
        return 'Invalid amount format. Must be a numeric string.'
    if not AMOUNT_RE.match(str(params['slippage'])):
        return 'Invalid slippage format. Must be a numeric string.'
    if not 0 <= float(params['slippage']) <= MAX_DEX_SLIPPAGE:
        return f'Slippage must be between 0 and {MAX_DEX_SLIPPAGE}'
    return None


class DexSwapService:
    """
    Signed proxy for the OKX single-chain aggregator: quotes and
    swap instructions. Transactions are never broadcast from here.
    """

    def __init__(self, *, okx_client: OKXClient, apm_client: Optional[ApmClient] = None):
        self.okx_client = okx_client
        self.apm_client = apm_client

    async def swap(self, action: Optional[str], params: dict) -> dict:
        self.okx_client.ensure_credentials()
        if action not in DEX_SWAP_ACTIONS:
            raise CrossChainValidationError(
                'Invalid action', f'Action must be one of: {", ".join(DEX_SWAP_ACTIONS)}'
            )
        error = validate_swap_params(params, require_wallet=action == INSTRUCTIONS)
        if error:
            raise CrossChainValidationError(error)

        try:
            swap_params = DexSwapParams.model_validate(params)
        except ValidationError as e:
            raise CrossChainValidationError('Invalid parameters', str(e.errors()[0]['msg']))

        logger.info(
            'DEX swap %(step)s on chain %(chain_index)s',
            {LogArgs.step: action, LogArgs.chain_index: swap_params.chain_id},
        )
        if action == QUOTE:
            result = await self.okx_client.get(QUOTE_PATH, swap_params.quote_query_params())
        else:
            result = await self.okx_client.get(
                SWAP_INSTRUCTION_PATH, swap_params.instruction_query_params()
            )
        return {
            'success': True,
            'action': action,
            'timestamp': iso_timestamp(),
            'chainId': swap_params.chain_id,
            **result,
        }
