import re
from collections import defaultdict
from functools import partial
from typing import Optional

from aiocache import cached
from pydantic import ValidationError

from crosschain_gateway.clients.apm_client import ApmClient
from crosschain_gateway.clients.okx_client import OKXClient
from crosschain_gateway.config import Config
from crosschain_gateway.models.crosschain_models import (
    Bridge,
    CrossChainSwapParams,
    Token,
    TokenPair,
)
from crosschain_gateway.utils.cache import get_cache_config
from crosschain_gateway.utils.errors import (
    CrossChainValidationError,
    iso_timestamp,
)
from crosschain_gateway.utils.logger import LogArgs, get_logger

logger = get_logger(__name__)

BRIDGES_PATH = '/api/v5/dex/cross-chain/supported/bridges'
PAIRS_PATH = '/api/v5/dex/cross-chain/supported/bridge-tokens-pairs'
CHAIN_TOKENS_PATH = '/api/v5/dex/aggregator/all-tokens'
SUPPORTED_TOKENS_PATH = '/api/v5/dex/cross-chain/supported/tokens'
BUILD_TX_PATH = '/api/v5/dex/cross-chain/build-tx'

CHAIN_TOKENS = 'chain-tokens'
CROSS_CHAIN_SUPPORTED = 'cross-chain-supported'

REQUIRED_SWAP_PARAMS = (
    'fromChainIndex',
    'toChainIndex',
    'fromChainId',
    'toChainId',
    'fromTokenAddress',
    'toTokenAddress',
    'amount',
    'slippage',
    'userWalletAddress',
)
SOLANA_CHAIN_INDEX = '501'
MIN_SLIPPAGE = 0.002
MAX_SLIPPAGE = 0.5

NUMERIC_RE = re.compile(r'^\d+$')
AMOUNT_RE = re.compile(r'^\d+(\.\d+)?$')


def validate_crosschain_params(params: dict) -> Optional[str]:
    """Return the first problem with build-tx parameters, None when they are fine."""
    for name in REQUIRED_SWAP_PARAMS:
        if not params.get(name):
            return f'Missing required parameter: {name}'

    if not (
        NUMERIC_RE.match(str(params['fromChainIndex']))
        and NUMERIC_RE.match(str(params['toChainIndex']))
    ):
        return 'Invalid chain index format. Must be numeric strings.'

    if not AMOUNT_RE.match(str(params['amount'])):
        return 'Invalid amount format. Must be a numeric string.'

    try:
        slippage = float(params['slippage'])
    except (TypeError, ValueError):
        slippage = None
    if slippage is None or not MIN_SLIPPAGE <= slippage <= MAX_SLIPPAGE:
        return f'Slippage must be between {MIN_SLIPPAGE} and {MAX_SLIPPAGE}'

    if SOLANA_CHAIN_INDEX not in (str(params['fromChainIndex']), str(params['toChainIndex'])):
        return f'At least one chain must be Solana (chainIndex: {SOLANA_CHAIN_INDEX})'

    return None


def check_chain_index(chain_index: Optional[str], name: str = 'chainIndex') -> None:
    if chain_index and not NUMERIC_RE.match(chain_index):
        raise CrossChainValidationError(f'Invalid {name}', f'{name} must be a numeric string')


def transform_bridge(bridge: dict) -> Bridge:
    supported_chains = bridge.get('supportedChains') or []
    return Bridge(
        bridge_id=bridge['bridgeId'],
        bridge_name=bridge['bridgeName'],
        require_other_native_fee=bool(
            bridge.get('requireOtherNativeFee') or bridge.get('requiredOtherNativeFee') or False
        ),
        logo_url=bridge.get('logoUrl') or bridge.get('logo'),
        supported_chains=supported_chains,
        supports_solana=SOLANA_CHAIN_INDEX in supported_chains,
    )


def transform_pair(pair: dict) -> TokenPair:
    return TokenPair(
        from_chain_index=pair['fromChainIndex'],
        to_chain_index=pair['toChainIndex'],
        from_chain_id=pair.get('fromChainId'),
        to_chain_id=pair.get('toChainId'),
        from_token_address=pair.get('fromTokenAddress') or '',
        to_token_address=pair.get('toTokenAddress') or '',
        from_token_symbol=pair['fromTokenSymbol'],
        to_token_symbol=pair['toTokenSymbol'],
        pair_id='{}-{}-{}-{}'.format(
            pair['fromChainIndex'],
            pair['toChainIndex'],
            pair['fromTokenSymbol'],
            pair['toTokenSymbol'],
        ),
    )


def transform_token(token: dict, chain_index: Optional[str]) -> Token:
    return Token(
        symbol=token['tokenSymbol'],
        name=token.get('tokenName') or '',
        address=token['tokenContractAddress'],
        decimals=int(token['decimals']),
        logo_url=token.get('tokenLogoUrl'),
        chain_index=token.get('chainIndex') or chain_index or '',
        chain_id=token.get('chainId') or chain_index,
        has_logo=bool(token.get('tokenLogoUrl')),
    )


class CrossChainService:
    """
    Signed proxy for the OKX cross-chain endpoints.

    Bridges and pairs are reference data and are cached, tokens and
    build-tx always go upstream.
    """

    def __init__(
        self,
        *,
        config: Config,
        okx_client: OKXClient,
        apm_client: Optional[ApmClient] = None,
    ):
        self.config = config
        self.okx_client = okx_client
        self.apm_client = apm_client

        cached_ = partial(cached, **get_cache_config(config))
        self.get_bridges = cached_(ttl=config.REFERENCE_DATA_TTL, noself=True)(self.get_bridges)
        self.get_pairs = cached_(ttl=config.REFERENCE_DATA_TTL, noself=True)(self.get_pairs)

    def ensure_credentials(self) -> None:
        self.okx_client.ensure_credentials()

    async def get_bridges(self, chain_index: Optional[str] = None) -> dict:
        self.ensure_credentials()
        check_chain_index(chain_index)
        params = {'chainIndex': chain_index, 'chainId': chain_index} if chain_index else None
        result = await self.okx_client.get(BRIDGES_PATH, params)

        bridges = [transform_bridge(bridge) for bridge in result.get('data') or []]
        solana_bridges = [bridge for bridge in bridges if bridge.supports_solana]
        logger.debug(
            'Loaded bridges for chain %(chain_index)s',
            {LogArgs.chain_index: chain_index or 'all'},
            extra={'count': len(bridges)},
        )
        return {
            'success': True,
            'chainIndex': chain_index or 'all',
            'timestamp': iso_timestamp(),
            'totalBridges': len(bridges),
            'solanaBridges': len(solana_bridges),
            'bridges': [bridge.to_camel_case_dict() for bridge in bridges],
            'solanaSupportedBridges': [bridge.to_camel_case_dict() for bridge in solana_bridges],
            **result,
        }

    async def get_pairs(self, from_chain_index: Optional[str] = None) -> dict:
        self.ensure_credentials()
        from_chain_index = from_chain_index or self.config.SOLANA_CHAIN_INDEX
        check_chain_index(from_chain_index, 'fromChainIndex')
        result = await self.okx_client.get(PAIRS_PATH, {'fromChainIndex': from_chain_index})

        pairs = [transform_pair(pair).to_camel_case_dict() for pair in result.get('data') or []]
        pairs_by_chain = defaultdict(list)
        for pair in pairs:
            pairs_by_chain[f'{pair["fromChainIndex"]}-{pair["toChainIndex"]}'].append(pair)
        logger.debug(
            'Loaded pairs for chain %(from_chain)s',
            {LogArgs.from_chain: from_chain_index},
            extra={'count': len(pairs)},
        )
        return {
            'success': True,
            'fromChainIndex': from_chain_index,
            'timestamp': iso_timestamp(),
            'totalPairs': len(pairs),
            'pairs': pairs,
            'pairsByChain': dict(pairs_by_chain),
            **result,
        }

    async def get_tokens(self, chain_index: Optional[str] = None, token_type: Optional[str] = None) -> dict:
        self.ensure_credentials()
        check_chain_index(chain_index)
        params = {'chainIndex': chain_index, 'chainId': chain_index} if chain_index else None
        if token_type == CROSS_CHAIN_SUPPORTED:
            result = await self.okx_client.get(SUPPORTED_TOKENS_PATH, params)
            api_type = 'Cross-Chain Supported Tokens'
        else:
            if not chain_index:
                raise CrossChainValidationError(
                    'Missing chainIndex', 'chainIndex is required for chain-tokens type'
                )
            result = await self.okx_client.get(CHAIN_TOKENS_PATH, params)
            api_type = 'Chain Tokens'

        tokens = [transform_token(token, chain_index).to_camel_case_dict() for token in result.get('data') or []]
        return {
            'success': True,
            'type': api_type,
            'chainIndex': chain_index or 'all',
            'timestamp': iso_timestamp(),
            'totalTokens': len(tokens),
            'tokens': tokens,
            **result,
        }

    async def build_swap_tx(self, action: Optional[str], params: dict) -> dict:
        self.ensure_credentials()
        if action != 'build-tx':
            raise CrossChainValidationError(
                'Invalid action', "Action must be 'build-tx' for cross-chain swaps"
            )
        error = validate_crosschain_params(params)
        if error:
            raise CrossChainValidationError(error)

        try:
            swap_params = CrossChainSwapParams.model_validate(params)
        except ValidationError as e:
            raise CrossChainValidationError('Invalid parameters', str(e.errors()[0]['msg']))
        logger.info(
            'Building cross-chain swap %(from_chain)s -> %(to_chain)s',
            {LogArgs.from_chain: swap_params.from_chain_index, LogArgs.to_chain: swap_params.to_chain_index},
        )
        result = await self.okx_client.get(BUILD_TX_PATH, swap_params.to_query_params())
        return {
            'success': True,
            'action': action,
            'timestamp': iso_timestamp(),
            'fromChain': swap_params.from_chain_index,
            'toChain': swap_params.to_chain_index,
            **result,
        }
