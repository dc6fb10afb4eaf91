import asyncio
from enum import Enum
from typing import Awaitable, Callable, Dict, List, Optional

import aiohttp
from pydantic import ValidationError

from crosschain_gateway.clients.gateway_client import GatewayClient
from crosschain_gateway.config import Config
from crosschain_gateway.config.chains import ChainsConfig
from crosschain_gateway.models.chain import ChainModel
from crosschain_gateway.models.crosschain_models import (
    Bridge,
    LoadingProgress,
    PairValidationResult,
    Token,
    TokenPair,
)
from crosschain_gateway.services.pair_validator import validate_token_pair
from crosschain_gateway.services.request_queue import RateLimitedQueue
from crosschain_gateway.utils.errors import (
    BaseGatewayError,
    DataLoaderError,
    RateLimitExceededError,
    RequestQueueError,
)
from crosschain_gateway.utils.logger import LogArgs, get_logger

logger = get_logger(__name__)

LOADER_ERRORS = (
    RequestQueueError,
    DataLoaderError,
    BaseGatewayError,
    ValidationError,
    aiohttp.ClientError,
    asyncio.TimeoutError,
)


class LoadingStep(str, Enum):
    IDLE = 'idle'
    LOADING_BRIDGES = 'loading_bridges'
    LOADING_PAIRS = 'loading_pairs'
    LOADING_FROM_TOKENS = 'loading_from_tokens'
    LOADING_TO_TOKENS = 'loading_to_tokens'
    DONE = 'done'
    FAILED = 'failed'


TOTAL_STEPS = 4
IN_FLIGHT = (
    LoadingStep.LOADING_BRIDGES,
    LoadingStep.LOADING_PAIRS,
    LoadingStep.LOADING_FROM_TOKENS,
    LoadingStep.LOADING_TO_TOKENS,
)


def pick_default_token(
    tokens: List[Token], current: Optional[Token], preferred_symbol: str
) -> Optional[Token]:
    if not tokens:
        return None
    if current is not None:
        for token in tokens:
            if token.address == current.address and token.symbol == current.symbol:
                return token
    for token in tokens:
        if token.symbol == preferred_symbol:
            return token
    return tokens[0]


class DataLoader:
    """
    Loads the reference data of a cross-chain swap session in a fixed order:
    bridges, pairs, tokens of the source chain, tokens of the destination chain.

    Every fetch is a named step of the shared ``RateLimitedQueue``. The first
    failing step stops the pipeline and leaves the loader in ``FAILED`` with a
    readable ``error``. Pair validation is recomputed whenever selections or
    reference data change.
    """

    def __init__(
        self,
        *,
        queue: RateLimitedQueue,
        gateway: GatewayClient,
        chains: ChainsConfig,
        config: Config,
        sleep: Callable[[float], Awaitable] = asyncio.sleep,
    ):
        self.queue = queue
        self.gateway = gateway
        self.chains = chains
        self.debounce = config.LOADER_DEBOUNCE
        self.initial_delay = config.QUEUE_INITIAL_DELAY
        self._sleep = sleep

        chain_list = list(chains)
        self.from_chain: Optional[ChainModel] = chain_list[0] if chain_list else None
        self.to_chain: Optional[ChainModel] = chain_list[1] if len(chain_list) > 1 else None
        self.from_token: Optional[Token] = None
        self.to_token: Optional[Token] = None

        self.bridges: List[Bridge] = []
        self.pairs: List[TokenPair] = []
        self.from_tokens: List[Token] = []
        self.to_tokens: List[Token] = []

        self.step = LoadingStep.IDLE
        self.progress = LoadingProgress()
        self.error: Optional[str] = None
        self.is_rate_limited = False
        self.request_count = 0
        self.pair_validation = PairValidationResult(message='Please select both tokens')

        self._load_task: Optional[asyncio.Task] = None
        self._reload_task: Optional[asyncio.Task] = None
        self._reload_pending = False
        self._tokens_chains: Optional[tuple] = None
        self._tokens_lock = asyncio.Lock()

    @property
    def is_loading(self) -> bool:
        return self.step in IN_FLIGHT

    def _set_step(self, step: LoadingStep, index: int, message: str) -> None:
        self.step = step
        self.progress = LoadingProgress(
            current_step=message,
            progress=round(index / TOTAL_STEPS * 100),
            current_step_index=index,
        )
        logger.info('%(step)s', {LogArgs.step: message})

    def _fail(self, message: str) -> None:
        self.step = LoadingStep.FAILED
        self.error = message
        self.progress = LoadingProgress(current_step='Error occurred')
        logger.error('%(step)s', {LogArgs.step: message})

    def revalidate(self) -> PairValidationResult:
        self.pair_validation = validate_token_pair(
            self.from_token,
            self.to_token,
            self.from_chain,
            self.to_chain,
            self.pairs,
            self.bridges,
        )
        return self.pair_validation

    async def fetch_with_queue(self, url: str, step_name: str, key: str) -> list:
        try:
            data = await self.queue.enqueue(url, step_name, self.initial_delay)
        except RateLimitExceededError:
            self.is_rate_limited = True
            raise
        if not isinstance(data, dict) or not data.get('success') or data.get(key) is None:
            error = data.get('error') if isinstance(data, dict) else None
            raise DataLoaderError(error or f'Failed to fetch {step_name}')
        self.request_count += 1
        return data[key]

    async def load_all_data(self) -> None:
        """Reload everything. A call made while a run is in flight joins that run."""
        if self._load_task is None or self._load_task.done():
            self._load_task = asyncio.ensure_future(self._load_all_data())
        else:
            logger.info('Data load already running, joining it')
        await asyncio.shield(self._load_task)

    async def _load_all_data(self) -> None:
        # the full run loads tokens for the current chains itself
        await self._cancel_reload()
        self.error = None
        self.is_rate_limited = False
        self.request_count = 0
        self.bridges, self.pairs, self.from_tokens, self.to_tokens = [], [], [], []
        self.progress = LoadingProgress(current_step='Starting data load...')
        self.revalidate()

        try:
            self._set_step(LoadingStep.LOADING_BRIDGES, 1, 'Loading bridges...')
            bridges = await self.fetch_with_queue(self.gateway.bridges_url(), 'Loading bridges', 'bridges')
            self.bridges = [Bridge.model_validate(bridge) for bridge in bridges]
            self.revalidate()
            logger.info('Loaded %s supported bridges', len(self.bridges))

            self._set_step(LoadingStep.LOADING_PAIRS, 2, 'Loading token pairs...')
            pairs = await self.fetch_with_queue(self.gateway.pairs_url(), 'Loading token pairs', 'pairs')
            self.pairs = [TokenPair.model_validate(pair) for pair in pairs]
            self.revalidate()
            logger.info('Loaded %s supported token pairs', len(self.pairs))
        except LOADER_ERRORS as e:
            self._fail(f'Failed to load data: {e}')
            return

        await self.load_tokens_for_chains()

    async def load_tokens_for_chains(self) -> None:
        async with self._tokens_lock:
            try:
                await self._load_tokens()
            except LOADER_ERRORS as e:
                self._fail(f'Failed to load tokens: {e}')
                return
        self._set_step(LoadingStep.DONE, TOTAL_STEPS, 'All data loaded successfully!')

    async def _load_tokens(self) -> None:
        from_chain, to_chain = self.from_chain, self.to_chain
        if from_chain is None or to_chain is None:
            raise DataLoaderError('Please select both chains')
        self._tokens_chains = (from_chain.index, to_chain.index)

        step_name = f'Loading {from_chain.name} tokens'
        self._set_step(LoadingStep.LOADING_FROM_TOKENS, 3, f'{step_name}...')
        tokens = await self.fetch_with_queue(self.gateway.tokens_url(from_chain.index), step_name, 'tokens')
        self.from_tokens = [Token.model_validate(token) for token in tokens]
        self.from_token = pick_default_token(self.from_tokens, self.from_token, 'SOL')
        self.revalidate()

        step_name = f'Loading {to_chain.name} tokens'
        self._set_step(LoadingStep.LOADING_TO_TOKENS, 4, f'{step_name}...')
        tokens = await self.fetch_with_queue(self.gateway.tokens_url(to_chain.index), step_name, 'tokens')
        self.to_tokens = [Token.model_validate(token) for token in tokens]
        self.to_token = pick_default_token(self.to_tokens, self.to_token, 'USDC')
        self.revalidate()

    def set_from_chain(self, chain: ChainModel) -> None:
        self.from_chain = chain
        self.revalidate()
        self._schedule_token_reload()

    def set_to_chain(self, chain: ChainModel) -> None:
        self.to_chain = chain
        self.revalidate()
        self._schedule_token_reload()

    def set_from_token(self, token: Optional[Token]) -> None:
        self.from_token = token
        self.revalidate()

    def set_to_token(self, token: Optional[Token]) -> None:
        self.to_token = token
        self.revalidate()

    def swap_selection(self) -> None:
        self.from_chain, self.to_chain = self.to_chain, self.from_chain
        self.from_token, self.to_token = self.to_token, self.from_token
        self.from_tokens, self.to_tokens = self.to_tokens, self.from_tokens
        self.revalidate()
        self._schedule_token_reload()

    def _schedule_token_reload(self) -> Optional[asyncio.Task]:
        if not self.pairs:
            return None
        if self._reload_pending and self._reload_task is not None:
            self._reload_task.cancel()
        self._reload_pending = True
        self._reload_task = asyncio.ensure_future(self._debounced_reload())
        return self._reload_task

    async def _debounced_reload(self) -> None:
        await self._sleep(self.debounce)
        # past this point a newer chain change no longer cancels the reload
        self._reload_pending = False
        if self._load_task is not None and not self._load_task.done():
            await asyncio.shield(self._load_task)
            if not self.pairs or self._tokens_chains == self._selected_chains():
                return
        await self.load_tokens_for_chains()

    async def _cancel_reload(self) -> None:
        task = self._reload_task
        if task is None or task.done():
            return
        task.cancel()
        self._reload_pending = False
        try:
            await task
        except asyncio.CancelledError:
            if not task.cancelled():
                raise
            logger.info('Token reload dropped, full data load in progress')

    def _selected_chains(self) -> Optional[tuple]:
        if self.from_chain is None or self.to_chain is None:
            return None
        return self.from_chain.index, self.to_chain.index

    async def wait_for_reload(self) -> None:
        if self._reload_task is not None:
            try:
                await self._reload_task
            except asyncio.CancelledError:
                pass

    def current_chain_pairs(self) -> List[TokenPair]:
        if self.from_chain is None or self.to_chain is None:
            return []
        return [
            pair for pair in self.pairs
            if pair.from_chain_index == self.from_chain.index and pair.to_chain_index == self.to_chain.index
        ]

    def chain_combinations(self) -> List[Dict]:
        """Pairs grouped by chain route, only routes between known chains."""
        known = {chain.index: chain for chain in self.chains}
        combinations: Dict[str, Dict] = {}
        for pair in self.pairs:
            if pair.from_chain_index not in known or pair.to_chain_index not in known:
                continue
            combination = combinations.setdefault(
                pair.route_key,
                {'from': known[pair.from_chain_index], 'to': known[pair.to_chain_index], 'pairs': []},
            )
            combination['pairs'].append(pair)
        return list(combinations.values())
