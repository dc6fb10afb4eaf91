import asyncio
from typing import Awaitable, Callable, List, Optional

import aiohttp
from aiocache import cached
from pydantic import ValidationError
from tenacity import AsyncRetrying, RetryCallState, retry_if_exception_type, stop_after_attempt
from yarl import URL

from crosschain_gateway.clients.apm_client import ApmClient
from crosschain_gateway.config import Config
from crosschain_gateway.models.jupiter_models import (
    JupiterQuoteResponse,
    JupiterSwapInstructions,
    JupiterSwapTransaction,
    JupiterToken,
)
from crosschain_gateway.utils.cache import get_cache_config
from crosschain_gateway.utils.errors import (
    BaseGatewayError,
    ParseResponseError,
    UpstreamAPIError,
    UpstreamNetworkError,
)
from crosschain_gateway.utils.logger import LogArgs, capture_exception, get_logger
from crosschain_gateway.utils.retry import RetryPolicy

logger = get_logger(__name__)


class JupiterClient:
    """
    Jupiter aggregator public API. Docs: https://station.jup.ag/docs/apis/swap-api

    URL structures:
        Quote:  {JUPITER_API_BASE_URL}/quote?inputMint=..&outputMint=..&amount=..
        Swap:   POST {JUPITER_API_BASE_URL}/swap, POST {JUPITER_API_BASE_URL}/swap-instructions
        Tokens: {JUPITER_TOKEN_API_URL}/strict
    """

    UPSTREAM_NAME = 'jupiter'

    def __init__(
        self,
        *,
        session: aiohttp.ClientSession,
        config: Config,
        apm_client: Optional[ApmClient] = None,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], Awaitable] = asyncio.sleep,
        **_,
    ):
        self.aiohttp_session = session
        self.config = config
        self.apm_client = apm_client
        self.retry_policy = retry_policy or RetryPolicy.from_config(config)
        self._sleep = sleep
        self.get_strict_tokens = cached(
            ttl=config.REFERENCE_DATA_TTL, **get_cache_config(config), noself=True
        )(self.get_strict_tokens)

    @property
    def headers(self) -> dict:
        headers = {'Content-Type': 'application/json'}
        if self.config.JUPITER_API_KEY:
            headers['Authorization'] = f'Bearer {self.config.JUPITER_API_KEY}'
        return headers

    async def get_response(
        self,
        url: URL,
        params: Optional[dict] = None,
        method: str = 'GET',
        payload: Optional[dict] = None,
    ):
        """Request with the shared retry policy applied to connectivity failures."""
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(UpstreamNetworkError),
            stop=stop_after_attempt(self.retry_policy.max_retries + 1),
            wait=lambda retry_state: self.retry_policy.error_backoff(retry_state.attempt_number),
            sleep=self._sleep,
            reraise=True,
            before_sleep=self._log_retry,
        )
        async for attempt in retrying:
            with attempt:
                return await self._request_once(method, url, params, payload)

    def _log_retry(self, retry_state: RetryCallState) -> None:
        logger.warning(
            'Retrying %(upstream)s request in %(delay)ss (attempt %(retries)s)',
            {
                LogArgs.upstream: self.UPSTREAM_NAME,
                LogArgs.delay: retry_state.next_action.sleep,
                LogArgs.retries: f'{retry_state.attempt_number}/{self.retry_policy.max_retries}',
            },
        )

    async def _request_once(self, method: str, url: URL, params: Optional[dict], payload: Optional[dict]):
        try:
            status, reason, data = await self._send(method, url, params, payload)
        except (aiohttp.ClientConnectionError, asyncio.TimeoutError) as e:
            raise self.handle_exception(e, url=str(url))
        except aiohttp.ContentTypeError as e:
            raise self.handle_exception(e, url=str(url))
        if not 200 <= status < 300:
            raise self.handle_exception(
                UpstreamAPIError(
                    self.UPSTREAM_NAME,
                    f'Jupiter API Error: {status} {reason}',
                    status=status,
                    url=str(url),
                )
            )
        return data

    async def _send(self, method: str, url: URL, params: Optional[dict], payload: Optional[dict]):
        async with self.aiohttp_session.request(
            method,
            url,
            params=params,
            json=payload,
            headers=self.headers,
            timeout=aiohttp.ClientTimeout(total=self.config.REQUEST_TIMEOUT),
        ) as response:
            logger.debug(
                f'Request {method} %({LogArgs.request_url})s',
                {LogArgs.request_url: str(response.url)},
            )
            data = await response.json() if response.ok else None
            return response.status, response.reason or '', data

    async def get_quote(
        self,
        input_mint: str,
        output_mint: str,
        amount: int,
        slippage_bps: int = 50,
        only_direct_routes: bool = False,
    ) -> JupiterQuoteResponse:
        url = URL(self.config.JUPITER_API_BASE_URL) / 'quote'
        params = {
            'inputMint': input_mint,
            'outputMint': output_mint,
            'amount': str(amount),
            'slippageBps': slippage_bps,
            'onlyDirectRoutes': str(only_direct_routes).lower(),
        }
        response = await self.get_response(url, params)
        try:
            return JupiterQuoteResponse.model_validate(response)
        except ValidationError as e:
            raise self.handle_exception(e, url=str(url))

    def swap_payload(
        self,
        quote: JupiterQuoteResponse,
        user_public_key: str,
        wrap_and_unwrap_sol: bool = True,
        as_legacy_transaction: Optional[bool] = None,
    ) -> dict:
        payload = {
            'quoteResponse': quote.model_dump(by_alias=True),
            'userPublicKey': user_public_key,
            'wrapAndUnwrapSol': wrap_and_unwrap_sol,
        }
        if as_legacy_transaction is not None:
            payload['asLegacyTransaction'] = as_legacy_transaction
        return payload

    async def get_swap_transaction(
        self,
        quote: JupiterQuoteResponse,
        user_public_key: str,
        wrap_and_unwrap_sol: bool = True,
        as_legacy_transaction: bool = False,
    ) -> JupiterSwapTransaction:
        """Serialized transaction for ``quote``. It is returned unsigned, the user wallet signs it."""
        url = URL(self.config.JUPITER_API_BASE_URL) / 'swap'
        payload = self.swap_payload(quote, user_public_key, wrap_and_unwrap_sol, as_legacy_transaction)
        logger.info(
            'Building %(upstream)s swap transaction',
            {LogArgs.upstream: self.UPSTREAM_NAME},
            extra={'user_public_key': user_public_key},
        )
        response = await self.get_response(url, method='POST', payload=payload)
        try:
            return JupiterSwapTransaction.model_validate(response)
        except ValidationError as e:
            raise self.handle_exception(e, url=str(url))

    async def get_swap_instructions(
        self,
        quote: JupiterQuoteResponse,
        user_public_key: str,
        wrap_and_unwrap_sol: bool = True,
    ) -> JupiterSwapInstructions:
        url = URL(self.config.JUPITER_API_BASE_URL) / 'swap-instructions'
        payload = self.swap_payload(quote, user_public_key, wrap_and_unwrap_sol)
        response = await self.get_response(url, method='POST', payload=payload)
        try:
            return JupiterSwapInstructions.model_validate(response)
        except ValidationError as e:
            raise self.handle_exception(e, url=str(url))

    async def get_strict_tokens(self) -> List[JupiterToken]:
        url = URL(self.config.JUPITER_TOKEN_API_URL) / 'strict'
        response = await self.get_response(url)
        try:
            return [JupiterToken.model_validate(token) for token in response]
        except (TypeError, ValidationError) as e:
            raise self.handle_exception(e, url=str(url))

    def handle_exception(self, exception: Exception, **kwargs) -> BaseGatewayError:
        capture_exception(self.apm_client)
        if isinstance(exception, BaseGatewayError):
            exc = exception
        elif isinstance(exception, (aiohttp.ClientConnectionError, asyncio.TimeoutError)):
            exc = UpstreamNetworkError(
                self.UPSTREAM_NAME, 'Failed to connect to Jupiter API', **kwargs
            )
        else:
            exc = ParseResponseError(self.UPSTREAM_NAME, str(exception), **kwargs)
        logger.error(*exc.to_log_args(), extra=exc.to_dict())
        return exc
