import asyncio
from typing import Optional

import aiohttp
from yarl import URL

from crosschain_gateway.config import Config
from crosschain_gateway.utils.errors import UpstreamNetworkError
from crosschain_gateway.utils.logger import LogArgs, get_logger

logger = get_logger(__name__)


class GatewayClient:
    """
    Client of this service's own proxy routes.

    The data loader only needs URLs, it sends them through the request queue.
    Building a transaction is a single POST and goes out directly.
    """

    UPSTREAM_NAME = 'gateway'

    def __init__(
        self,
        *,
        session: aiohttp.ClientSession,
        config: Config,
        base_url: Optional[str] = None,
        **_,
    ):
        self.aiohttp_session = session
        self.config = config
        self.base_url = URL(base_url or config.GATEWAY_BASE_URL) / config.API_PREFIX.strip('/')

    def bridges_url(self, chain_index: Optional[str] = None) -> str:
        url = self.base_url / 'cross-chain-bridges'
        if chain_index:
            url = url.with_query(chainIndex=chain_index)
        return str(url)

    def pairs_url(self, from_chain_index: Optional[str] = None) -> str:
        url = self.base_url / 'cross-chain-pairs'
        if from_chain_index:
            url = url.with_query(fromChainIndex=from_chain_index)
        return str(url)

    def tokens_url(self, chain_index: str, token_type: str = 'chain-tokens') -> str:
        url = (self.base_url / 'cross-chain-tokens').with_query(chainIndex=chain_index, type=token_type)
        return str(url)

    async def build_transaction(self, payload: dict) -> dict:
        """POST a build-tx request. Error bodies are returned as is, they carry ``error``."""
        url = self.base_url / 'cross-chain-swap'
        try:
            async with self.aiohttp_session.post(
                url,
                json=payload,
                timeout=aiohttp.ClientTimeout(total=self.config.REQUEST_TIMEOUT),
            ) as response:
                logger.debug(
                    'Request POST %(request_url)s',
                    {LogArgs.request_url: str(url)},
                    extra={LogArgs.status: response.status},
                )
                return await response.json(content_type=None)
        except (aiohttp.ClientConnectionError, asyncio.TimeoutError) as e:
            raise UpstreamNetworkError(self.UPSTREAM_NAME, str(e) or 'Network error occurred') from e
