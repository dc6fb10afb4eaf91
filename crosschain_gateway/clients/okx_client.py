import asyncio
import base64
import hashlib
import hmac
from typing import Optional, Sequence, Tuple, Union
from urllib.parse import urlencode

import aiohttp
import ujson
from yarl import URL

from crosschain_gateway.clients.apm_client import ApmClient
from crosschain_gateway.config import Config
from crosschain_gateway.utils.errors import (
    BaseGatewayError,
    CredentialsNotConfiguredError,
    ParseResponseError,
    UpstreamAPIError,
    UpstreamNetworkError,
    iso_timestamp,
)
from crosschain_gateway.utils.logger import LogArgs, capture_exception, get_logger

logger = get_logger(__name__)

QueryParams = Union[dict, Sequence[Tuple[str, str]], None]


class OKXClient:
    """
    Signed client for the OKX Web3 DEX API. Docs: https://web3.okx.com/build/docs/waas/dex-api-access-and-usage

    Every request carries OK-ACCESS-* headers. The signature is
    base64(HMAC-SHA256(secret, timestamp + method + request_path + query + body)),
    where query keeps its leading '?' and body is the raw JSON string.
    """

    UPSTREAM_NAME = 'okx'

    def __init__(
        self,
        *,
        session: aiohttp.ClientSession,
        config: Config,
        apm_client: Optional[ApmClient] = None,
        **_,
    ):
        self.aiohttp_session = session
        self.config = config
        self.apm_client = apm_client

    def sign(
        self,
        timestamp: str,
        method: str,
        request_path: str,
        query_string: str = '',
        body: str = '',
    ) -> dict:
        message = timestamp + method + request_path + query_string + body
        digest = hmac.new(
            self.config.SECRET_KEY.encode(), message.encode(), hashlib.sha256
        ).digest()
        return {
            'Content-Type': 'application/json',
            'OK-ACCESS-KEY': self.config.API_KEY,
            'OK-ACCESS-SIGN': base64.b64encode(digest).decode(),
            'OK-ACCESS-TIMESTAMP': timestamp,
            'OK-ACCESS-PASSPHRASE': self.config.PASSPHRASE,
        }

    def ensure_credentials(self) -> None:
        if not self.config.okx_credentials_configured:
            raise CredentialsNotConfiguredError(self.UPSTREAM_NAME)

    @staticmethod
    def build_query_string(params: QueryParams) -> str:
        if not params:
            return ''
        return '?' + urlencode(params)

    async def get(self, request_path: str, params: QueryParams = None) -> dict:
        return await self.get_response('GET', request_path, query_string=self.build_query_string(params))

    async def post(self, request_path: str, body: Union[dict, list, None] = None) -> dict:
        raw_body = ujson.dumps(body) if body is not None else ''
        return await self.get_response('POST', request_path, body=raw_body)

    async def get_response(
        self,
        method: str,
        request_path: str,
        query_string: str = '',
        body: str = '',
    ) -> dict:
        self.ensure_credentials()

        headers = self.sign(iso_timestamp(), method, request_path, query_string, body)
        url = URL(self.config.OKX_BASE_URL + request_path + query_string, encoded=True)
        try:
            status, reason, raw = await self._send(method, url, headers, body)
        except (aiohttp.ClientConnectionError, asyncio.TimeoutError) as e:
            raise self.handle_exception(e, request_path=request_path)

        if not 200 <= status < 300:
            raise self.handle_exception(
                UpstreamAPIError(
                    self.UPSTREAM_NAME,
                    f'OKX API Error: {status} {reason}',
                    status=status,
                    request_path=request_path,
                )
            )
        try:
            return ujson.loads(raw)
        except ValueError as e:
            raise self.handle_exception(e, request_path=request_path)

    async def _send(
        self, method: str, url: URL, headers: dict, body: str
    ) -> Tuple[int, str, bytes]:
        async with self.aiohttp_session.request(
            method,
            url,
            headers=headers,
            data=body or None,
            timeout=aiohttp.ClientTimeout(total=self.config.REQUEST_TIMEOUT),
        ) as response:
            logger.debug(
                f'Request {method} %({LogArgs.request_url})s',
                {LogArgs.request_url: str(url)},
                extra={LogArgs.status: response.status},
            )
            return response.status, response.reason or '', await response.read()

    def handle_exception(self, exception: Exception, **kwargs) -> BaseGatewayError:
        capture_exception(self.apm_client)
        if isinstance(exception, BaseGatewayError):
            exc = exception
        elif isinstance(exception, (aiohttp.ClientConnectionError, asyncio.TimeoutError)):
            exc = UpstreamNetworkError(
                self.UPSTREAM_NAME, 'Failed to connect to OKX API', **kwargs
            )
        elif isinstance(exception, ValueError):
            exc = ParseResponseError(self.UPSTREAM_NAME, str(exception), **kwargs)
        else:
            exc = UpstreamAPIError(self.UPSTREAM_NAME, str(exception), **kwargs)
        logger.error(*exc.to_log_args(), extra=exc.to_dict())
        return exc
