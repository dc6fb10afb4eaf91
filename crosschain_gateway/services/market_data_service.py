from typing import Optional

from pydantic import ValidationError

from crosschain_gateway.clients.apm_client import ApmClient
from crosschain_gateway.clients.okx_client import OKXClient
from crosschain_gateway.models.market_models import (
    BaseMarketRequest,
    market_request_adapter,
)
from crosschain_gateway.utils.errors import CrossChainValidationError
from crosschain_gateway.utils.logger import LogArgs, get_logger

logger = get_logger(__name__)

UNKNOWN_PATH_ERRORS = ('union_tag_invalid', 'union_tag_not_found')


class MarketDataService:
    """Forwards typed market, balance and transaction-history requests to OKX."""

    def __init__(self, *, okx_client: OKXClient, apm_client: Optional[ApmClient] = None):
        self.okx_client = okx_client
        self.apm_client = apm_client

    @staticmethod
    def parse_request(payload: dict) -> BaseMarketRequest:
        try:
            request = market_request_adapter.validate_python(payload)
        except ValidationError as e:
            if any(error['type'] in UNKNOWN_PATH_ERRORS for error in e.errors()):
                raise CrossChainValidationError('Unsupported API path')
            raise CrossChainValidationError('Invalid request', str(e.errors()[0]['msg']))

        if request.method != request.METHOD:
            raise CrossChainValidationError(
                f'Invalid HTTP method for this endpoint. Use {request.METHOD}'
            )
        missing = request.missing_param()
        if missing:
            raise CrossChainValidationError(f'Missing required parameter: {missing}')
        return request

    async def forward(self, payload: dict) -> dict:
        request = self.parse_request(payload)
        logger.info(
            'Forwarding %(upstream)s market request',
            {LogArgs.upstream: OKXClient.UPSTREAM_NAME},
            extra={'path': request.path, 'method': request.METHOD},
        )
        if request.METHOD == 'GET':
            return await self.okx_client.get(request.path, request.params())
        return await self.okx_client.post(request.path, request.params())
