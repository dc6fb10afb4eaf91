import aiohttp
import fastapi
from pydantic import BaseModel, ConfigDict

from crosschain_gateway.clients.apm_client import ApmClient
from crosschain_gateway.clients.jupiter_client import JupiterClient
from crosschain_gateway.clients.okx_client import OKXClient
from crosschain_gateway.config import Config
from crosschain_gateway.config.chains import ChainsConfig
from crosschain_gateway.services.crosschain_service import CrossChainService
from crosschain_gateway.services.dex_swap_service import DexSwapService
from crosschain_gateway.services.market_data_service import MarketDataService


class Dependencies(BaseModel):
    """
    Holds the dependencies that should exist for the lifetime of the application.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, extra='forbid', frozen=True)

    aiohttp_session: aiohttp.ClientSession
    config: Config
    chains: ChainsConfig
    apm_client: ApmClient
    okx_client: OKXClient
    jupiter_client: JupiterClient
    crosschain_service: CrossChainService
    dex_swap_service: DexSwapService
    market_data_service: MarketDataService

    def register(self, app: fastapi.FastAPI):
        """
        Registers itself in the application.
        """
        app.state.dependencies = self


def build_dependencies(
    config: Config,
    chains: ChainsConfig,
    apm_client: ApmClient,
    aiohttp_session: aiohttp.ClientSession,
) -> Dependencies:
    okx_client = OKXClient(session=aiohttp_session, config=config, apm_client=apm_client)
    jupiter_client = JupiterClient(session=aiohttp_session, config=config, apm_client=apm_client)
    return Dependencies(
        aiohttp_session=aiohttp_session,
        config=config,
        chains=chains,
        apm_client=apm_client,
        okx_client=okx_client,
        jupiter_client=jupiter_client,
        crosschain_service=CrossChainService(
            config=config, okx_client=okx_client, apm_client=apm_client
        ),
        dex_swap_service=DexSwapService(okx_client=okx_client, apm_client=apm_client),
        market_data_service=MarketDataService(okx_client=okx_client, apm_client=apm_client),
    )


def _get(request: fastapi.Request) -> Dependencies:
    return request.app.state.dependencies


def config(request: fastapi.Request) -> Config:
    return _get(request).config


def chains(request: fastapi.Request) -> ChainsConfig:
    return _get(request).chains


def jupiter_client(request: fastapi.Request) -> JupiterClient:
    return _get(request).jupiter_client


def crosschain_service(request: fastapi.Request) -> CrossChainService:
    return _get(request).crosschain_service


def dex_swap_service(request: fastapi.Request) -> DexSwapService:
    return _get(request).dex_swap_service


def market_data_service(request: fastapi.Request) -> MarketDataService:
    return _get(request).market_data_service
