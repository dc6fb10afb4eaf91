from contextlib import asynccontextmanager

import aiohttp
from elasticapm.contrib.starlette import ElasticAPM
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from crosschain_gateway.clients.apm_client import ApmClient
from crosschain_gateway.config import Config, chains as default_chains
from crosschain_gateway.config.chains import ChainsConfig
from crosschain_gateway.rest_api import dependencies
from crosschain_gateway.rest_api.middlewares import RouteLoggerMiddleware
from crosschain_gateway.rest_api.routes.crosschain import crosschain_route
from crosschain_gateway.rest_api.routes.dex_swap import dex_swap_route
from crosschain_gateway.rest_api.routes.info import info_route
from crosschain_gateway.rest_api.routes.jupiter import jupiter_route
from crosschain_gateway.rest_api.routes.market_data import market_data_route
from crosschain_gateway.utils.errors import BaseGatewayError, iso_timestamp
from crosschain_gateway.utils.logger import capture_exception, get_logger

logger = get_logger(__name__)


def create_app(config: Config, chains: ChainsConfig = default_chains):
    apm_client = ApmClient(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # the session has to be created inside the running loop
        aiohttp_session = aiohttp.ClientSession(trust_env=True)
        dependencies.build_dependencies(
            config=config,
            chains=chains,
            apm_client=apm_client,
            aiohttp_session=aiohttp_session,
        ).register(app)
        logger.info('Gateway started, %s chains registered', len(chains))
        yield
        await aiohttp_session.close()

    app = FastAPI(
        title='Cross-Chain Swap Gateway',
        description=(
            """Signed proxy for the OKX DEX cross-chain API and the Jupiter public API.
            Serves reference data (bridges, token pairs, tokens) and builds
            ready-to-sign cross-chain transactions with at least one Solana leg."""
        ),
        version=config.VERSION,
        docs_url='/',
        redoc_url='/docs',
        lifespan=lifespan,
    )

    # Setup and register middlewares and routes.
    register_cors(app, config)
    register_gzip(app)
    register_route(app, config)
    register_route_logging(app)
    if config.APM_ENABLED:
        register_elastic_apm(app, apm_client)

    # Common RFC 5741 Exceptions handling, https://tools.ietf.org/html/rfc5741#section-2
    @app.exception_handler(Exception)
    async def http_exception_handler(request: Request, exc: Exception):
        capture_exception(apm_client)
        exception_dict = {
            "type": "Internal Server Error",
            "title": exc.__class__.__name__,
            "instance": f"{config.SERVER_HOST}{request.url.path}",
            "detail": f"{exc.__class__.__name__} at {str(exc)} when executing {request.method} request",
            "error": "Internal Server Error",
            "details": str(exc),
            "timestamp": iso_timestamp(),
        }
        logger.error(
            "Exception when %s: %s",
            exception_dict["instance"],
            exception_dict["detail"],
        )
        return JSONResponse(exception_dict, status_code=500)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(
        request: Request, exc: RequestValidationError
    ):  # pylint: disable=unused-argument
        """
        Handles validation errors.
        """
        return JSONResponse({"message": jsonable_errors(exc)}, status_code=422)

    @app.exception_handler(BaseGatewayError)
    async def handle_gateway_error(request: Request, exc: BaseGatewayError):
        return exc.to_http_exception()

    @app.get("/health_check", include_in_schema=False)
    def health_check():
        """
        Health check
        ---
        tags:
            - util
        responses:
            200:
                description: Returns "OK"
        """
        return Response("OK")

    return app


def jsonable_errors(exc: RequestValidationError) -> list:
    return [
        {'loc': list(error.get('loc', ())), 'msg': error.get('msg'), 'type': error.get('type')}
        for error in exc.errors()
    ]


def register_cors(app: FastAPI, config: Config):
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=config.CORS_CREDENTIALS,
        allow_methods=config.CORS_METHODS,
        allow_headers=config.CORS_HEADERS,
    )


def register_gzip(app: FastAPI):
    app.add_middleware(GZipMiddleware, minimum_size=1000)


def register_route_logging(app: FastAPI):
    app.add_middleware(RouteLoggerMiddleware, skip_routes=['/health_check'])


def register_elastic_apm(app: FastAPI, apm_client: ApmClient):
    app.add_middleware(ElasticAPM, client=apm_client.client)


def register_route(app: FastAPI, config: Config):
    app.include_router(crosschain_route, prefix=config.API_PREFIX, tags=['Cross-Chain Swap'])
    app.include_router(dex_swap_route, prefix=config.API_PREFIX, tags=['DEX Swap'])
    app.include_router(jupiter_route, prefix=f'{config.API_PREFIX}/jupiter', tags=['Jupiter'])
    app.include_router(market_data_route, prefix=config.API_PREFIX, tags=['Market Data'])
    app.include_router(info_route, prefix=config.API_PREFIX, tags=['Info'])
