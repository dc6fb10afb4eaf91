import pytest
from starlette.testclient import TestClient

from crosschain_gateway.config import Config
from crosschain_gateway.config.chains import ChainsConfig
from crosschain_gateway.rest_api.create_app import create_app
from crosschain_gateway.tests.fixtures import *  # noqa: F401, F403


@pytest.fixture()
def config() -> Config:
    return Config(
        API_KEY='test-api-key',
        SECRET_KEY='test-secret-key',
        PASSPHRASE='test-passphrase',
        APM_ENABLED=False,
        CACHE='memory',
        LOADER_DEBOUNCE=0.01,
    )


@pytest.fixture()
def chains() -> ChainsConfig:
    return ChainsConfig()


@pytest.fixture()
def gateway_app_client(config, chains) -> TestClient:
    app = create_app(config=config, chains=chains)
    with TestClient(app, raise_server_exceptions=False) as client:
        yield client
