from pydantic_settings import SettingsConfigDict

from crosschain_gateway.config.apm import APMConfig
from crosschain_gateway.config.cache import CacheConfig
from crosschain_gateway.config.logger import LoggerConfig
from crosschain_gateway.config.okx import OKXConfig
from crosschain_gateway.config.queue import QueueConfig


class Config(APMConfig, LoggerConfig, CacheConfig, OKXConfig, QueueConfig):
    SERVER_HOST: str = 'localhost'
    SERVER_PORT: int = 8000
    RELOAD: bool = True
    VERSION: str = '0.0.1'
    API_PREFIX: str = '/api'
    SOLANA_CHAIN_INDEX: str = '501'
    CORS_ORIGINS: list = ['*']
    CORS_CREDENTIALS: bool = True
    CORS_METHODS: list = ['*']
    CORS_HEADERS: list = ['*']
    WORKERS_COUNT: int = 1

    model_config = SettingsConfigDict(env_file='.env', extra='ignore')


config = Config()

from crosschain_gateway.config.chains import ChainsConfig  # noqa: E402

chains = ChainsConfig()
