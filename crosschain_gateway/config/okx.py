from typing import Optional

from pydantic_settings import BaseSettings


class OKXConfig(BaseSettings):
    """Credentials and endpoints of the upstream APIs.

    The OKX credential triplet is read from ``API_KEY``, ``SECRET_KEY`` and
    ``PASSPHRASE``. Routes that sign requests answer 500 while any of them
    is empty.
    """

    OKX_BASE_URL: str = 'https://web3.okx.com'
    API_KEY: Optional[str] = None
    SECRET_KEY: Optional[str] = None
    PASSPHRASE: Optional[str] = None
    JUPITER_API_BASE_URL: str = 'https://quote-api.jup.ag/v6'
    JUPITER_TOKEN_API_URL: str = 'https://token.jup.ag'
    JUPITER_API_KEY: Optional[str] = None
    SOLANA_RPC_URL: str = 'https://api.mainnet-beta.solana.com'
    REQUEST_TIMEOUT: int = 30

    @property
    def okx_credentials_configured(self) -> bool:
        return bool(self.API_KEY and self.SECRET_KEY and self.PASSPHRASE)
