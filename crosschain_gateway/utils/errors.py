from abc import abstractmethod
from datetime import datetime, timezone

from starlette.responses import JSONResponse

from crosschain_gateway.utils.logger import LogArgs


def iso_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


class UserMistakes:
    code = 400
    error_owner = 'user'


class OurMistakes:
    code = 500
    error_owner = 'gateway'


class ProviderMistakes:
    code = 502
    error_owner = 'provider'


class ProviderUnavailable:
    code = 503
    error_owner = 'provider'


class BaseGatewayError(Exception):
    """common error for proxied upstream APIs"""

    @property
    @abstractmethod
    def msg_to_log(self):
        ...

    @property
    @abstractmethod
    def code(self):
        ...

    @property
    @abstractmethod
    def error_owner(self):
        ...

    def __init__(self, provider: str, message: str = None, **kwargs):
        self.provider = provider
        self.message = message
        self.kwargs = kwargs
        super().__init__(message)

    def __str__(self):
        return f'{self.msg_to_log}. Source: {self.provider}'

    def __repr__(self):
        return f'{self.__class__.__name__}({self.provider}, {self.message}, {self.kwargs})'

    def to_dict(self):
        return {
            'provider': self.provider,
            'reason': self.message,
            'error_owner': self.error_owner,
            **self.kwargs,
        }

    def to_log_args(self):
        return (
            f'{self.msg_to_log.lower()}. Source: %({LogArgs.upstream})s',
            {LogArgs.upstream: self.provider},
        )

    def to_http_exception(self) -> JSONResponse:
        return JSONResponse({
            'error': self.msg_to_log,
            'details': self.message,
            'timestamp': iso_timestamp(),
        }, status_code=self.code)


class CrossChainValidationError(UserMistakes, BaseGatewayError):
    """Request parameters failed validation. Never retried."""
    msg_to_log = 'Validation failed'

    def __init__(self, message: str, details: str = None, **kwargs):
        super().__init__('gateway', message, **kwargs)
        self.details = details

    def to_http_exception(self) -> JSONResponse:
        content = {'error': self.message}
        if self.details:
            content['details'] = self.details
        return JSONResponse(content, status_code=self.code)


class UpstreamAPIError(ProviderMistakes, BaseGatewayError):
    """Upstream API answered with a non-2xx status"""
    msg_to_log = 'External API Error'

    def __init__(self, provider: str, message: str = None, status: int = None, **kwargs):
        super().__init__(provider, message, status=status, **kwargs)
        self.status = status


class UpstreamNetworkError(ProviderUnavailable, BaseGatewayError):
    """Upstream API could not be reached"""
    msg_to_log = 'Network Error'


class ParseResponseError(OurMistakes, BaseGatewayError):
    """Upstream API returned a body we cannot parse"""
    msg_to_log = 'Cannot parse response'


class CredentialsNotConfiguredError(OurMistakes, BaseGatewayError):
    """OKX credential triplet is missing from the environment"""
    msg_to_log = 'OKX API credentials not configured'

    def __init__(self, provider: str = 'okx', **kwargs):
        super().__init__(
            provider,
            'Please set API_KEY, SECRET_KEY, and PASSPHRASE environment variables',
            **kwargs,
        )

    def to_http_exception(self) -> JSONResponse:
        return JSONResponse(
            {'error': self.msg_to_log, 'details': self.message},
            status_code=self.code,
        )


class RequestQueueError(Exception):
    """Base error of the client-side request queue"""


class QueueHTTPError(RequestQueueError):
    def __init__(self, status: int, reason: str = ''):
        self.status = status
        self.reason = reason
        super().__init__(f'HTTP {status}: {reason}')


class RateLimitExceededError(RequestQueueError):
    """Request was throttled more times than the retry policy allows"""

    def __init__(self, name: str, max_retries: int):
        self.name = name
        super().__init__(f'Rate limit exceeded for {name} after {max_retries} retries')


class RequestQueueHaltedError(RequestQueueError):
    """Queue stopped after a terminal failure of an earlier request"""


class DataLoaderError(Exception):
    """A step of the reference data pipeline failed"""


responses = {
    UserMistakes.code: {'description': CrossChainValidationError.msg_to_log},
    OurMistakes.code: {
        'description': 'One of the following errors:<br><br>%s<br>%s' % (
            CredentialsNotConfiguredError.msg_to_log, ParseResponseError.msg_to_log,
        )},
    ProviderMistakes.code: {'description': UpstreamAPIError.msg_to_log},
    ProviderUnavailable.code: {'description': UpstreamNetworkError.msg_to_log},
}
