from contextvars import ContextVar
from logging import LoggerAdapter, getLogger
from logging.config import dictConfig
from typing import TYPE_CHECKING, Optional, Tuple
from uuid import uuid4

from crosschain_gateway.config import config

if TYPE_CHECKING:
    from crosschain_gateway.clients.apm_client import ApmClient

CORRELATION_ID = "cid"
SESSION_ID = "sid"
ERR = "err"  # error object log argument
ERR_TYPE = "err_type"  # error type log argument

# This field is keyword argument from <https://github.com/python/cpython/blob/3.10/Lib/logging/__init__.py#L1600>
#   and never changed.
EXTRA = "extra"

HANDLERS = {
    'console': {
        'class': 'logging.StreamHandler',
        'level': config.LOGGING_LEVEL,
        'formatter': 'simple',
        'stream': 'ext://sys.stdout'
    },
    'logstash': {
        'level': config.LOGSTASH_LOGGING_LEVEL,
        'class': 'logstash_async.handler.AsynchronousLogstashHandler',
        'transport': 'logstash_async.transport.TcpTransport',
        'formatter': 'logstash',
        'host': config.LOGSTASH,
        'port': config.PORT,
        'database_path': None,
        'event_ttl': 30  # sec
    },
}

CONFIG = dict(
    # See: <https://docs.python.org/3.7/library/logging.config.html#logging.config.fileConfig>
    # and find `disable_existing_loggers`, it's same configuration parameter as for dictConfig function.
    disable_existing_loggers=False,
    version=1,
    formatters={
        'simple': {
            'format': '%(asctime)s - %(filename)s:%(lineno)s:%(funcName)s - %(levelname)s - %(message)s'
        },
        'logstash': {
            '()': 'logstash_formatter.LogstashFormatterV1'
        }
    },
    # only the handlers in use are built, dictConfig instantiates every entry
    handlers={name: HANDLERS[name] for name in config.LOG_HANDLERS},
    root={
        'handlers': config.LOG_HANDLERS,
        'level': config.LOGGING_LEVEL,
    },
)

correlation_id = ContextVar(CORRELATION_ID, default=uuid4().hex)
session_id = ContextVar(SESSION_ID, default=None)

_configured = False


class CustomContextLogger(LoggerAdapter):

    def __init__(self, logger, extra):
        super(CustomContextLogger, self).__init__(logger, extra)

    def process(self, msg, kwargs):
        if EXTRA not in kwargs:
            kwargs[EXTRA] = dict(self.extra)
        else:
            kwargs[EXTRA].update(self.extra)

        # assigning a request correlation key to all log messages
        kwargs[EXTRA][CORRELATION_ID] = self.get_correlation_id()

        sid = kwargs[EXTRA].get(SESSION_ID, self.get_session_id())
        if sid:
            # assigning a user session correlation key to all log messages
            kwargs[EXTRA][SESSION_ID] = sid

        if ERR in kwargs[EXTRA] and ERR_TYPE not in kwargs[EXTRA]:
            kwargs[EXTRA][ERR_TYPE] = type(kwargs[EXTRA][ERR]).__name__

        return msg, kwargs

    @staticmethod
    def get_correlation_id():
        return correlation_id.get()

    @staticmethod
    def get_session_id():
        return session_id.get()


class LogArgs:
    chain_index = "chain_index"  # OKX chain identifier
    from_chain = "from_chain"
    to_chain = "to_chain"
    request_name = "request_name"  # queued request step name
    request_url = "request_url"
    retries = "retries"
    delay = "delay"
    step = "step"  # data loader step
    upstream = "upstream"  # proxied API name
    status = "status"


def get_logger(name: str, extra: Optional[dict] = None, corr_id: Optional[str] = None) -> "CustomContextLogger":
    global _configured
    if not _configured:
        dictConfig(CONFIG)
        _configured = True

    extra = extra or {}

    if corr_id:
        correlation_id.set(corr_id)

    logger = CustomContextLogger(getLogger(name), extra)
    return logger


def set_correlation_id(corr_id: str):
    correlation_id.set(corr_id)


def set_session_id(sid: str):
    session_id.set(sid)


def capture_exception(apm_client: "ApmClient", exc_info: Optional[Tuple] = None) -> Optional[str]:
    """Capture exception in APM.

    Args:
        apm_client: application APM client, nothing is sent while APM is disabled.
        exc_info: Optional[tuple]: A (type, value, traceback) tuple as returned by sys.exc_info().
                If not provided, it will be captured automatically,
                if capture_message() was called in an except block.
    """
    if apm_client is None or apm_client.client is None:
        return None
    return apm_client.client.capture_exception(exc_info)
