import asyncio
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Deque, Optional, Tuple

import aiohttp

from crosschain_gateway.utils.errors import (
    QueueHTTPError,
    RateLimitExceededError,
    RequestQueueHaltedError,
)
from crosschain_gateway.utils.logger import LogArgs, get_logger
from crosschain_gateway.utils.retry import RetryPolicy

logger = get_logger(__name__)

RETRYABLE_ERRORS = (QueueHTTPError, aiohttp.ClientError, asyncio.TimeoutError, ValueError)


@dataclass
class QueueRequest:
    url: str
    name: str
    initial_delay: float
    delay: float
    retries: int = 0
    future: Optional[asyncio.Future] = field(default=None, repr=False)


class RateLimitedQueue:
    """
    Serializes GET requests against one origin.

    At most one request is in flight. Requests start no closer than
    ``retry_policy.min_delay`` seconds apart. Throttled requests (HTTP 429)
    go back to the front of the queue with exponential backoff, other
    failures with linear backoff. After a terminal failure the worker stops
    and everything still queued fails with ``RequestQueueHaltedError``.

    One instance is meant to be shared by every fetch of a session.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        retry_policy: Optional[RetryPolicy] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable] = asyncio.sleep,
    ):
        self.session = session
        self.retry_policy = retry_policy or RetryPolicy()
        self.queue: Deque[QueueRequest] = deque()
        self.is_processing = False
        self.last_request_time: Optional[float] = None
        self._clock = clock
        self._sleep = sleep
        self._worker: Optional[asyncio.Task] = None

    @property
    def pending(self) -> int:
        return len(self.queue)

    async def enqueue(self, url: str, name: str, initial_delay: float = 5.0) -> Any:
        """Queue a GET and wait for its parsed JSON body."""
        loop = asyncio.get_running_loop()
        request = QueueRequest(
            url=url,
            name=name,
            initial_delay=initial_delay,
            delay=initial_delay,
            future=loop.create_future(),
        )
        self.queue.append(request)
        logger.info(
            'Queued %(request_name)s',
            {LogArgs.request_name: name},
            extra={LogArgs.request_url: url, 'queue_size': len(self.queue)},
        )
        if not self.is_processing:
            self.is_processing = True
            self._worker = loop.create_task(self._process_queue())
        return await request.future

    async def aclose(self) -> None:
        if self._worker and not self._worker.done():
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
        self._halt(RequestQueueHaltedError('Request queue closed'))

    async def _process_queue(self) -> None:
        try:
            while self.queue:
                request = self.queue.popleft()
                if request.future.done():
                    # caller went away
                    continue
                if not await self._process_request(request):
                    return
        finally:
            self.is_processing = False

    async def _process_request(self, request: QueueRequest) -> bool:
        """Run one attempt. Returns False when the queue has to halt."""
        policy = self.retry_policy
        if self.last_request_time is not None:
            wait = policy.spacing_wait(self._clock() - self.last_request_time)
            if wait > 0:
                logger.info(
                    'Waiting %(delay)ss before %(request_name)s',
                    {LogArgs.delay: round(wait, 3), LogArgs.request_name: request.name},
                )
                await self._sleep(wait)

        logger.info('Making request: %(request_name)s', {LogArgs.request_name: request.name})
        self.last_request_time = self._clock()

        try:
            status, reason, data = await self._request(request.url)
            if status == 429:
                request.retries += 1
                if request.retries > policy.max_retries:
                    raise RateLimitExceededError(request.name, policy.max_retries)
                request.delay = policy.rate_limit_backoff(request.initial_delay, request.retries)
                logger.warning(
                    'Rate limited. Retrying %(request_name)s in %(delay)ss (attempt %(retries)s)',
                    {
                        LogArgs.request_name: request.name,
                        LogArgs.delay: request.delay,
                        LogArgs.retries: f'{request.retries}/{policy.max_retries}',
                    },
                )
                self.queue.appendleft(request)
                await self._sleep(request.delay)
                return True
            if not 200 <= status < 300:
                raise QueueHTTPError(status, reason)
        except RateLimitExceededError as e:
            logger.error('Error with %(request_name)s', {LogArgs.request_name: request.name}, extra={'err': e})
            self._fail(request, e)
            self._halt(RequestQueueHaltedError(f'Request queue halted after {request.name} failed'))
            return False
        except RETRYABLE_ERRORS as e:
            logger.error('Error with %(request_name)s', {LogArgs.request_name: request.name}, extra={'err': e})
            if request.retries < policy.max_retries:
                request.retries += 1
                request.delay = policy.error_backoff(request.retries)
                logger.warning(
                    'Retrying %(request_name)s in %(delay)ss (attempt %(retries)s)',
                    {
                        LogArgs.request_name: request.name,
                        LogArgs.delay: request.delay,
                        LogArgs.retries: f'{request.retries}/{policy.max_retries}',
                    },
                )
                self.queue.appendleft(request)
                await self._sleep(request.delay)
                return True
            self._fail(request, e)
            self._halt(RequestQueueHaltedError(f'Request queue halted after {request.name} failed'))
            return False

        if not request.future.done():
            request.future.set_result(data)
        return True

    async def _request(self, url: str) -> Tuple[int, str, Any]:
        async with self.session.get(url) as response:
            data = await response.json(content_type=None) if response.ok else None
            return response.status, response.reason or '', data

    @staticmethod
    def _fail(request: QueueRequest, exc: Exception) -> None:
        if not request.future.done():
            request.future.set_exception(exc)

    def _halt(self, exc: Exception) -> None:
        while self.queue:
            self._fail(self.queue.popleft(), exc)
