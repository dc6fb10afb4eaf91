from dataclasses import dataclass

from crosschain_gateway.config.queue import QueueConfig


@dataclass(frozen=True)
class RetryPolicy:
    """Backoff rules shared by every outbound call site. Values are seconds.

    Throttled requests (HTTP 429) back off exponentially from their initial
    delay up to ``max_backoff``. Other failures back off linearly by
    ``error_backoff_step`` per attempt.
    """

    max_retries: int = 3
    min_delay: float = 5.0
    max_backoff: float = 30.0
    error_backoff_step: float = 3.0

    @classmethod
    def from_config(cls, config: QueueConfig) -> 'RetryPolicy':
        return cls(
            max_retries=config.QUEUE_MAX_RETRIES,
            min_delay=config.QUEUE_MIN_DELAY,
            max_backoff=config.QUEUE_MAX_BACKOFF,
            error_backoff_step=config.QUEUE_ERROR_BACKOFF_STEP,
        )

    def spacing_wait(self, elapsed: float) -> float:
        return max(self.min_delay - elapsed, 0)

    def rate_limit_backoff(self, initial_delay: float, attempt: int) -> float:
        return min(initial_delay * 2 ** attempt, self.max_backoff)

    def error_backoff(self, attempt: int) -> float:
        return self.error_backoff_step * attempt
