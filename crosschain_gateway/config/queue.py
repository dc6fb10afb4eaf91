from pydantic_settings import BaseSettings


class QueueConfig(BaseSettings):
    # seconds
    QUEUE_MIN_DELAY: float = 5.0
    QUEUE_MAX_RETRIES: int = 3
    QUEUE_MAX_BACKOFF: float = 30.0
    QUEUE_ERROR_BACKOFF_STEP: float = 3.0
    QUEUE_INITIAL_DELAY: float = 5.0
    LOADER_DEBOUNCE: float = 0.5
    GATEWAY_BASE_URL: str = 'http://localhost:8000'
