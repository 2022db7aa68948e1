from .lazy import Lazy
from .timezone import now_shop, ensure_aware
from .timeouts import Timeouts, TIMEOUTS, SERVICE_TIMEOUTS
from .http_pool import get_client, close_all
from .retry import (
    RetryConfig,
    DEFAULT_RETRY_CONFIG,
    is_retryable_error,
    classify_error,
    calculate_backoff,
    retry_async,
)
