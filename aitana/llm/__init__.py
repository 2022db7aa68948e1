from .providers import (
    LLMProvider,
    LLM_PROVIDERS,
    DEFAULT_PROVIDER,
    get_provider,
    get_all_providers,
)
from .base import (
    CompletionGateway,
    StatefulGateway,
    StatelessGateway,
    get_gateway,
)
from .circuit_breaker import CircuitBreakerState

__all__ = [
    'LLMProvider',
    'LLM_PROVIDERS',
    'DEFAULT_PROVIDER',
    'get_provider',
    'get_all_providers',
    'CompletionGateway',
    'StatefulGateway',
    'StatelessGateway',
    'get_gateway',
    'CircuitBreakerState',
]
