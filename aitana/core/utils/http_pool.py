import asyncio
from typing import Dict, Optional

import httpx

from aitana.core.logging import get_logger
from aitana.core.utils.timeouts import SERVICE_TIMEOUTS, TIMEOUTS

_log = get_logger("core.http_pool")

# one keep-alive pool per Google API; the shop's traffic never needs more
POOL_LIMITS = httpx.Limits(max_connections=20, max_keepalive_connections=5)

_clients: Dict[str, httpx.AsyncClient] = {}
_lock = asyncio.Lock()


def _new_client(service: str, timeout: Optional[float]) -> httpx.AsyncClient:
    read_timeout = timeout or SERVICE_TIMEOUTS.get(service, SERVICE_TIMEOUTS["default"])
    _log.debug("Client created", service=service, timeout=read_timeout)
    return httpx.AsyncClient(
        limits=POOL_LIMITS,
        timeout=httpx.Timeout(read_timeout, connect=TIMEOUTS.HTTP_CONNECT),
        headers={"Accept": "application/json"},
    )


async def get_client(service: str = "default", timeout: Optional[float] = None) -> httpx.AsyncClient:
    """Shared AsyncClient per external service, created on first use."""
    async with _lock:
        client = _clients.get(service)
        if client is None or client.is_closed:
            client = _clients[service] = _new_client(service, timeout)
        return client


async def close_all() -> int:
    """Close every pooled client and return how many there were."""
    async with _lock:
        clients = dict(_clients)
        _clients.clear()
    for service, client in clients.items():
        try:
            await client.aclose()
        except httpx.HTTPError as e:
            _log.warning("Client close failed", service=service, error=str(e))
    if clients:
        _log.debug("HTTP pool closed", closed=len(clients))
    return len(clients)
