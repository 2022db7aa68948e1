"""Component health checks for ``GET /health``.

Each component registers an async callable returning a :class:`HealthResult`.
A check that raises counts as UNHEALTHY; the overall state is the worst
state reported.
"""

import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Dict

from aitana.core.logging import get_logger

_log = get_logger("core.health")

_STARTED_AT = time.time()

Check = Callable[[], Awaitable["HealthResult"]]


class HealthState(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


_SEVERITY = {HealthState.HEALTHY: 0, HealthState.DEGRADED: 1, HealthState.UNHEALTHY: 2}


@dataclass
class HealthResult:
    state: HealthState
    latency_ms: float
    message: str = ""

    def to_dict(self) -> dict:
        return {"state": self.state.value, "latency_ms": round(self.latency_ms, 2), "message": self.message}


def uptime_seconds() -> float:
    return time.time() - _STARTED_AT


def configured(name: str, *values: object) -> Check:
    """Check that reports DEGRADED while any of ``values`` is empty."""
    missing = not all(values)

    async def _check() -> HealthResult:
        if missing:
            return HealthResult(HealthState.DEGRADED, 0.0, f"{name} not configured")
        return HealthResult(HealthState.HEALTHY, 0.0, f"{name} configured")

    return _check


class HealthChecker:

    def __init__(self):
        self._checks: Dict[str, Check] = {}

    def register(self, name: str, check_fn: Check) -> None:
        self._checks[name] = check_fn

    @property
    def names(self) -> list[str]:
        return list(self._checks)

    async def _timed(self, name: str, fn: Check) -> HealthResult:
        started = time.monotonic()
        try:
            return await fn()
        except Exception as e:
            _log.warning("Health check raised", component=name, error=str(e)[:200])
            return HealthResult(HealthState.UNHEALTHY, (time.monotonic() - started) * 1000, str(e)[:200])

    async def check_all(self) -> Dict[str, HealthResult]:
        names = list(self._checks)
        results = await asyncio.gather(*(self._timed(n, self._checks[n]) for n in names))
        return dict(zip(names, results))

    def overall_state(self, results: Dict[str, HealthResult]) -> HealthState:
        return max(
            (r.state for r in results.values()),
            key=_SEVERITY.__getitem__,
            default=HealthState.HEALTHY,
        )
