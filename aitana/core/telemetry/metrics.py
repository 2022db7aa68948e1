"""Prometheus text-format metrics.

Counter, Gauge and Histogram with optional label sets, collected in a
``MetricsRegistry`` rendered by ``GET /metrics``.
"""

import threading

LabelKey = tuple[tuple[str, str], ...]

DEFAULT_BUCKETS = (0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30)


def _label_key(labels: dict[str, str] | None) -> LabelKey:
    return tuple(sorted((k, str(v)) for k, v in (labels or {}).items()))


def _render_labels(key: LabelKey) -> str:
    if not key:
        return ""
    return "{" + ",".join(f'{k}="{v}"' for k, v in key) + "}"


class _Metric:
    kind = "untyped"

    def __init__(self, name: str, help: str) -> None:
        self.name = name
        self.help = help
        self._lock = threading.Lock()

    def _samples(self) -> list[str]:
        raise NotImplementedError

    def format(self) -> str:
        header = [f"# HELP {self.name} {self.help}", f"# TYPE {self.name} {self.kind}"]
        with self._lock:
            return "\n".join(header + self._samples())


class Counter(_Metric):
    """Monotonically increasing counter, one series per label set."""

    kind = "counter"

    def __init__(self, name: str, help: str) -> None:
        super().__init__(name, help)
        self._series: dict[LabelKey, float] = {}

    @property
    def value(self) -> float:
        return sum(self._series.values())

    def get(self, **labels: str) -> float:
        return self._series.get(_label_key(labels), 0)

    def inc(self, amount: float = 1, **labels: str) -> None:
        if amount < 0:
            raise ValueError(f"{self.name}: counters only go up")
        key = _label_key(labels)
        with self._lock:
            self._series[key] = self._series.get(key, 0) + amount

    def _samples(self) -> list[str]:
        if not self._series:
            return [f"{self.name} 0"]
        return [f"{self.name}{_render_labels(k)} {v}" for k, v in sorted(self._series.items())]


class Gauge(_Metric):
    kind = "gauge"

    def __init__(self, name: str, help: str) -> None:
        super().__init__(name, help)
        self.value: float = 0

    def set(self, val: float) -> None:
        self.value = val

    def inc(self, amount: float = 1) -> None:
        with self._lock:
            self.value += amount

    def dec(self, amount: float = 1) -> None:
        self.inc(-amount)

    def _samples(self) -> list[str]:
        return [f"{self.name} {self.value}"]


class Histogram(_Metric):
    """Latency distribution; bucket counts are rendered cumulatively."""

    kind = "histogram"

    def __init__(self, name: str, help: str, buckets: list[float] | None = None) -> None:
        super().__init__(name, help)
        self.buckets = sorted(buckets or DEFAULT_BUCKETS)
        self._hits = [0] * len(self.buckets)
        self.count = 0
        self.total = 0.0

    def observe(self, value: float) -> None:
        with self._lock:
            self.count += 1
            self.total += value
            for i, bound in enumerate(self.buckets):
                if value <= bound:
                    self._hits[i] += 1
                    break

    def _samples(self) -> list[str]:
        out = []
        running = 0
        for bound, hits in zip(self.buckets, self._hits):
            running += hits
            out.append(f'{self.name}_bucket{{le="{bound}"}} {running}')
        out.append(f'{self.name}_bucket{{le="+Inf"}} {self.count}')
        out.append(f"{self.name}_sum {self.total}")
        out.append(f"{self.name}_count {self.count}")
        return out


class MetricsRegistry:
    """Name-keyed metrics; asking twice for a name returns the first instance."""

    def __init__(self) -> None:
        self._metrics: dict[str, _Metric] = {}

    def _get_or_add(self, name: str, factory) -> _Metric:
        metric = self._metrics.get(name)
        if metric is None:
            metric = self._metrics[name] = factory()
        return metric

    def counter(self, name: str, help_text: str) -> Counter:
        return self._get_or_add(name, lambda: Counter(name, help_text))  # type: ignore[return-value]

    def gauge(self, name: str, help_text: str) -> Gauge:
        return self._get_or_add(name, lambda: Gauge(name, help_text))  # type: ignore[return-value]

    def histogram(self, name: str, help_text: str, buckets: list[float] | None = None) -> Histogram:
        return self._get_or_add(name, lambda: Histogram(name, help_text, buckets))  # type: ignore[return-value]

    def format_all(self) -> str:
        return "\n\n".join(m.format() for m in self._metrics.values()) + "\n"


def build_registry() -> MetricsRegistry:
    """Registry pre-populated with every metric the service emits."""
    registry = MetricsRegistry()
    registry.counter("http_requests_total", "HTTP requests by method, path and status")
    registry.histogram("http_request_duration_seconds", "HTTP request latency")
    registry.counter("http_errors_total", "HTTP responses with status >= 500")
    registry.counter("chat_turns_total", "Completed chat turns")
    registry.counter("handoffs_total", "Booking summaries relayed")
    registry.counter("handoff_failures_total", "Booking summaries that failed to relay")
    registry.gauge("sessions_active", "Sessions held in the session store")
    return registry
