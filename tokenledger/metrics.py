"""
tokenledger.metrics — Prometheus counters & histograms for the ledger host.

Metrics live in a private CollectorRegistry so that several ledgers (or test
runs) in one process never collide with the global default registry. Callers
that already run an app-wide registry can inject it with `set_registry()`
before the first metric is touched.

Exposed metrics (names are prefixed with `tokenledger_`):
  - calls_total{method,result}   : Counter — host calls by outcome
  - events_total{event}          : Counter — events delivered to the sink
  - call_seconds{method}         : Histogram — wall time per host call

Labels:
  - result ∈ {success, revert, error}
  - method ∈ {deploy, transfer, transfer_from, approve, other}
"""

from __future__ import annotations

import os
import time
from dataclasses import dataclass
from typing import Dict, Iterable, Optional

from prometheus_client import (CONTENT_TYPE_LATEST, CollectorRegistry, Counter,
                               Histogram, generate_latest)

_PREFIX = "tokenledger_"

_METHODS = {"deploy", "transfer", "transfer_from", "approve"}


def _buckets_from_env(name: str, default: Iterable[float]) -> Iterable[float]:
    raw = os.getenv(name)
    if not raw:
        return default
    out = []
    for tok in raw.split(","):
        tok = tok.strip()
        if not tok:
            continue
        try:
            out.append(float(tok))
        except ValueError:
            continue
    return out or default


_CALL_SECONDS_BUCKETS = tuple(_buckets_from_env(
    "TOKENLEDGER_METRICS_CALL_SECONDS_BUCKETS",
    # 10µs .. 1s
    (0.00001, 0.00005, 0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0),
))


# ------------------------------ registry & ctor ------------------------------

_registry: Optional[CollectorRegistry] = None

# Metric singletons (bound during _build_metrics)
CALLS_TOTAL: Counter
EVENTS_TOTAL: Counter
CALL_SECONDS: Histogram


def set_registry(registry: CollectorRegistry) -> None:
    """
    Inject a custom CollectorRegistry. Must be called before the first metric
    is used; later calls are ignored.
    """
    global _registry
    if _registry is not None:
        return
    _registry = registry
    _build_metrics(registry)


def get_registry() -> CollectorRegistry:
    """Return the metrics registry, creating one on first use."""
    global _registry
    if _registry is None:
        _registry = CollectorRegistry()
        _build_metrics(_registry)
    return _registry


def _build_metrics(reg: CollectorRegistry) -> None:
    global CALLS_TOTAL, EVENTS_TOTAL, CALL_SECONDS

    CALLS_TOTAL = Counter(
        _PREFIX + "calls_total",
        "Host calls executed (by method and result).",
        labelnames=("method", "result"),
        registry=reg,
    )
    EVENTS_TOTAL = Counter(
        _PREFIX + "events_total",
        "Events delivered to the event sink.",
        labelnames=("event",),
        registry=reg,
    )
    CALL_SECONDS = Histogram(
        _PREFIX + "call_seconds",
        "Wall time of a single host call.",
        labelnames=("method",),
        buckets=_CALL_SECONDS_BUCKETS,
        registry=reg,
    )


# ------------------------------ helpers -------------------------------------


def _norm_method(s: str) -> str:
    s = (s or "").strip().lower().replace("-", "_")
    return s if s in _METHODS else "other"


def _norm_result(s: str) -> str:
    s = (s or "").strip().lower()
    if s in {"ok", "success"}:
        return "success"
    if s == "revert":
        return "revert"
    return "error"


def observe_call(*, method: str, result: str) -> None:
    get_registry()
    CALLS_TOTAL.labels(method=_norm_method(method), result=_norm_result(result)).inc()


def observe_event(name: str) -> None:
    get_registry()
    EVENTS_TOTAL.labels(event=name).inc()


@dataclass
class _TimerCtx:
    h: Histogram
    labels: Dict[str, str]
    t0: float

    def stop(self) -> float:
        dt = max(0.0, time.perf_counter() - self.t0)
        self.h.labels(**self.labels).observe(dt)
        return dt

    def __enter__(self) -> "_TimerCtx":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()


def time_call(method: str) -> _TimerCtx:
    """
    Context manager timing one host call.

        with time_call("transfer"):
            ...
    """
    get_registry()
    return _TimerCtx(
        h=CALL_SECONDS,
        labels={"method": _norm_method(method)},
        t0=time.perf_counter(),
    )


def sample_value(name: str, labels: Optional[Dict[str, str]] = None) -> float:
    """Current value of a sample in the ledger registry (0.0 if never observed)."""
    v = get_registry().get_sample_value(name, labels or {})
    return 0.0 if v is None else v


# ------------------------------ exposition ----------------------------------


def generate_latest_text() -> bytes:
    """Return Prometheus exposition format for the ledger registry."""
    return generate_latest(get_registry())


__all__ = [
    "get_registry",
    "set_registry",
    "generate_latest_text",
    "observe_call",
    "observe_event",
    "time_call",
    "sample_value",
    "CONTENT_TYPE_LATEST",
]
