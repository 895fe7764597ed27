#!filepath: stream_scoring/observability/instrumentation.py
from __future__ import annotations

from collections import OrderedDict
from contextlib import contextmanager
from dataclasses import dataclass
from time import perf_counter
from typing import Any, Dict

from stream_scoring import logs
from stream_scoring.observability.metrics import MetricRecorder


@dataclass
class Instrumentation:
    """
    Timers + counters for one step instance.

    - timer(name) accumulates wall time per name (model loads, batch flushes)
    - metrics holds counters (rows scored, cache hits, ...) and gauges (batch size)
    - nothing is logged on the hot path
    """

    enabled: bool = True

    def __post_init__(self):
        self.metrics = MetricRecorder(enabled=self.enabled)
        # name -> accumulated seconds
        self.timeline: Dict[str, float] = OrderedDict()

    def timer(self, name: str):
        inst = self

        @contextmanager
        def _ctx():
            if not inst.enabled:
                yield
                return

            start = perf_counter()
            try:
                yield
            finally:
                elapsed = perf_counter() - start
                inst.timeline[name] = inst.timeline.get(name, 0.0) + elapsed

        return _ctx()

    def increment(self, name: str, by: int = 1):
        self.metrics.increment(name, by)

    def record(self, name: str, value: Any):
        self.metrics.record(name, value)

    def report(self, title: str) -> None:
        if not self.enabled:
            return
        logs.info(f"[Instrumentation] ===== {title} =====")
        for name, value in self.metrics.metrics.items():
            logs.info(f"[Instrumentation] {name:<20} {value}")
        for name, seconds in self.timeline.items():
            logs.info(f"[Instrumentation] {name:<20} {seconds:.4f}s")


class NoOpInstrumentation:
    """Used when instrumentation is disabled."""

    def timer(self, name: str):
        return _NoOpTimer()

    def increment(self, name: str, by: int = 1):
        pass

    def record(self, name: str, value: Any):
        pass

    def report(self, title: str) -> None:
        pass


class _NoOpTimer:
    def __enter__(self):
        pass

    def __exit__(self, exc_type, exc, tb):
        pass
