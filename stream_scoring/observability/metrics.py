#!filepath: stream_scoring/observability/metrics.py
from dataclasses import dataclass, field
from typing import Any, Dict

from stream_scoring import logs


@dataclass
class MetricRecorder:
    enabled: bool = True
    metrics: Dict[str, Any] = field(default_factory=dict)

    def record(self, name: str, value: Any):
        if not self.enabled:
            return
        self.metrics[name] = value
        logs.debug(f"[Metric] {name} = {value}")

    def increment(self, name: str, by: int = 1):
        if not self.enabled:
            return
        self.metrics[name] = self.metrics.get(name, 0) + by

    def get(self, name: str, default: Any = 0) -> Any:
        return self.metrics.get(name, default)
