"""
Engine Metrics Collector

In-process counters and histograms for metric computations, detector runs
and storage failures, exported in Prometheus text exposition format
(text/plain; version=0.0.4).

Usage:
    from salescoach.utils.metrics import metrics

    with metrics.time_computation("conversion_rate") as timer:
        ...
    metrics.detector_runs.inc(detector="weak_behavior", status="ok")
    print(metrics.export())
"""
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

LabelKey = Tuple[Tuple[str, str], ...]


@dataclass
class MetricValue:
    """One exported sample: optional name suffix, labels and value."""
    value: float
    labels: Dict[str, str] = field(default_factory=dict)
    suffix: str = ""


@dataclass
class HistogramState:
    bucket_counts: Dict[float, int]
    total: float = 0.0
    count: int = 0


class LabeledMetric:
    """Shared label handling for every metric type."""

    kind = "untyped"

    def __init__(self, name: str, description: str, labels: Optional[List[str]] = None):
        self.name = name
        self.description = description
        self.label_names = tuple(labels or ())
        self._lock = threading.Lock()

    def _key(self, labels: Dict[str, str]) -> LabelKey:
        unknown = set(labels) - set(self.label_names)
        if unknown:
            raise ValueError(f"{self.name} has no label(s) {sorted(unknown)}")
        return tuple(sorted((k, str(v)) for k, v in labels.items()))

    def collect(self) -> List[MetricValue]:
        raise NotImplementedError


class Counter(LabeledMetric):
    """Monotonic count per label combination."""

    kind = "counter"

    def __init__(self, name: str, description: str, labels: Optional[List[str]] = None):
        super().__init__(name, description, labels)
        self._counts: Dict[LabelKey, float] = {}

    def inc(self, amount: float = 1.0, **labels: str) -> None:
        if amount < 0:
            raise ValueError("Counters only go up")
        key = self._key(labels)
        with self._lock:
            self._counts[key] = self._counts.get(key, 0.0) + amount

    def value(self, **labels: str) -> float:
        key = self._key(labels)
        with self._lock:
            return self._counts.get(key, 0.0)

    def collect(self) -> List[MetricValue]:
        with self._lock:
            return [MetricValue(value=v, labels=dict(k)) for k, v in self._counts.items()]


class Histogram(LabeledMetric):
    """Cumulative-bucket histogram of durations in seconds."""

    kind = "histogram"

    # Computations are dominated by storage round trips
    DEFAULT_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)

    def __init__(
        self,
        name: str,
        description: str,
        labels: Optional[List[str]] = None,
        buckets: Optional[tuple] = None
    ):
        super().__init__(name, description, labels)
        self.buckets = tuple(sorted(buckets or self.DEFAULT_BUCKETS))
        self._states: Dict[LabelKey, HistogramState] = {}

    def observe(self, value: float, **labels: str) -> None:
        key = self._key(labels)
        with self._lock:
            state = self._states.get(key)
            if state is None:
                state = self._states[key] = HistogramState({b: 0 for b in self.buckets})
            state.total += value
            state.count += 1
            for bound in self.buckets:
                if value <= bound:
                    state.bucket_counts[bound] += 1

    def count(self, **labels: str) -> int:
        key = self._key(labels)
        with self._lock:
            state = self._states.get(key)
            return state.count if state else 0

    def collect(self) -> List[MetricValue]:
        samples = []
        with self._lock:
            for key, state in self._states.items():
                labels = dict(key)
                for bound in self.buckets:
                    samples.append(MetricValue(state.bucket_counts[bound], {**labels, "le": str(bound)}, "_bucket"))
                samples.append(MetricValue(state.count, {**labels, "le": "+Inf"}, "_bucket"))
                samples.append(MetricValue(state.total, labels, "_sum"))
                samples.append(MetricValue(state.count, labels, "_count"))
        return samples


class Timer:
    """Context manager observing elapsed seconds into a histogram; keeps `elapsed_ms` for logging."""

    def __init__(self, histogram: Histogram, **labels: str):
        self.histogram = histogram
        self.labels = labels
        self.elapsed_ms: float = 0.0
        self._started: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._started = time.perf_counter()
        return self

    def __exit__(self, *args) -> None:
        if self._started is None:
            return
        seconds = time.perf_counter() - self._started
        self.elapsed_ms = seconds * 1000
        self.histogram.observe(seconds, **self.labels)


class MetricsRegistry:
    """
    Process-wide registry of the engine metrics.

    Singleton so services and tests share the same counters.
    """

    _instance: Optional["MetricsRegistry"] = None
    _lock = threading.Lock()

    def __new__(cls) -> "MetricsRegistry":
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return
        self._metrics: Dict[str, LabeledMetric] = {}
        self._register_engine_metrics()
        self._initialized = True

    def _register_engine_metrics(self) -> None:
        # ============================================
        # METRIC COMPUTATIONS
        # ============================================
        self.computations_total = self.counter(
            "sc_metric_computations_total",
            "Metric computations by metric name",
            ["metric"]
        )
        self.computation_duration = self.histogram(
            "sc_metric_computation_duration_seconds",
            "Metric and detector duration including storage reads",
            ["metric"]
        )

        # ============================================
        # COACHING SIGNALS
        # ============================================
        self.detector_runs = self.counter(
            "sc_detector_runs_total",
            "Detector runs by detector and status",
            ["detector", "status"]
        )
        self.signals_emitted = self.counter(
            "sc_signals_emitted_total",
            "Coaching signals emitted by type",
            ["signal_type"]
        )

        # ============================================
        # STORAGE
        # ============================================
        self.downstream_failures = self.counter(
            "sc_downstream_failures_total",
            "Storage errors and timeouts by operation",
            ["operation"]
        )

    def _register(self, metric: LabeledMetric) -> LabeledMetric:
        self._metrics[metric.name] = metric
        return metric

    def counter(self, name: str, description: str, labels: Optional[List[str]] = None) -> Counter:
        return self._register(Counter(name, description, labels))

    def histogram(
        self,
        name: str,
        description: str,
        labels: Optional[List[str]] = None,
        buckets: Optional[tuple] = None
    ) -> Histogram:
        return self._register(Histogram(name, description, labels, buckets))

    def time_computation(self, metric: str) -> Timer:
        """Count one computation of `metric` and time it."""
        self.computations_total.inc(metric=metric)
        return Timer(self.computation_duration, metric=metric)

    @staticmethod
    def _format_labels(labels: Dict[str, str]) -> str:
        if not labels:
            return ""
        return "{" + ",".join(f'{k}="{v}"' for k, v in sorted(labels.items())) + "}"

    def export(self) -> str:
        """Every registered metric in Prometheus text exposition format."""
        lines = []
        for name, metric in self._metrics.items():
            lines.append(f"# HELP {name} {metric.description}")
            lines.append(f"# TYPE {name} {metric.kind}")
            for sample in metric.collect():
                lines.append(f"{name}{sample.suffix}{self._format_labels(sample.labels)} {sample.value}")
            lines.append("")
        return "\n".join(lines)

    def reset(self) -> None:
        """Drop every recorded value. Used between tests."""
        self._metrics.clear()
        self._register_engine_metrics()


metrics = MetricsRegistry()
