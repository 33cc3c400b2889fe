"""Prometheus exposition of the gauge store and exporter self-metrics."""

from typing import Iterable

from prometheus_client import CollectorRegistry, Counter, Gauge, generate_latest
from prometheus_client import CONTENT_TYPE_LATEST
from prometheus_client.core import GaugeMetricFamily
from prometheus_client.registry import Collector

from ..config.models import MetricConfig
from ..utils.metrics import CollectionRun
from .gauge_store import GaugeStore


class GaugeStoreCollector(Collector):
    """Exposes one gauge sample per URL held in the gauge store."""

    def __init__(self, store: GaugeStore, config: MetricConfig):
        self.store = store
        self.config = config

    def collect(self) -> Iterable[GaugeMetricFamily]:
        family = GaugeMetricFamily(self.config.name, self.config.help, labels=["url"])
        for url, status in sorted(self.store.snapshot().items()):
            family.add_metric([url], status)
        yield family


class MetricsExporter:
    """Owns the registry served on the scrape endpoint."""

    content_type = CONTENT_TYPE_LATEST

    def __init__(self, store: GaugeStore, config: MetricConfig):
        """
        Initialize exporter registry.

        Args:
            store: Gauge store to expose
            config: Status gauge name and help text
        """
        self.registry = CollectorRegistry()
        self.registry.register(GaugeStoreCollector(store, config))

        self.collection_duration = Gauge(
            'bookmarks_alive_collection_duration_seconds',
            'Duration of the last collection run',
            registry=self.registry
        )
        self.collection_runs = Counter(
            'bookmarks_alive_collection_runs_total',
            'Collection runs by outcome (done, timed_out, failed)',
            ['outcome'],
            registry=self.registry
        )
        self.urls_probed = Gauge(
            'bookmarks_alive_urls_probed',
            'URLs whose result reached the store in the last collection run',
            registry=self.registry
        )
        self.urls_failed = Gauge(
            'bookmarks_alive_urls_failed',
            'URLs whose probe failed in the last collection run',
            registry=self.registry
        )

    def record_run(self, run: CollectionRun) -> None:
        """Update self-metrics from a finished run."""
        outcome = "timed_out" if run.timed_out else "done"
        self.collection_runs.labels(outcome=outcome).inc()
        self.collection_duration.set(run.duration_seconds)
        self.urls_probed.set(run.results_applied)
        self.urls_failed.set(run.probe_failures)

    def record_failure(self) -> None:
        """Count a run that could not start."""
        self.collection_runs.labels(outcome="failed").inc()

    def render(self) -> bytes:
        """Serialize the registry in Prometheus text format."""
        return generate_latest(self.registry)
