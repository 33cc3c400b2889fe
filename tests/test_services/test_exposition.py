"""Tests for the Prometheus exposition bridge."""

from bookmarks_exporter.config.models import MetricConfig
from bookmarks_exporter.services.exposition import MetricsExporter
from bookmarks_exporter.utils.metrics import CollectionRun
from bookmarks_exporter.utils.status import RunState


def status_lines(text, name="bookmarks_alive_status"):
    return [line for line in text.splitlines() if line.startswith(name + "{")]


class TestMetricsExporter:

    def test_one_line_per_url(self, gauge_store):
        gauge_store.set("https://a.example/", 200)
        gauge_store.set("https://b.example/", 0)
        exporter = MetricsExporter(gauge_store, MetricConfig())

        lines = status_lines(exporter.render().decode())

        assert lines == [
            'bookmarks_alive_status{url="https://a.example/"} 200.0',
            'bookmarks_alive_status{url="https://b.example/"} 0.0',
        ]

    def test_help_and_type_lines(self, gauge_store):
        text = MetricsExporter(gauge_store, MetricConfig()).render().decode()

        assert "# HELP bookmarks_alive_status HTTP status code of the bookmarked URL" in text
        assert "# TYPE bookmarks_alive_status gauge" in text

    def test_empty_store_has_no_status_lines(self, gauge_store):
        text = MetricsExporter(gauge_store, MetricConfig()).render().decode()
        assert status_lines(text) == []

    def test_reads_store_at_render_time(self, gauge_store):
        exporter = MetricsExporter(gauge_store, MetricConfig())
        gauge_store.set("https://a.example/", 200)
        first = exporter.render().decode()
        gauge_store.set("https://a.example/", 503)
        second = exporter.render().decode()

        assert status_lines(first) == ['bookmarks_alive_status{url="https://a.example/"} 200.0']
        assert status_lines(second) == ['bookmarks_alive_status{url="https://a.example/"} 503.0']

    def test_custom_metric_name(self, gauge_store):
        gauge_store.set("https://a.example/", 200)
        exporter = MetricsExporter(gauge_store, MetricConfig(name="links_status", help="Link status"))

        assert status_lines(exporter.render().decode(), "links_status") == [
            'links_status{url="https://a.example/"} 200.0'
        ]

    def test_label_values_are_escaped(self, gauge_store):
        gauge_store.set('https://a.example/?q="x"', 200)
        text = MetricsExporter(gauge_store, MetricConfig()).render().decode()
        assert 'url="https://a.example/?q=\\"x\\""' in text

    def test_separate_instances_use_separate_registries(self, gauge_store):
        """Two exporters in one process must not collide on metric names."""
        MetricsExporter(gauge_store, MetricConfig())
        MetricsExporter(gauge_store, MetricConfig())

    def test_run_outcomes_are_counted(self, gauge_store):
        exporter = MetricsExporter(gauge_store, MetricConfig())

        done = CollectionRun(deadline_seconds=5)
        done.transition(RunState.RUNNING)
        done.transition(RunState.DRAINING)
        done.transition(RunState.DONE)
        done.results_applied = 3
        done.probe_failures = 1

        timed_out = CollectionRun(deadline_seconds=5)
        timed_out.transition(RunState.RUNNING)
        timed_out.transition(RunState.TIMED_OUT)

        exporter.record_run(done)
        exporter.record_run(timed_out)
        exporter.record_failure()

        registry = exporter.registry
        assert registry.get_sample_value("bookmarks_alive_collection_runs_total", {"outcome": "done"}) == 1
        assert registry.get_sample_value("bookmarks_alive_collection_runs_total", {"outcome": "timed_out"}) == 1
        assert registry.get_sample_value("bookmarks_alive_collection_runs_total", {"outcome": "failed"}) == 1
        assert registry.get_sample_value("bookmarks_alive_urls_probed") == 0
        assert registry.get_sample_value("bookmarks_alive_urls_failed") == 0
        assert exporter.content_type.startswith("text/plain")
