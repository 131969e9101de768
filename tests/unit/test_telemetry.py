import logging

import pytest

from llm_job.telemetry import SimpleReporter, TelemetryContext


class _ExplodingReporter:
    def record_timing(self, scope, duration, **metadata):
        raise RuntimeError("boom")

    def record_metric(self, scope, value, **metadata):
        raise RuntimeError("boom")


class TestTelemetryContext:
    """Scoped timings and counters."""

    @pytest.mark.unit
    def test_disabled_context_is_shared_noop(self):
        assert TelemetryContext() is TelemetryContext(SimpleReporter(), enabled=False)
        ctx = TelemetryContext()
        with ctx("anything"):
            ctx.count("records.succeeded")

    @pytest.mark.unit
    def test_nested_scopes_record_dotted_paths(self):
        reporter = SimpleReporter()
        ctx = TelemetryContext(reporter)
        with ctx("record"), ctx("render"):
            pass
        assert set(reporter.timings) == {"record", "record.render"}
        _, metadata = reporter.timings["record.render"][0]
        assert metadata["depth"] == 1

    @pytest.mark.unit
    def test_count_records_counter_metric(self):
        reporter = SimpleReporter()
        ctx = TelemetryContext(reporter)
        ctx.count("records.failed")
        ctx.count("records.failed", 2)
        values = [v for v, _ in reporter.metrics["records.failed"]]
        assert values == [1, 2]
        assert reporter.metrics["records.failed"][0][1]["metric_type"] == "counter"

    @pytest.mark.unit
    def test_empty_scope_name_is_rejected(self):
        ctx = TelemetryContext(SimpleReporter())
        with pytest.raises(ValueError), ctx(""):
            pass

    @pytest.mark.unit
    def test_reporter_failure_is_logged_not_raised(self, caplog):
        ctx = TelemetryContext(_ExplodingReporter())
        with caplog.at_level(logging.ERROR, logger="llm_job.telemetry"):
            with ctx("record"):
                pass
            ctx.count("records.succeeded")
        assert caplog.text.count("Telemetry reporter '_ExplodingReporter' failed") == 2

    @pytest.mark.unit
    def test_report_lists_timings_and_metrics(self):
        reporter = SimpleReporter()
        ctx = TelemetryContext(reporter)
        with ctx("record"):
            pass
        ctx.count("records.succeeded")
        report = reporter.get_report()
        assert report.startswith("=== Telemetry Report ===")
        assert "record" in report
        assert "records.succeeded" in report
