import csv
import json
from types import SimpleNamespace

from utilities.metrics import MetricsCollector, MetricThreshold
from utilities.reporting import ReportGenerator


def fake_environment(num_requests=1000, num_failures=0):
    total = SimpleNamespace(
        fail_ratio=num_failures / num_requests if num_requests else 0.0,
        start_time=1_700_000_000.0,
        num_requests=num_requests,
        num_failures=num_failures,
        avg_response_time=42.5,
        total_rps=66.7,
        get_response_time_percentile=lambda fraction: 120 if fraction < 0.99 else 180,
    )
    return SimpleNamespace(stats=SimpleNamespace(total=total))


def test_clean_run_passes(tmp_path):
    metrics = MetricsCollector()
    metrics.increment("record_create_success", 3200)

    summary = ReportGenerator(tmp_path).build_summary(fake_environment(), metrics, run_id="lt-1")

    assert summary.pass_fail == "PASS"
    assert summary.p95_response_time_ms == 120
    assert summary.p99_response_time_ms == 180
    assert summary.checks == {"record_create": {"passed": 3200, "failed": 0}}


def test_request_failures_fail_the_run(tmp_path):
    summary = ReportGenerator(tmp_path).build_summary(fake_environment(num_failures=50))

    assert summary.pass_fail == "FAIL"


def test_failed_checks_fail_the_run(tmp_path):
    metrics = MetricsCollector()
    metrics.increment("record_create_success", 90)
    metrics.increment("record_create_error", 10)

    summary = ReportGenerator(tmp_path).build_summary(fake_environment(), metrics)

    assert summary.pass_fail == "FAIL"


def test_threshold_violations_fail_the_run(tmp_path):
    metrics = MetricsCollector()
    metrics.add_threshold(MetricThreshold("cash_flow", p99_max_ms=10))
    metrics.record_time("cash_flow", 500.0)

    summary = ReportGenerator(tmp_path).build_summary(fake_environment(), metrics)

    assert summary.pass_fail == "FAIL"
    assert summary.threshold_violations[0]["metric"] == "cash_flow"


def test_final_report_writes_json_and_csv(tmp_path, capsys):
    metrics = MetricsCollector()
    metrics.increment("record_bulk_create_success", 5)
    output_dir = tmp_path / "reports"

    ReportGenerator(output_dir).generate_final_report(
        fake_environment(), metrics, run_id="lt-abc", scenario="smoke"
    )

    data = json.loads((output_dir / "run-summary-lt-abc.json").read_text())
    assert data["scenario"] == "smoke"
    assert data["total_requests"] == 1000
    assert data["checks"]["record_bulk_create"]["passed"] == 5

    with open(output_dir / "run-summary-lt-abc.csv", newline="") as f:
        rows = dict(csv.reader(f))
    assert rows["Pass/Fail"] == "PASS"
    assert rows["record_bulk_create passed"] == "5"

    assert "Pass/Fail: PASS" in capsys.readouterr().out
