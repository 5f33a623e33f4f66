"""
Reporting utilities for load test results.

Writes JSON and CSV run summaries when a Locust run stops.
"""

import csv
import json
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path

FAIL_RATIO_LIMIT = 0.01


@dataclass
class RunSummary:
    """Summary of a load test run."""

    run_id: str
    start_time: datetime
    end_time: datetime | None = None
    scenario: str = "baseline"
    total_requests: int = 0
    total_failures: int = 0
    avg_response_time_ms: float = 0.0
    p95_response_time_ms: float = 0.0
    p99_response_time_ms: float = 0.0
    rps: float = 0.0
    checks: dict = field(default_factory=dict)
    threshold_violations: list[dict] = field(default_factory=list)
    pass_fail: str = "UNKNOWN"


class ReportGenerator:
    """
    Generates reports from load test results.

    Usage:
        generator = ReportGenerator()
        generator.generate_final_report(environment, metrics_collector)
    """

    def __init__(self, output_dir: str = "html-reports"):
        self.output_dir = Path(output_dir)
        self.run_summaries: list[RunSummary] = []

    def build_summary(
        self, environment, metrics=None, run_id: str | None = None, scenario: str = "baseline"
    ) -> RunSummary:
        """Collect Locust totals, check counters and threshold violations."""
        stats = environment.stats
        total = stats.total

        checks = metrics.check_summary() if metrics else {}
        violations = metrics.check_thresholds() if metrics else []

        fail_ratio = total.fail_ratio
        failed_checks = sum(entry["failed"] for entry in checks.values())
        passed_checks = sum(entry["passed"] for entry in checks.values())
        check_ratio = failed_checks / (failed_checks + passed_checks) if failed_checks else 0.0

        if fail_ratio < FAIL_RATIO_LIMIT and check_ratio < FAIL_RATIO_LIMIT and not violations:
            pass_fail = "PASS"
        else:
            pass_fail = "FAIL"

        start_timestamp = total.start_time or datetime.now().timestamp()

        return RunSummary(
            run_id=run_id or datetime.now().strftime("%Y%m%d-%H%M%S"),
            scenario=scenario,
            start_time=datetime.fromtimestamp(start_timestamp),
            end_time=datetime.now(),
            total_requests=total.num_requests,
            total_failures=total.num_failures,
            avg_response_time_ms=total.avg_response_time,
            p95_response_time_ms=total.get_response_time_percentile(0.95) or 0.0,
            p99_response_time_ms=total.get_response_time_percentile(0.99) or 0.0,
            rps=total.total_rps,
            checks=checks,
            threshold_violations=violations,
            pass_fail=pass_fail,
        )

    def generate_final_report(
        self, environment, metrics=None, run_id: str | None = None, scenario: str = "baseline"
    ):
        """Generate final report when test stops."""
        summary = self.build_summary(environment, metrics, run_id, scenario)
        self.run_summaries.append(summary)

        self.output_dir.mkdir(parents=True, exist_ok=True)
        self._write_json_summary(summary)
        self._write_csv_summary(summary)

        print(f"Report generated: {self.output_dir}/run-summary-{summary.run_id}.json")
        for operation, counts in sorted(summary.checks.items()):
            print(f"  {operation}: {counts['passed']} passed, {counts['failed']} failed")
        for violation in summary.threshold_violations:
            print(f"  THRESHOLD VIOLATION: {violation}")
        print(f"Pass/Fail: {summary.pass_fail}")

        return summary

    def _write_json_summary(self, summary: RunSummary):
        """Write JSON summary file."""
        output_file = self.output_dir / f"run-summary-{summary.run_id}.json"

        data = asdict(summary)
        # Convert datetime objects to strings
        data["start_time"] = summary.start_time.isoformat()
        data["end_time"] = summary.end_time.isoformat() if summary.end_time else None

        with open(output_file, "w") as f:
            json.dump(data, f, indent=2)

    def _write_csv_summary(self, summary: RunSummary):
        """Write CSV summary file."""
        output_file = self.output_dir / f"run-summary-{summary.run_id}.csv"

        with open(output_file, "w", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(["Metric", "Value"])
            writer.writerow(["Run ID", summary.run_id])
            writer.writerow(["Start Time", summary.start_time.isoformat()])
            writer.writerow(
                ["End Time", summary.end_time.isoformat() if summary.end_time else "N/A"]
            )
            writer.writerow(["Total Requests", summary.total_requests])
            writer.writerow(["Total Failures", summary.total_failures])
            writer.writerow(["Avg Response Time (ms)", f"{summary.avg_response_time_ms:.2f}"])
            writer.writerow(["P95 Response Time (ms)", f"{summary.p95_response_time_ms:.2f}"])
            writer.writerow(["P99 Response Time (ms)", f"{summary.p99_response_time_ms:.2f}"])
            writer.writerow(["RPS", f"{summary.rps:.2f}"])
            for operation, counts in sorted(summary.checks.items()):
                writer.writerow([f"{operation} passed", counts["passed"]])
                writer.writerow([f"{operation} failed", counts["failed"]])
            writer.writerow(["Threshold Violations", len(summary.threshold_violations)])
            writer.writerow(["Pass/Fail", summary.pass_fail])


# Global singleton instance
report_generator = ReportGenerator()
