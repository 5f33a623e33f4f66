"""
Financial Records API Load Testing - Main Locust Entry Point

Usage:
    uv run lt-run --users=100 --spawn-rate=10 --run-time=15s
    uv run lt-populate --users=100
    uv run lt-cash-flow --users=100
    uv run lt-web
"""

import itertools
import os
import sys
from pathlib import Path

from locust import constant, events
from locust.contrib.fasthttp import FastHttpUser
from locust.runners import MasterRunner

# Add src to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from clients.queries import ResilientQueries  # noqa: E402
from clients.records_api import FinancialRecordsApi  # noqa: E402
from config.defaults import get_config  # noqa: E402
from generators import RecordGenerator  # noqa: E402
from utilities.fixtures import (  # noqa: E402
    OrganizationTagCache,
    TagFixtureManager,
    organization_for_worker,
)
from utilities.harness import get_env_run_id  # noqa: E402
from utilities.metrics import MetricThreshold, metrics_collector  # noqa: E402
from utilities.reporting import FAIL_RATIO_LIMIT, report_generator  # noqa: E402
from utilities.workload import WorkloadGenerator  # noqa: E402

# =============================================================================
# Environment Configuration
# =============================================================================

CONFIG = get_config()

# Worker indexes are handed out per process in spawn order
_worker_indexes = itertools.count()


# =============================================================================
# Custom Events
# =============================================================================


@events.init.add_listener
def on_locust_init(environment, **kwargs):
    """Initialize custom metrics and reporting."""
    metrics_collector.init(environment)
    metrics_collector.add_threshold(
        MetricThreshold(
            metric_name="cash_flow",
            p99_max_ms=CONFIG.report_p99_latency_threshold_ms,
            error_rate_max=CONFIG.error_rate_threshold,
        )
    )
    metrics_collector.add_threshold(
        MetricThreshold(
            metric_name="record_list",
            p99_max_ms=CONFIG.p99_latency_threshold_ms,
            error_rate_max=CONFIG.error_rate_threshold,
        )
    )

    if isinstance(environment.runner, MasterRunner):
        worker_count = getattr(environment.runner, "worker_count", None)
        if worker_count is None:
            print("Running in distributed mode (master)")
        else:
            print(f"Running in distributed mode with {worker_count} workers")


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    """Give every run a fresh tag cache."""
    environment.tag_cache = OrganizationTagCache()
    metrics_collector.reset()


@events.test_stop.add_listener
def on_test_stop(environment, **kwargs):
    """Generate final report when test stops."""
    report_generator.generate_final_report(
        environment,
        metrics_collector,
        run_id=get_env_run_id(),
        scenario=os.getenv("LOADTEST_SCENARIO", "baseline"),
    )


@events.quitting.add_listener
def on_quitting(environment, **kwargs):
    """Handle test completion."""
    if environment.stats.total.fail_ratio > FAIL_RATIO_LIMIT:
        environment.process_exit_code = 1


# =============================================================================
# User Class
# =============================================================================


class FinancialRecordsUser(FastHttpUser):
    """
    Load test user for the Financial Records API.

    Each user is pinned to one organization derived from its worker index,
    tops up that organization's tag fixtures and then submits records.
    Traffic Mix: populate / bulk / cash-flow report / record queries
    """

    config = CONFIG
    host = CONFIG.base_url
    wait_time = constant(CONFIG.iteration_pause)

    def on_start(self):
        self.metrics = metrics_collector

        self.worker_index = next(_worker_indexes)
        self.organization_id = organization_for_worker(
            self.worker_index, self.config.organization_count
        )

        tag_cache = getattr(self.environment, "tag_cache", None)
        if tag_cache is None:
            tag_cache = OrganizationTagCache()
            self.environment.tag_cache = tag_cache

        self.headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

        self.generator = RecordGenerator()
        self.api = FinancialRecordsApi(
            self.client,
            headers=self.headers,
            metrics=self.metrics,
            write_failure_policy=self.config.write_failure_policy,
        )
        self.queries = ResilientQueries(
            self.client,
            max_attempts=self.config.max_read_attempts,
            page_size=self.config.target_tag_count,
            headers=self.headers,
        )
        self.fixtures = TagFixtureManager(
            self.queries,
            self.api,
            self.generator,
            target_tag_count=self.config.target_tag_count,
            max_iterations=self.config.fixture_iterations,
            cache=tag_cache,
        )
        self.workload = WorkloadGenerator(self.api, self.fixtures, self.generator, self.config)

    tasks = []  # Loaded dynamically based on config


# =============================================================================
# Dynamic Task Loading
# =============================================================================


def load_tasks(config) -> dict:
    """Load task sets weighted by the configured traffic mix."""
    from tasksets.financial_records import records, reports

    tasks = {}
    mix = config.traffic_mix

    if mix.populate > 0:
        tasks[records.PopulateTaskset] = max(1, int(mix.populate * 100))
    if mix.bulk > 0:
        tasks[records.BulkIngestionTaskset] = max(1, int(mix.bulk * 100))
    if mix.cash_flow > 0:
        tasks[reports.CashFlowTaskset] = max(1, int(mix.cash_flow * 100))
    if mix.record_query > 0:
        tasks[reports.RecordQueryTaskset] = max(1, int(mix.record_query * 100))

    return tasks


FinancialRecordsUser.tasks = load_tasks(CONFIG)
print(f"Configured traffic mix: {CONFIG.traffic_mix}")
