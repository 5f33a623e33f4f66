"""
Default configurations for load testing.
Loads settings from environment with sensible defaults.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from locust.util.timespan import parse_timespan

WRITE_FAILURE_POLICIES = ("log", "raise")


@dataclass
class TrafficMix:
    """Traffic mix configuration."""

    populate: float = 0.60  # chunked single-record posts
    bulk: float = 0.20
    cash_flow: float = 0.15
    record_query: float = 0.05


@dataclass
class FinancialRecordsConfig:
    """Configuration for Financial Records API load testing."""

    base_url: str = "http://localhost:8080"

    # User scaling
    users: int = 100
    spawn_rate: int = 10
    run_time: str = "15s"

    # Organization assignment and tag fixtures
    organization_count: int = 10
    target_tag_count: int = 32
    fixture_iterations: int = 32
    max_read_attempts: int = 32

    # Record workload shape
    record_chunks: int = 4
    records_per_chunk: int = 8
    chunk_pause: float = 0.5  # seconds
    iteration_pause: float = 1.0  # seconds
    bulk_size: int = 10

    # "log" keeps failed writes non-fatal, "raise" aborts the task
    write_failure_policy: str = "log"

    # Target metrics
    p99_latency_threshold_ms: float = 500.0
    report_p99_latency_threshold_ms: float = 2000.0
    error_rate_threshold: float = 0.01  # 1%

    traffic_mix: TrafficMix | None = None

    def __post_init__(self):
        if self.traffic_mix is None:
            self.traffic_mix = TrafficMix()

        for name in (
            "users",
            "organization_count",
            "target_tag_count",
            "fixture_iterations",
            "max_read_attempts",
            "record_chunks",
            "records_per_chunk",
            "bulk_size",
        ):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be a positive integer")

        if self.chunk_pause < 0 or self.iteration_pause < 0:
            raise ValueError("pauses must not be negative")

        if self.write_failure_policy not in WRITE_FAILURE_POLICIES:
            raise ValueError(
                f"Unknown write failure policy: {self.write_failure_policy} "
                f"(expected one of {', '.join(WRITE_FAILURE_POLICIES)})"
            )

        # Raises ValueError on malformed spans such as "15 seconds"
        parse_timespan(self.run_time)

    @property
    def run_time_seconds(self) -> int:
        return parse_timespan(self.run_time)

    @property
    def records_per_iteration(self) -> int:
        return self.record_chunks * self.records_per_chunk

    @classmethod
    def from_env(cls) -> FinancialRecordsConfig:
        """Load from environment variables."""
        defaults = cls()

        weights = {
            "populate": float(os.getenv("LT_POPULATE_WEIGHT", str(defaults.traffic_mix.populate))),
            "bulk": float(os.getenv("LT_BULK_WEIGHT", str(defaults.traffic_mix.bulk))),
            "cash_flow": float(
                os.getenv("LT_CASH_FLOW_WEIGHT", str(defaults.traffic_mix.cash_flow))
            ),
            "record_query": float(
                os.getenv("LT_QUERY_WEIGHT", str(defaults.traffic_mix.record_query))
            ),
        }

        # Keep mix deterministic and valid for Locust task weighting.
        weights = {name: max(weight, 0.0) for name, weight in weights.items()}
        total = sum(weights.values())
        if total <= 0:
            traffic_mix = TrafficMix()
        else:
            traffic_mix = TrafficMix(**{name: weight / total for name, weight in weights.items()})

        return cls(
            base_url=os.getenv("FINANCIAL_API_URL", defaults.base_url).rstrip("/"),
            users=int(os.getenv("LT_USERS", str(defaults.users))),
            spawn_rate=int(os.getenv("LT_SPAWN_RATE", str(defaults.spawn_rate))),
            run_time=os.getenv("LT_RUN_TIME", defaults.run_time),
            organization_count=int(
                os.getenv("LT_ORGANIZATION_COUNT", str(defaults.organization_count))
            ),
            target_tag_count=int(os.getenv("LT_TARGET_TAG_COUNT", str(defaults.target_tag_count))),
            fixture_iterations=int(
                os.getenv("LT_FIXTURE_ITERATIONS", str(defaults.fixture_iterations))
            ),
            max_read_attempts=int(
                os.getenv("LT_MAX_READ_ATTEMPTS", str(defaults.max_read_attempts))
            ),
            record_chunks=int(os.getenv("LT_RECORD_CHUNKS", str(defaults.record_chunks))),
            records_per_chunk=int(
                os.getenv("LT_RECORDS_PER_CHUNK", str(defaults.records_per_chunk))
            ),
            chunk_pause=float(os.getenv("LT_CHUNK_PAUSE", str(defaults.chunk_pause))),
            iteration_pause=float(os.getenv("LT_ITERATION_PAUSE", str(defaults.iteration_pause))),
            bulk_size=int(os.getenv("LT_BULK_SIZE", str(defaults.bulk_size))),
            write_failure_policy=os.getenv(
                "LT_WRITE_FAILURE_POLICY", defaults.write_failure_policy
            ).lower(),
            p99_latency_threshold_ms=float(
                os.getenv("LT_P99_MS", str(defaults.p99_latency_threshold_ms))
            ),
            report_p99_latency_threshold_ms=float(
                os.getenv("LT_REPORT_P99_MS", str(defaults.report_p99_latency_threshold_ms))
            ),
            traffic_mix=traffic_mix,
        )


_CONFIG: FinancialRecordsConfig | None = None


def get_config(reload: bool = False) -> FinancialRecordsConfig:
    """Return the cached configuration, loading it from the environment once."""
    global _CONFIG
    if _CONFIG is None or reload:
        _CONFIG = FinancialRecordsConfig.from_env()
    return _CONFIG


# Scenario configurations
SCENARIOS = {
    "smoke": {
        "users": 10,
        "spawn_rate": 5,
        "duration": "1m",
        "description": "Quick validation that the API is operational",
    },
    "baseline": {
        "users": 100,
        "spawn_rate": 10,
        "duration": "15s",
        "description": "Default populate run: 100 users for 15 seconds",
    },
    "stress": {
        "users": 500,
        "spawn_rate": 50,
        "duration": "10m",
        "description": "Find breaking point and measure degradation",
    },
    "soak": {
        "users": 100,
        "spawn_rate": 10,
        "duration": "1h",
        "description": "Detect slow queries as the record tables grow",
    },
    "spike": {
        "users": 1000,
        "spawn_rate": 500,
        "duration": "5m",
        "description": "Sudden traffic spike to test burst handling",
    },
    "seed-only": {
        "users": 1,
        "spawn_rate": 1,
        "duration": "1m",
        "description": "Seed tag fixtures without sustained load",
    },
}


def get_scenario_config(scenario_name: str) -> dict:
    """Get configuration for a test scenario."""
    if scenario_name not in SCENARIOS:
        raise ValueError(f"Unknown scenario: {scenario_name}")
    return SCENARIOS[scenario_name]
