"""
Seed and teardown harness for load testing.

Manages the lifecycle of a load test run:
1. Generate run_id
2. Health check the Financial Records API
3. Seed tag fixtures for every organization
4. Run load test
5. Teardown and write run metadata

Usage:
    from utilities.harness import LoadTestHarness

    harness = LoadTestHarness(config=get_config())
    if harness.health_check()["healthy"]:
        harness.seed()
    harness.teardown()
"""

import json
import os
import uuid
from datetime import datetime
from pathlib import Path

import httpx

from clients.queries import ResilientQueries
from clients.records_api import FinancialRecordsApi
from config.defaults import FinancialRecordsConfig
from generators import RecordGenerator
from utilities.fixtures import TagFixtureManager

HEALTH_PATH = "/organizations/1/tags"


class LoadTestHarness:
    """
    Manages the complete load test lifecycle with idempotency.

    Every run gets a unique run_id. Seeding is idempotent because the fixture
    manager only tops organizations up to the target tag count.
    """

    def __init__(
        self,
        run_id: str | None = None,
        config: FinancialRecordsConfig | None = None,
        enable_seed: bool = True,
        enable_teardown: bool = True,
        client: httpx.Client | None = None,
    ):
        """
        Initialize the harness.

        Args:
            run_id: Optional run ID (generated if not provided)
            config: Load test configuration (defaults when not provided)
            enable_seed: Whether to run seed phase
            enable_teardown: Whether to run teardown phase
            client: Optional httpx client (one is created against config.base_url)
        """
        self.run_id = run_id or create_run_id()
        self.config = config or FinancialRecordsConfig()
        self.enable_seed = enable_seed
        self.enable_teardown = enable_teardown
        self._client = client

        self.start_time: datetime | None = None
        self.end_time: datetime | None = None
        self.seeded_tags: dict[int, int] = {}

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(base_url=self.config.base_url, timeout=10.0)
        return self._client

    def seed(self, organization_ids: list[int] | None = None) -> bool:
        """
        Seed phase: top up tag fixtures for each organization.

        Args:
            organization_ids: Organizations to seed (1..organization_count by default)

        Returns:
            True when every organization reached the target tag count
        """
        if not self.enable_seed:
            print("Seed phase disabled")
            return True

        print(f"\n{'=' * 60}")
        print(f"SEED PHASE - Run ID: {self.run_id}")
        print(f"{'=' * 60}\n")

        self.start_time = datetime.now()

        if organization_ids is None:
            organization_ids = list(range(1, self.config.organization_count + 1))

        queries = ResilientQueries(
            self.client,
            max_attempts=self.config.max_read_attempts,
            page_size=self.config.target_tag_count,
            named_requests=False,
        )
        manager = TagFixtureManager(
            queries,
            FinancialRecordsApi(self.client, named_requests=False),
            RecordGenerator(),
            target_tag_count=self.config.target_tag_count,
            max_iterations=self.config.fixture_iterations,
        )

        complete = True
        print(f"Ensuring {self.config.target_tag_count} tags for {len(organization_ids)} organizations...")
        for org_id in organization_ids:
            created = manager.ensure_tags(org_id)
            total = queries.count_tags(org_id)
            self.seeded_tags[org_id] = total
            status = "[OK]" if total >= self.config.target_tag_count else "[SHORT]"
            if total < self.config.target_tag_count:
                complete = False
            print(f"  {status} organization {org_id}: created {len(created)}, total {total}")

        print(f"\nSeed phase complete for run_id: {self.run_id}")
        return complete

    def health_check(self) -> dict:
        """
        Check that the Financial Records API answers.

        Returns:
            Dict with health status
        """
        url = f"{self.config.base_url.rstrip('/')}{HEALTH_PATH}"
        print("\nHealth checking Financial Records API...")
        try:
            response = self.client.get(HEALTH_PATH, params={"page_size": 1}, timeout=5.0)
        except httpx.HTTPError as exc:
            print(f"  [FAIL] financial-records: {url} - {exc}")
            return {"healthy": False, "error": str(exc)}

        healthy = response.status_code == 200
        status = "[OK]" if healthy else "[FAIL]"
        print(f"  {status} financial-records: {url}")
        return {"healthy": healthy, "status_code": response.status_code}

    def teardown(self, force: bool = False) -> bool:
        """
        Teardown phase: close connections and report timing.

        Tags and records are left in place; later runs reuse the tag fixtures.

        Args:
            force: Teardown even if enable_teardown is False

        Returns:
            True if teardown successful
        """
        if not self.enable_teardown and not force:
            print("Teardown phase disabled")
            return True

        print(f"\n{'=' * 60}")
        print(f"TEARDOWN PHASE - Run ID: {self.run_id}")
        print(f"{'=' * 60}\n")

        self.end_time = datetime.now()

        if self._client is not None:
            self._client.close()
            self._client = None

        duration = None
        if self.start_time:
            duration = self.end_time - self.start_time

        print(f"\nRun duration: {duration}")
        print(f"Teardown complete for run_id: {self.run_id}")

        return True

    def write_run_metadata(
        self,
        output_dir: str = "html-reports",
        metadata: dict | None = None,
    ) -> Path:
        """
        Write run metadata to file for tracking.

        Args:
            output_dir: Directory for metadata file
            metadata: Extra fields merged into the base metadata

        Returns:
            Path to metadata file
        """
        output_path = Path(output_dir)
        output_path.mkdir(parents=True, exist_ok=True)

        base_metadata = {
            "run_id": self.run_id,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "base_url": self.config.base_url,
            "target_tag_count": self.config.target_tag_count,
            "seeded_tags": {str(org_id): total for org_id, total in self.seeded_tags.items()},
            "seed_enabled": self.enable_seed,
            "teardown_enabled": self.enable_teardown,
        }
        if metadata:
            base_metadata.update(metadata)

        metadata_file = output_path / f"run-metadata-{self.run_id}.json"
        with open(metadata_file, "w") as f:
            json.dump(base_metadata, f, indent=2)

        return metadata_file


def create_run_id() -> str:
    """Generate a unique run ID."""
    return f"lt-{uuid.uuid4().hex[:12]}"


def get_env_run_id() -> str | None:
    """Get run_id from environment variable."""
    return os.getenv("LOADTEST_RUN_ID")
