"""
Tag fixture management for load testing.

Makes sure each organization owns the target number of tags before records
are generated against it. Used both by Locust users during a run and by the
seed phase of the harness.

Usage:
    from utilities.fixtures import OrganizationTagCache, TagFixtureManager

    cache = OrganizationTagCache()
    manager = TagFixtureManager(queries, api, generator, cache=cache)
    tags = manager.tags_for(org_id)
"""

import logging
import threading

logger = logging.getLogger(__name__)

DEFAULT_TARGET_TAG_COUNT = 32
DEFAULT_FIXTURE_ITERATIONS = 32


def is_valid_organization_id(org_id) -> bool:
    """Organization ids are positive integers (bools excluded)."""
    return isinstance(org_id, int) and not isinstance(org_id, bool) and org_id > 0


def organization_for_worker(worker_index: int, organization_count: int = 10) -> int:
    """Map a virtual worker onto one of ``organization_count`` organizations."""
    return max(1, (worker_index % organization_count) + 1)


class OrganizationTagCache:
    """
    Tags listed per organization, scoped to a single test run.

    Created once per run and handed to every fixture manager so that users
    sharing an organization reuse one listing instead of re-running the
    fixture cycle.
    """

    def __init__(self):
        self._tags: dict[int, list] = {}
        self._lock = threading.Lock()

    def get(self, org_id: int) -> list | None:
        with self._lock:
            tags = self._tags.get(org_id)
            return list(tags) if tags is not None else None

    def set(self, org_id: int, tags: list) -> None:
        with self._lock:
            self._tags[org_id] = list(tags)

    def clear(self) -> None:
        with self._lock:
            self._tags.clear()

    def __contains__(self, org_id) -> bool:
        with self._lock:
            return org_id in self._tags

    def __len__(self) -> int:
        with self._lock:
            return len(self._tags)


class TagFixtureManager:
    """
    Ensures organizations have ``target_tag_count`` tags.

    Args:
        queries: ResilientQueries used for counts and listings
        api: FinancialRecordsApi used to create tags
        generator: RecordGenerator providing tag names
        target_tag_count: Stop creating once the organization has this many
        max_iterations: Upper bound on count/create rounds per call
        cache: Optional per-run OrganizationTagCache
    """

    def __init__(
        self,
        queries,
        api,
        generator,
        target_tag_count: int = DEFAULT_TARGET_TAG_COUNT,
        max_iterations: int = DEFAULT_FIXTURE_ITERATIONS,
        cache: OrganizationTagCache | None = None,
    ):
        self.queries = queries
        self.api = api
        self.generator = generator
        self.target_tag_count = target_tag_count
        self.max_iterations = max_iterations
        self.cache = cache

    def ensure_tags(self, org_id) -> list[dict]:
        """
        Create tags until the organization reaches the target count.

        Every round re-reads the count, so tags created concurrently by other
        users are taken into account and a failed create is simply retried on
        the next round. Other users may still push the real count past the
        target.

        Returns:
            Tags created by this call (bodies of the 201 responses)
        """
        if not is_valid_organization_id(org_id):
            logger.warning("Skipping tag fixtures for invalid organization id %r", org_id)
            return []

        created = []
        for _ in range(self.max_iterations):
            count = self.queries.count_tags(org_id)
            if count >= self.target_tag_count:
                break

            name = self.generator.generate_tag_name()
            response = self.api.create_tag(org_id, name)
            if response is None or response.status_code != 201:
                status = response.status_code if response is not None else "no response"
                logger.info("Tag %r for organization %s not created (%s)", name, org_id, status)
                continue

            try:
                created.append(response.json())
            except ValueError:
                logger.warning("Tag %r for organization %s created with unreadable body", name, org_id)

        return created

    def tags_for(self, org_id) -> list:
        """Return the organization's tags, running the fixture cycle on first use."""
        if not is_valid_organization_id(org_id):
            logger.warning("Cannot load tags for invalid organization id %r", org_id)
            return []

        if self.cache is not None:
            cached = self.cache.get(org_id)
            if cached is not None:
                return cached

        self.ensure_tags(org_id)
        tags = self.queries.list_tags(org_id)

        # An empty listing is not cached so the next iteration tries again
        if tags and self.cache is not None:
            self.cache.set(org_id, tags)
        return tags
