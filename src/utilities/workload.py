"""
Per-iteration workloads against the Financial Records API.

Each method is one iteration of a virtual user: it makes sure the
organization has tag fixtures, generates payloads from those tags and submits
them. The Locust tasksets are thin wrappers around these methods.
"""

import logging
import random

import gevent
from gevent.pool import Pool

from generators import extract_tag_ids, select_random_subset

logger = logging.getLogger(__name__)


class WorkloadGenerator:
    """
    Drives record creation and report queries for one virtual user.

    Args:
        api: FinancialRecordsApi for writes and report reads
        fixtures: TagFixtureManager providing the organization's tags
        generator: RecordGenerator for payloads
        config: FinancialRecordsConfig controlling chunk sizes and pauses
        sleep: Pause function, ``gevent.sleep`` unless overridden
    """

    def __init__(self, api, fixtures, generator, config, sleep=None):
        self.api = api
        self.fixtures = fixtures
        self.generator = generator
        self.config = config
        self.sleep = sleep or gevent.sleep

    def populate(self, org_id: int) -> list:
        """
        Post ``record_chunks * records_per_chunk`` single records.

        Records in a chunk are posted concurrently and awaited together before
        pausing for ``chunk_pause`` seconds.
        """
        tags = self.fixtures.tags_for(org_id)
        responses = []

        for chunk in range(self.config.record_chunks):
            pool = Pool(self.config.records_per_chunk)
            jobs = [
                pool.spawn(self.api.create_record, org_id, self.generator.build_record(tags))
                for _ in range(self.config.records_per_chunk)
            ]
            pool.join(raise_error=True)
            responses.extend(job.value for job in jobs)

            if self.config.chunk_pause > 0:
                self.sleep(self.config.chunk_pause)

        return responses

    def bulk(self, org_id: int, count: int | None = None):
        """Submit ``count`` (default ``bulk_size``) records in one bulk request."""
        tags = self.fixtures.tags_for(org_id)
        payloads = self.generator.build_batch(count or self.config.bulk_size, tags)
        return self.api.create_records_bulk(org_id, payloads)

    def query_records(self, org_id: int, rng: random.Random | None = None):
        """List a page of records, filtered by up to two of the organization's tags."""
        rng = rng or self.generator.rng
        tag_ids = select_random_subset(
            extract_tag_ids(self.fixtures.tags_for(org_id)), rng.randint(0, 2), rng
        )
        return self.api.list_records(
            org_id,
            page=rng.randint(1, 5),
            page_size=rng.choice([10, 20, 50]),
            tag_ids=tag_ids,
        )
