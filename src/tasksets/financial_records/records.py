"""
Financial record ingestion task sets for load testing.

Priority: HIGH - record creation is the hot write path
Each iteration tops up the organization's tag fixtures, then posts records.
Every task hands control back to the user afterwards so the traffic mix is
re-drawn on each iteration.
"""

from locust import TaskSet, tag, task


class PopulateTaskset(TaskSet):
    """
    Chunked single-record ingestion.
    Tests POST /organizations/{id}/financial-records.
    """

    @task(1)
    @tag("records", "single")
    def populate_records(self):
        """Post record_chunks x records_per_chunk records, one chunk at a time."""
        self.user.workload.populate(self.user.organization_id)
        self.interrupt(reschedule=False)


class BulkIngestionTaskset(TaskSet):
    """
    Bulk record ingestion.
    Tests POST /organizations/{id}/financial-records/bulk.
    """

    @task(1)
    @tag("records", "bulk")
    def bulk_create_records(self):
        """Post one array of bulk_size records."""
        self.user.workload.bulk(self.user.organization_id)
        self.interrupt(reschedule=False)
