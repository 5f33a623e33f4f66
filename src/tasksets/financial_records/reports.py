"""
Report and query task sets for the Financial Records API.

The cash-flow report aggregates two years of records per organization, so it
is timed separately and held to its own latency threshold.
"""

from locust import TaskSet, tag, task


class CashFlowTaskset(TaskSet):
    """
    Cash-flow report followed by a bulk batch of new records.
    Tests GET /organizations/{id}/financial-records/reports/cash-flow.
    """

    @task(1)
    @tag("reports", "cash-flow")
    def cash_flow_report(self):
        """Fetch the report, then keep the tables growing with a bulk insert."""
        org_id = self.user.organization_id

        with self.user.metrics.timer("cash_flow") as timer:
            response = self.user.api.get_cash_flow_report(org_id)
            timer.success = response is not None and response.status_code == 200

        self.user.workload.bulk(org_id)
        self.interrupt(reschedule=False)


class RecordQueryTaskset(TaskSet):
    """
    Paginated record listing with tag filters.
    Tests GET /organizations/{id}/financial-records.
    """

    @task(1)
    @tag("query", "list")
    def list_records(self):
        """List one page of records, sometimes filtered by tags."""
        with self.user.metrics.timer("record_list") as timer:
            response = self.user.workload.query_records(self.user.organization_id)
            timer.success = response is not None and response.status_code == 200

        self.interrupt(reschedule=False)
