from types import SimpleNamespace

import httpx

from config.defaults import FinancialRecordsConfig, TrafficMix
from tasksets.financial_records.records import BulkIngestionTaskset, PopulateTaskset
from tasksets.financial_records.reports import CashFlowTaskset, RecordQueryTaskset
from utilities.metrics import MetricsCollector


class RecordingWorkload:
    def __init__(self, response=None):
        self.calls = []
        self.response = response

    def populate(self, org_id):
        self.calls.append(("populate", org_id))

    def bulk(self, org_id):
        self.calls.append(("bulk", org_id))

    def query_records(self, org_id):
        self.calls.append(("query", org_id))
        return self.response


def fake_taskset(workload, api=None):
    interrupts = []
    user = SimpleNamespace(
        organization_id=7, workload=workload, api=api, metrics=MetricsCollector()
    )
    taskset = SimpleNamespace(
        user=user, interrupt=lambda reschedule=True: interrupts.append(reschedule)
    )
    return taskset, interrupts


def test_populate_task_runs_one_iteration_and_returns_control():
    workload = RecordingWorkload()
    taskset, interrupts = fake_taskset(workload)

    PopulateTaskset.populate_records(taskset)

    assert workload.calls == [("populate", 7)]
    assert interrupts == [False]


def test_bulk_task():
    workload = RecordingWorkload()
    taskset, interrupts = fake_taskset(workload)

    BulkIngestionTaskset.bulk_create_records(taskset)

    assert workload.calls == [("bulk", 7)]
    assert interrupts == [False]


def test_cash_flow_task_times_report_then_bulk_inserts():
    workload = RecordingWorkload()
    api = SimpleNamespace(get_cash_flow_report=lambda org_id: httpx.Response(500))
    taskset, interrupts = fake_taskset(workload, api=api)

    CashFlowTaskset.cash_flow_report(taskset)

    stats = taskset.user.metrics.get_stats("cash_flow")
    assert stats.count == 1
    assert stats.errors == 1
    assert workload.calls == [("bulk", 7)]
    assert interrupts == [False]


def test_record_query_task_times_listing():
    workload = RecordingWorkload(response=httpx.Response(200, json={"data": []}))
    taskset, _ = fake_taskset(workload)

    RecordQueryTaskset.list_records(taskset)

    stats = taskset.user.metrics.get_stats("record_list")
    assert stats.count == 1
    assert stats.errors == 0


def test_load_tasks_follows_traffic_mix():
    from locustfile import load_tasks

    config = FinancialRecordsConfig(
        traffic_mix=TrafficMix(populate=0.7, bulk=0.3, cash_flow=0.0, record_query=0.001)
    )

    tasks = load_tasks(config)

    assert tasks == {PopulateTaskset: 70, BulkIngestionTaskset: 30, RecordQueryTaskset: 1}
