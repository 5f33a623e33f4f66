"""Shared fixtures: an in-memory Financial Records API behind httpx.MockTransport."""

import json
import re

import httpx
import pytest

from utilities.metrics import MetricsCollector

BASE_URL = "http://financial-api.test"

_ORG_PATH = re.compile(r"^/organizations/(?P<org>\d+)/(?P<rest>.+)$")


class FakeFinancialApi:
    """
    Minimal stand-in for the Financial Records service: tags, records, bulk, cash-flow, listings.

    ``fail_next`` queues status codes returned (with an error body) before the
    real handler runs again, keyed by (method, resource) such as ("GET", "tags").
    ``pause`` is called before each request is handled, letting tests yield to
    other greenlets mid-flight.
    """

    def __init__(self):
        self.tags: dict[int, list[dict]] = {}
        self.records: dict[int, list] = {}
        self.requests: list[httpx.Request] = []
        self.fail_next: dict[tuple[str, str], list[int]] = {}
        self.pause = None
        self._next_id = 1

    def add_tags(self, org_id: int, count: int):
        for _ in range(count):
            self._create_tag(org_id, f"Seed Tag {self._next_id}")

    def requests_to(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.pause:
            self.pause()

        match = _ORG_PATH.match(request.url.path)
        if not match:
            return httpx.Response(404, json={"error": "not found"})
        org_id = int(match["org"])
        rest = match["rest"]

        queued = self.fail_next.get((request.method, rest))
        if queued:
            return httpx.Response(queued.pop(0), json={"error": "injected failure"})

        if rest == "tags" and request.method == "GET":
            return self._list(self.tags.get(org_id, []), request)
        if rest == "tags" and request.method == "POST":
            body = json.loads(request.content)
            return httpx.Response(201, json=self._create_tag(org_id, body["name"]))
        if rest == "financial-records" and request.method == "POST":
            record = json.loads(request.content)
            self.records.setdefault(org_id, []).append(record)
            return httpx.Response(201, json=record)
        if rest == "financial-records/bulk" and request.method == "POST":
            records = json.loads(request.content)
            self.records.setdefault(org_id, []).extend(records)
            return httpx.Response(201, json=records)
        if rest == "financial-records" and request.method == "GET":
            return self._list(self.records.get(org_id, []), request)
        if rest == "financial-records/reports/cash-flow":
            return httpx.Response(200, json={"monthlyData": []})

        return httpx.Response(404, json={"error": "not found"})

    def _create_tag(self, org_id: int, name: str) -> dict:
        tag = {"id": self._next_id, "organizationId": org_id, "name": name}
        self._next_id += 1
        self.tags.setdefault(org_id, []).append(tag)
        return tag

    @staticmethod
    def _list(items: list, request: httpx.Request) -> httpx.Response:
        page = int(request.url.params.get("page", 1))
        page_size = int(request.url.params.get("page_size", 20))
        offset = (page - 1) * page_size
        return httpx.Response(
            200,
            json={
                "data": items[offset : offset + page_size],
                "pagination": {
                    "current_page": page,
                    "page_size": page_size,
                    "total_items": len(items),
                    "total_pages": (len(items) + page_size - 1) // page_size,
                },
            },
        )


@pytest.fixture
def fake_api():
    return FakeFinancialApi()


@pytest.fixture
def http_client(fake_api):
    with httpx.Client(base_url=BASE_URL, transport=httpx.MockTransport(fake_api)) as client:
        yield client


@pytest.fixture
def metrics():
    return MetricsCollector()


def scripted_client(responses):
    """
    Client whose handler replays ``responses`` in order.

    Items are httpx.Response objects or exceptions to raise. The list of seen
    requests is attached as ``client.seen``.
    """
    remaining = list(responses)
    seen = []

    def handler(request):
        seen.append(request)
        item = remaining.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    client = httpx.Client(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    client.seen = seen
    return client


@pytest.fixture
def scripted():
    return scripted_client
