import logging

import httpx
import pytest

from clients.queries import ResilientQueries


def tag_page(tags, total=None):
    total = len(tags) if total is None else total
    return httpx.Response(200, json={"data": tags, "pagination": {"total_items": total}})


def failures(count, status=503):
    return [httpx.Response(status, text="unavailable") for _ in range(count)]


class TestRetryCeiling:
    def test_list_tags_succeeds_on_last_attempt(self, scripted):
        tags = [{"id": 1, "name": "Red Cat 1"}]
        client = scripted(failures(31) + [tag_page(tags)])

        assert ResilientQueries(client, named_requests=False).list_tags(5) == tags
        assert len(client.seen) == 32

    def test_count_tags_succeeds_on_last_attempt(self, scripted):
        client = scripted(failures(31, status=500) + [tag_page([], total=17)])

        assert ResilientQueries(client, named_requests=False).count_tags(5) == 17
        assert len(client.seen) == 32

    def test_list_tags_degrades_to_empty_after_exhaustion(self, scripted, caplog):
        client = scripted(failures(32))

        with caplog.at_level(logging.WARNING, logger="clients.queries"):
            assert ResilientQueries(client, named_requests=False).list_tags(5) == []

        assert len(client.seen) == 32
        assert "Giving up on list tags for organization 5 after 32 attempts" in caplog.text

    def test_count_tags_degrades_to_zero_after_exhaustion(self, scripted):
        client = scripted(failures(32))

        assert ResilientQueries(client, named_requests=False).count_tags(5) == 0
        assert len(client.seen) == 32

    def test_custom_attempt_limit(self, scripted):
        client = scripted(failures(3))

        assert ResilientQueries(client, max_attempts=3, named_requests=False).count_tags(1) == 0
        assert len(client.seen) == 3

    def test_attempt_limit_must_be_positive(self, scripted):
        with pytest.raises(ValueError):
            ResilientQueries(scripted([]), max_attempts=0)


class TestResponseValidation:
    @pytest.mark.parametrize(
        "bad_response",
        [
            httpx.Response(200, text="not json"),
            httpx.Response(200, json=["data"]),
            httpx.Response(200, json={"data": "oops"}),
            httpx.Response(200, json={"items": []}),
        ],
    )
    def test_list_rejects_malformed_bodies(self, scripted, bad_response):
        tags = [{"id": 2}]
        client = scripted([bad_response, tag_page(tags)])

        assert ResilientQueries(client, named_requests=False).list_tags(3) == tags
        assert len(client.seen) == 2

    @pytest.mark.parametrize(
        "pagination",
        [None, {}, {"total_items": "3"}, {"total_items": 2.5}, {"total_items": True}],
    )
    def test_count_rejects_malformed_pagination(self, scripted, pagination):
        client = scripted(
            [httpx.Response(200, json={"data": [], "pagination": pagination}), tag_page([], 4)]
        )

        assert ResilientQueries(client, named_requests=False).count_tags(3) == 4
        assert len(client.seen) == 2

    def test_transport_errors_count_as_failed_attempts(self, scripted):
        client = scripted(
            [httpx.ConnectError("connection refused"), httpx.ReadTimeout("slow"), tag_page([], 9)]
        )

        assert ResilientQueries(client, named_requests=False).count_tags(2) == 9

    def test_transport_errors_never_escape(self, scripted):
        client = scripted([httpx.ConnectError("connection refused") for _ in range(4)])

        assert ResilientQueries(client, max_attempts=4, named_requests=False).list_tags(2) == []


class TestRequests:
    def test_list_requests_page_size(self, http_client, fake_api):
        fake_api.add_tags(6, 25)

        tags = ResilientQueries(http_client, page_size=32, named_requests=False).list_tags(6)

        assert len(tags) == 25
        request = fake_api.requests_to("GET", "/organizations/6/tags")[0]
        assert request.url.params["page_size"] == "32"

    def test_list_without_page_size_uses_server_default(self, http_client, fake_api):
        fake_api.add_tags(6, 25)

        assert len(ResilientQueries(http_client, named_requests=False).list_tags(6)) == 20

    def test_count_reads_total_items(self, http_client, fake_api):
        fake_api.add_tags(8, 12)

        assert ResilientQueries(http_client, named_requests=False).count_tags(8) == 12

    def test_organizations_are_isolated(self, http_client, fake_api):
        fake_api.add_tags(1, 3)

        queries = ResilientQueries(http_client, named_requests=False)
        assert queries.count_tags(1) == 3
        assert queries.count_tags(2) == 0
        assert queries.list_tags(2) == []
