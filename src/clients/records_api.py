"""
Write-side client for the Financial Records API.

Wraps tag creation, single and bulk record submission, and the report reads
used by the load workloads. Works with any session exposing ``get``/``post``
(Locust's ``FastHttpSession`` during a run, ``httpx.Client`` for seeding).

Writes are never retried here. A non-201 answer is logged and handed back
unchanged so the caller (or a Locust check) can judge it.
"""

import logging

import httpx

logger = logging.getLogger(__name__)

CREATED = 201
OK = 200


class RecordSubmissionError(Exception):
    """Raised for a failed write when the ``raise`` failure policy is active."""

    def __init__(self, operation: str, status_code: int | None, body: str = ""):
        self.operation = operation
        self.status_code = status_code
        self.body = body
        super().__init__(f"{operation} failed: status={status_code} body={body[:200]}")


def response_body(response) -> str:
    """Best-effort text of a response for log messages."""
    text = getattr(response, "text", None)
    return text if isinstance(text, str) else ""


class FinancialRecordsApi:
    """
    Submission client for one API host.

    Args:
        client: Session used to issue requests (paths are relative to its host)
        headers: Headers sent with every request
        metrics: Optional collector receiving ``*_success``/``*_error`` counters
        write_failure_policy: "log" (default) or "raise"
        named_requests: Pass Locust ``name=`` labels so stats group by route
    """

    def __init__(
        self,
        client,
        headers: dict | None = None,
        metrics=None,
        write_failure_policy: str = "log",
        named_requests: bool = True,
    ):
        self.client = client
        self.headers = headers or {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        self.metrics = metrics
        self.write_failure_policy = write_failure_policy
        self.named_requests = named_requests

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def create_tag(self, org_id: int, name: str):
        """POST /organizations/{id}/tags."""
        return self._submit(
            "tag_create",
            f"/organizations/{org_id}/tags",
            {"name": name},
            "POST /organizations/{id}/tags",
        )

    def create_record(self, org_id: int, payload: dict):
        """POST /organizations/{id}/financial-records."""
        return self._submit(
            "record_create",
            f"/organizations/{org_id}/financial-records",
            payload,
            "POST /organizations/{id}/financial-records",
        )

    def create_records_bulk(self, org_id: int, payloads: list[dict]):
        """POST /organizations/{id}/financial-records/bulk with an array body."""
        return self._submit(
            "record_bulk_create",
            f"/organizations/{org_id}/financial-records/bulk",
            list(payloads),
            "POST /organizations/{id}/financial-records/bulk",
        )

    # -------------------------------------------------------------------------
    # Report reads (single attempt; the load itself is the point)
    # -------------------------------------------------------------------------

    def get_cash_flow_report(self, org_id: int):
        """GET the monthly cash-flow report for an organization."""
        response = self._get(
            f"/organizations/{org_id}/financial-records/reports/cash-flow",
            None,
            "GET /organizations/{id}/financial-records/reports/cash-flow",
        )
        self._check_read("cash_flow", org_id, response)
        return response

    def list_records(
        self,
        org_id: int,
        page: int = 1,
        page_size: int = 20,
        tag_ids: list | None = None,
    ):
        """GET a page of records, optionally filtered by tag ids."""
        params = {"page": page, "page_size": page_size}
        if tag_ids:
            params["tags"] = ",".join(str(tag_id) for tag_id in tag_ids)

        name = "GET /organizations/{id}/financial-records"
        if tag_ids:
            name += " (by tags)"

        response = self._get(f"/organizations/{org_id}/financial-records", params, name)
        self._check_read("record_list", org_id, response)
        return response

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _request_kwargs(self, name: str) -> dict:
        kwargs = {"headers": self.headers}
        if self.named_requests:
            kwargs["name"] = name
        return kwargs

    def _get(self, path: str, params: dict | None, name: str):
        kwargs = self._request_kwargs(name)
        if params:
            kwargs["params"] = params
        try:
            return self.client.get(path, **kwargs)
        except httpx.TransportError as exc:
            logger.warning("GET %s failed: %s", path, exc)
            return None

    def _submit(self, operation: str, path: str, body, name: str):
        try:
            response = self.client.post(path, json=body, **self._request_kwargs(name))
        except httpx.TransportError as exc:
            logger.warning("%s request to %s failed: %s", operation, path, exc)
            self._increment(f"{operation}_error")
            if self.write_failure_policy == "raise":
                raise RecordSubmissionError(operation, None, str(exc)) from exc
            return None

        if response.status_code == CREATED:
            self._increment(f"{operation}_success")
            return response

        body_text = response_body(response)
        logger.warning(
            "%s to %s returned %s: %s", operation, path, response.status_code, body_text
        )
        self._increment(f"{operation}_error")
        if self.write_failure_policy == "raise":
            raise RecordSubmissionError(operation, response.status_code, body_text)
        return response

    def _check_read(self, operation: str, org_id: int, response) -> None:
        if response is not None and response.status_code == OK:
            self._increment(f"{operation}_success")
            return

        self._increment(f"{operation}_error")
        if response is not None:
            logger.warning(
                "Failed to get %s for organization %s: %s %s",
                operation,
                org_id,
                response.status_code,
                response_body(response),
            )

    def _increment(self, metric_name: str) -> None:
        if self.metrics is not None:
            self.metrics.increment(metric_name)
