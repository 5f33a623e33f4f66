"""
Read-side helper for tag fixtures with bounded retry.

Every read gets a fixed number of immediate attempts. When none of them
produce a well-formed answer the helper logs the failure and degrades to an
empty listing or a zero count instead of raising.
"""

import logging

import httpx

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 32

_MISSING = object()


class ResilientQueries:
    """
    Tag listing and counting for one API host.

    Args:
        client: Session exposing ``get`` (Locust session or ``httpx.Client``)
        max_attempts: Attempts per read, the last one included
        page_size: Page size requested when listing tags
        headers: Headers sent with every request
        named_requests: Pass Locust ``name=`` labels so stats group by route
    """

    def __init__(
        self,
        client,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        page_size: int | None = None,
        headers: dict | None = None,
        named_requests: bool = True,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.client = client
        self.max_attempts = max_attempts
        self.page_size = page_size
        self.headers = headers or {"Accept": "application/json"}
        self.named_requests = named_requests

    def list_tags(self, org_id: int) -> list:
        """Return the organization's tags, or ``[]`` once every attempt has failed."""
        params = {"page_size": self.page_size} if self.page_size else None
        data = self._read(
            org_id,
            "list tags",
            params,
            "GET /organizations/{id}/tags",
            _extract_tag_list,
        )
        return [] if data is _MISSING else data

    def count_tags(self, org_id: int) -> int:
        """Return ``pagination.total_items`` for the organization's tags, or ``0``."""
        total = self._read(
            org_id,
            "count tags",
            {"page_size": 1},
            "GET /organizations/{id}/tags (count)",
            _extract_total_items,
        )
        return 0 if total is _MISSING else total

    def _read(self, org_id: int, operation: str, params: dict | None, name: str, extract):
        path = f"/organizations/{org_id}/tags"
        kwargs = {"headers": self.headers}
        if params:
            kwargs["params"] = params
        if self.named_requests:
            kwargs["name"] = name

        for attempt in range(1, self.max_attempts + 1):
            try:
                response = self.client.get(path, **kwargs)
            except httpx.TransportError as exc:
                logger.warning(
                    "Attempt %d/%d to %s for organization %s failed: %s",
                    attempt,
                    self.max_attempts,
                    operation,
                    org_id,
                    exc,
                )
                continue

            if response.status_code != 200:
                logger.warning(
                    "Attempt %d/%d to %s for organization %s returned %s",
                    attempt,
                    self.max_attempts,
                    operation,
                    org_id,
                    response.status_code,
                )
                continue

            try:
                body = response.json()
            except ValueError:
                logger.warning(
                    "Attempt %d/%d to %s for organization %s returned a non-JSON body",
                    attempt,
                    self.max_attempts,
                    operation,
                    org_id,
                )
                continue

            value = extract(body)
            if value is _MISSING:
                logger.warning(
                    "Attempt %d/%d to %s for organization %s returned an unexpected body",
                    attempt,
                    self.max_attempts,
                    operation,
                    org_id,
                )
                continue

            return value

        logger.error(
            "Giving up on %s for organization %s after %d attempts",
            operation,
            org_id,
            self.max_attempts,
        )
        return _MISSING


def _extract_tag_list(body):
    if not isinstance(body, dict):
        return _MISSING
    data = body.get("data")
    if not isinstance(data, list):
        return _MISSING
    return data


def _extract_total_items(body):
    if not isinstance(body, dict):
        return _MISSING
    pagination = body.get("pagination")
    if not isinstance(pagination, dict):
        return _MISSING
    total = pagination.get("total_items")
    if isinstance(total, bool) or not isinstance(total, int):
        return _MISSING
    return total
