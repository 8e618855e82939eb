"""HTTP provisioning backend.

POSTs each wave of operations as JSON to ``<endpoint>/operations`` and reads
back one result per operation.  The payload schema mirrors
ProvisioningOperation so a provisioner can parse it without stackplan.

Request body::

    {"operations": [{"index": 0, "name": "vpc", "kind": "network",
                     "operation": "create", "dependencies": [], "payload": {...}}]}

Response body::

    {"results": [{"index": 0, "success": true, "resource_id": "vpc-0abc"}]}
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from stackplan.backends.base import ProvisioningBackend
from stackplan.errors import BackendFailureError
from stackplan.models.plan import OperationResult, ProvisioningOperation

_log = structlog.get_logger(component="backends.http")


class HttpBackend(ProvisioningBackend):
    """Delivers operations to a remote provisioner over HTTP.

    Args:
        endpoint: Base URL of the provisioner API.
        headers:  Optional extra headers (e.g. Authorization).
        timeout:  HTTP request timeout in seconds. Defaults to 30.
        client:   Pre-built httpx.Client, mainly for tests.
    """

    def __init__(
        self,
        endpoint: str,
        headers: dict[str, str] | None = None,
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        if not endpoint:
            raise ValueError("Backend endpoint must not be empty")
        self._url = endpoint.rstrip("/") + "/operations"
        self._headers = headers or {}
        self._timeout = timeout
        self._client = client

    @property
    def name(self) -> str:
        return "http"

    def apply(self, ops: list[ProvisioningOperation]) -> list[OperationResult]:
        payload = {"operations": [op.to_dict() for op in ops]}
        request_headers = {"Content-Type": "application/json", **self._headers}
        first = ops[0].index if ops else None

        try:
            if self._client is not None:
                response = self._client.post(self._url, json=payload, headers=request_headers)
            else:
                with httpx.Client(timeout=self._timeout) as client:
                    response = client.post(self._url, json=payload, headers=request_headers)
        except httpx.TimeoutException as exc:
            _log.warning("backend_request_timeout", url=self._url)
            raise BackendFailureError(f"Provisioner timed out: {exc}", index=first) from exc
        except httpx.HTTPError as exc:
            _log.warning("backend_http_error", url=self._url, error=str(exc))
            raise BackendFailureError(f"Provisioner request failed: {exc}", index=first) from exc

        if not response.is_success:
            _log.warning("backend_non_2xx_response", status_code=response.status_code, body=response.text[:200])
            raise BackendFailureError(f"Provisioner returned HTTP {response.status_code}", index=first)

        try:
            return [self._parse_result(entry) for entry in response.json()["results"]]
        except (ValueError, KeyError, TypeError) as exc:
            raise BackendFailureError(f"Malformed provisioner response: {exc}", index=first) from exc

    @staticmethod
    def _parse_result(entry: dict[str, Any]) -> OperationResult:
        return OperationResult(
            index=int(entry["index"]),
            success=bool(entry["success"]),
            resource_id=entry.get("resource_id"),
            error=entry.get("error"),
        )
