"""HTTP client for a remote task API.

Endpoints:
    GET    /api/tasks               -> {"success": true, "data": {"work": [...], "personal": [...]}}
    POST   /api/tasks/{kind}        -> {"success": true, "data": record}
    PATCH  /api/tasks/{kind}/{id}   -> {"success": true, "data": record}
    DELETE /api/tasks/{kind}/{id}   -> {"success": true, "data": record}
"""

from typing import Any, Optional, Sequence

import httpx
import structlog

from cli.retry import store_retry
from matching.errors import RecordValidationError
from matching.models import CandidateRecord, parse_record, parse_snapshot
from shared_types import RecordKind

from .base import RecordNotFoundError, RecordPatch, RecordStore, StoreError, check_kind, patch_to_store

logger = structlog.get_logger().bind(source="http_store")

# Connection-level failures only
TRANSIENT_ERRORS = (httpx.TransportError,)


class HttpRecordStore(RecordStore):
    """Record store backed by a remote task API."""

    def __init__(
        self,
        base_url: str = "http://localhost:3000",
        timeout: float = 10.0,
        max_attempts: int = 3,
        min_wait: float = 0.5,
        max_wait: float = 5.0,
        client: Optional[httpx.Client] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.client = client or httpx.Client(timeout=timeout)
        self._send = store_retry(
            max_attempts=max_attempts,
            min_wait=min_wait,
            max_wait=max_wait,
            exceptions=TRANSIENT_ERRORS,
        )(self._request)

    def _request(self, method: str, path: str, json: Optional[dict] = None) -> httpx.Response:
        return self.client.request(method, f"{self.base_url}{path}", json=json)

    def _call(self, method: str, path: str, json: Optional[dict] = None) -> Any:
        """Send a request and unwrap the data envelope.

        Raises:
            RecordNotFoundError: 404 from the API
            StoreError: transport failure, error status, or malformed body
        """
        try:
            response = self._send(method, path, json=json)
        except httpx.HTTPError as e:
            logger.warning("store_unreachable", method=method, path=path, error=str(e))
            raise StoreError(f"Task API unreachable: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if response.status_code == 404:
            raise RecordNotFoundError(body.get("error") or f"Not found: {path}")
        if response.status_code >= 400 or body.get("success") is False:
            error = body.get("error") or f"HTTP {response.status_code}"
            logger.warning("store_rejected", method=method, path=path, status=response.status_code, error=error)
            raise StoreError(f"Task API error: {error}")
        if "data" not in body:
            raise StoreError(f"Task API response for {method} {path} has no data")
        return body["data"]

    def _record(self, data: Any, kind: RecordKind) -> CandidateRecord:
        try:
            return parse_record(data, kind)
        except RecordValidationError as e:
            raise StoreError(str(e)) from e

    def fetch_all(self) -> dict[RecordKind, list[CandidateRecord]]:
        data = self._call("GET", "/api/tasks")
        try:
            return parse_snapshot(data)
        except RecordValidationError as e:
            raise StoreError(str(e)) from e

    def create(self, kind: RecordKind | str, text: str, sub_items: Sequence[str] = ()) -> CandidateRecord:
        kind = check_kind(kind)
        body: dict = {"text": text}
        if sub_items:
            body["subItems"] = list(sub_items)
        return self._record(self._call("POST", f"/api/tasks/{kind}", json=body), kind)

    def mutate(self, kind: RecordKind | str, record_id: str, patch: RecordPatch) -> CandidateRecord:
        kind = check_kind(kind)
        data = self._call("PATCH", f"/api/tasks/{kind}/{record_id}", json=patch_to_store(patch))
        return self._record(data, kind)

    def delete(self, kind: RecordKind | str, record_id: str) -> CandidateRecord:
        kind = check_kind(kind)
        return self._record(self._call("DELETE", f"/api/tasks/{kind}/{record_id}"), kind)

    def close(self) -> None:
        self.client.close()
