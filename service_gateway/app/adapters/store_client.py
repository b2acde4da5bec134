"""
Relational store client for Gateway.

Speaks the PostgREST dialect exposed by the backend-as-a-service under
``/rest/v1``: one collection per path, ``select`` for columns and relation
expansion, ``<column>=eq.<value>`` filters and ``order=<column>.<direction>``.
"""

from dataclasses import dataclass
import time
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import httpx

from shared.logging import get_logger
from shared.metrics import MetricsCollector

# PostgREST: singular response requested but zero or several rows matched
SINGLE_ROW_MISMATCH = "PGRST116"
# Postgres: filter value could not be cast to the column type
INVALID_TEXT_REPRESENTATION = "22P02"

OBJECT_MEDIA_TYPE = "application/vnd.pgrst.object+json"

Rows = Union[Dict[str, Any], List[Dict[str, Any]]]


@dataclass(frozen=True)
class StoreFailure:
    """A failure reported by, or while reaching, the store."""

    message: str
    code: Optional[str] = None
    status_code: Optional[int] = None
    details: Optional[str] = None

    @property
    def is_not_found(self) -> bool:
        """True when a single-row request did not resolve to exactly one row."""
        return self.code in (SINGLE_ROW_MISMATCH, INVALID_TEXT_REPRESENTATION)


@dataclass(frozen=True)
class StoreResult:
    """Outcome of one store operation: either ``data`` or ``error``."""

    data: Any = None
    error: Optional[StoreFailure] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class StoreClient:
    """Client for scoped operations against the relational store."""

    REST_PATH = "/rest/v1"

    def __init__(self, base_url: str, service_key: str, client: httpx.AsyncClient,
                 metrics: Optional[MetricsCollector] = None):
        self.base_url = base_url.rstrip('/')
        self.service_key = service_key
        self.client = client
        self.metrics = metrics
        self.logger = get_logger("gateway.store_client")

    async def select(self, table: str, columns: str = "*", *,
                     filters: Optional[Mapping[str, Any]] = None,
                     order: Optional[Tuple[str, bool]] = None,
                     single: bool = False) -> StoreResult:
        """Read rows, optionally filtered by equality and ordered.

        ``order`` is a ``(column, ascending)`` pair.
        """
        params = self._filter_params(filters)
        params["select"] = columns
        if order is not None:
            column, ascending = order
            params["order"] = f"{column}.{'asc' if ascending else 'desc'}"

        return await self._execute("GET", table, "select", params=params, single=single)

    async def insert(self, table: str, rows: Rows, *, returning: bool = False,
                     single: bool = False) -> StoreResult:
        """Insert one or more rows, optionally returning the created row(s)."""
        params = {"select": "*"} if returning else {}
        return await self._execute(
            "POST", table, "insert",
            params=params, json=rows, returning=returning, single=single
        )

    async def update(self, table: str, values: Dict[str, Any], *,
                     filters: Mapping[str, Any], returning: bool = False,
                     single: bool = False) -> StoreResult:
        """Update the rows matching every filter."""
        params = self._filter_params(filters)
        if returning:
            params["select"] = "*"
        return await self._execute(
            "PATCH", table, "update",
            params=params, json=values, returning=returning, single=single
        )

    async def delete(self, table: str, *, filters: Mapping[str, Any]) -> StoreResult:
        """Delete the rows matching every filter."""
        return await self._execute("DELETE", table, "delete", params=self._filter_params(filters))

    async def ping(self) -> bool:
        """Check that the store answers at all."""
        try:
            response = await self.client.request(
                "GET", f"{self.base_url}{self.REST_PATH}/", headers=self._headers()
            )
        except httpx.HTTPError as e:
            self.logger.warning("Store ping failed", error=str(e))
            return False
        return response.status_code < 500

    def _headers(self, single: bool = False) -> Dict[str, str]:
        headers = {
            "apikey": self.service_key,
            "Authorization": f"Bearer {self.service_key}",
        }
        if single:
            headers["Accept"] = OBJECT_MEDIA_TYPE
        return headers

    @staticmethod
    def _filter_params(filters: Optional[Mapping[str, Any]]) -> Dict[str, str]:
        return {column: f"eq.{value}" for column, value in (filters or {}).items()}

    async def _execute(self, method: str, table: str, operation: str, *,
                       params: Dict[str, str], json: Any = None,
                       returning: bool = False, single: bool = False) -> StoreResult:
        """Issue one request and fold every outcome into a ``StoreResult``."""
        url = f"{self.base_url}{self.REST_PATH}/{table}"
        headers = self._headers(single=single)
        if method != "GET":
            headers["Prefer"] = "return=representation" if returning else "return=minimal"
        start_time = time.time()

        try:
            response = await self.client.request(
                method,
                url,
                params=params,
                json=json,
                headers=headers
            )
            result = self._to_result(response)
        except httpx.HTTPError as e:
            self.logger.error("Store HTTP error", table=table, operation=operation, error=str(e))
            result = StoreResult(error=StoreFailure(message=str(e)))
        except ValueError as e:
            self.logger.error("Store returned invalid JSON", table=table, operation=operation, error=str(e))
            result = StoreResult(error=StoreFailure(message=str(e)))

        self._record(table, operation, result, time.time() - start_time)
        return result

    def _to_result(self, response: httpx.Response) -> StoreResult:
        if response.is_success:
            data = response.json() if response.content else None
            return StoreResult(data=data)

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        failure = StoreFailure(
            message=body.get("message") or response.text or f"Unexpected status {response.status_code}",
            code=body.get("code"),
            status_code=response.status_code,
            details=body.get("details"),
        )
        self.logger.debug(
            "Store reported failure",
            status_code=response.status_code,
            code=failure.code,
            message=failure.message
        )
        return StoreResult(error=failure)

    def _record(self, table: str, operation: str, result: StoreResult, duration: float):
        if self.metrics is None:
            return
        self.metrics.record_store_operation(table, operation, "ok" if result.ok else "error")
        self.metrics.observe_store_duration(table, operation, duration)
