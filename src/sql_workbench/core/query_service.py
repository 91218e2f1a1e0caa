"""Query backend client for SQL Workbench.

QueryService is the contract the execution core needs from the REST
backend. HttpQueryService implements it over httpx.AsyncClient and maps
transport problems onto the WorkbenchError hierarchy.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from sql_workbench.core.exceptions import NetworkError, QueryServiceError, TimeoutError
from sql_workbench.core.logging import get_logger
from sql_workbench.core.models import (
    ConfirmationRequired,
    ConnectionStatus,
    QueryFailure,
    QueryResult,
    SchemaInfo,
)

if TYPE_CHECKING:
    from sql_workbench.core.config import ResolvedConfig
    from sql_workbench.core.models import ExecuteResponse


@runtime_checkable
class QueryService(Protocol):
    """Backend operations consumed by the execution core."""

    async def test_connection(self) -> ConnectionStatus: ...

    async def execute_query(
        self, query: str, database: str | None, confirm_destructive: bool
    ) -> ExecuteResponse: ...

    async def get_schema(self, database: str) -> SchemaInfo: ...


def parse_execute_response(payload: Any) -> ExecuteResponse:
    """Classify a decoded /api/execute body.

    Raises QueryServiceError when the body matches none of the three shapes.
    """
    if not isinstance(payload, dict):
        msg = f"Unexpected execute response: {payload!r}"
        raise QueryServiceError(msg)
    try:
        if payload.get("requires_confirmation"):
            return ConfirmationRequired.model_validate(payload)
        if payload.get("success") is True:
            return QueryResult.model_validate(payload)
        if payload.get("success") is False:
            return QueryFailure.model_validate(payload)
    except ValidationError as e:
        raise QueryServiceError(f"Malformed execute response: {e}") from e
    msg = f"Unexpected execute response: {payload!r}"
    raise QueryServiceError(msg)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("error", "detail", "message"):
            if isinstance(body.get(key), str) and body[key]:
                return body[key]
    return f"Backend returned HTTP {response.status_code}"


class HttpQueryService:
    """Async REST client for the query backend."""

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_config(cls, config: ResolvedConfig) -> HttpQueryService:
        return cls(config.url, token=config.token, timeout=config.timeout)

    async def __aenter__(self) -> HttpQueryService:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        log = get_logger("query_service", path=path)
        log.debug("backend request", method=method)
        start_time = time.monotonic()
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            msg = f"Request to {self.base_url}{path} timed out after {self.timeout}s"
            raise TimeoutError(msg) from e
        except httpx.TransportError as e:
            msg = f"Cannot reach query backend at {self.base_url}: {e}"
            raise NetworkError(msg) from e
        duration_ms = (time.monotonic() - start_time) * 1000
        log.debug(
            "backend response",
            status=response.status_code,
            duration_ms=f"{duration_ms:.1f}",
        )
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            msg = f"Backend returned invalid JSON (HTTP {response.status_code})"
            raise QueryServiceError(msg) from e

    async def test_connection(self) -> ConnectionStatus:
        response = await self._request("GET", "/api/test-connection")
        if response.is_error:
            return ConnectionStatus(connected=False, error=_error_message(response))
        try:
            return ConnectionStatus.model_validate(self._json(response))
        except ValidationError as e:
            raise QueryServiceError(f"Malformed connection status: {e}") from e

    async def execute_query(
        self, query: str, database: str | None, confirm_destructive: bool
    ) -> ExecuteResponse:
        response = await self._request(
            "POST",
            "/api/execute",
            json={
                "query": query,
                "database": database,
                "confirm_destructive": confirm_destructive,
            },
        )
        if response.is_error:
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict) and body.get("success") is False:
                return parse_execute_response(body)
            raise QueryServiceError(_error_message(response))
        return parse_execute_response(self._json(response))

    async def get_schema(self, database: str) -> SchemaInfo:
        response = await self._request("GET", f"/api/schema/{quote(database, safe='')}")
        if response.is_error:
            raise QueryServiceError(_error_message(response))
        try:
            return SchemaInfo.model_validate(self._json(response))
        except ValidationError as e:
            raise QueryServiceError(f"Malformed schema response: {e}") from e
