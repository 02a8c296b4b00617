"""Intercepts SQL-over-HTTP requests and answers them from the query registry.

Requests follow the serverless driver's protocol: a ``POST`` to ``/sql`` whose
JSON body is ``{"query": str, "params": [...]}``, or ``{"queries": [...]}``
for a batch. Anything else is passed through untouched (``handle`` returns
``None``) so the host's own network layer can deal with it.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from typing import TYPE_CHECKING, Any, Mapping

from neonmock.core.config import EndpointSettings
from neonmock.core.encoder import to_json
from neonmock.core.errors import MockHarnessError, MockRequestError, UnmatchedQueryError
from neonmock.core.observability import QueryObservationSink
from neonmock.core.registry import QueryHandler, QueryRegistry
from neonmock.core.table import VirtualTable

if TYPE_CHECKING:  # pragma: no cover
    from neonmock.core.scenario import MockScenario


LOGGER = logging.getLogger(__name__)

JSON_HEADERS = {"content-type": "application/json"}


@dataclass(slots=True)
class MockRequest:
    url: str
    method: str = "POST"
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes | str | None = None


@dataclass(slots=True)
class MockResponse:
    status: int
    body: bytes
    headers: dict[str, str] = field(default_factory=lambda: dict(JSON_HEADERS))

    @property
    def text(self) -> str:
        return self.body.decode("utf-8")

    def json(self) -> Any:
        return json.loads(self.body)


@dataclass(slots=True)
class ParsedStatement:
    sql: str
    params: list[Any]


def parse_body(body: bytes | str | None) -> tuple[list[ParsedStatement], bool]:
    """Return the statements in *body* and whether it was a batch request."""

    if body is None or body in (b"", ""):
        raise MockRequestError("Request body is empty")
    try:
        payload = json.loads(body)
    except (TypeError, ValueError) as exc:
        raise MockRequestError(f"Request body is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise MockRequestError("Request body must be a JSON object")

    if "queries" in payload:
        entries = payload["queries"]
        if not isinstance(entries, list) or not entries:
            raise MockRequestError("'queries' must be a non-empty list")
        return [_parse_statement(entry) for entry in entries], True
    return [_parse_statement(payload)], False


def _parse_statement(entry: Any) -> ParsedStatement:
    if not isinstance(entry, dict):
        raise MockRequestError("Each query must be a JSON object")
    sql = entry.get("query")
    if not isinstance(sql, str) or not sql:
        raise MockRequestError("Missing 'query' text in request body")
    params = entry.get("params")
    if params is None:
        params = []
    if not isinstance(params, list):
        raise MockRequestError("'params' must be a list")
    return ParsedStatement(sql=sql, params=params)


class FetchInterceptor:
    """Answers requests aimed at the mocked endpoint from a :class:`QueryRegistry`.

    In strict mode (the default) harness errors are raised to the caller; with
    ``strict=False`` they become a failure response carrying the message and the
    verbatim SQL. Either way every failure is also kept in :attr:`failures`.
    """

    def __init__(
        self,
        registry: QueryRegistry,
        settings: EndpointSettings | None = None,
        *,
        logger: QueryObservationSink | None = None,
        scenario_id: str = "default",
    ) -> None:
        self.registry = registry
        self.settings = settings or EndpointSettings()
        self.logger = logger
        self.scenario_id = scenario_id
        self.failures: list[MockHarnessError] = []

    @classmethod
    def from_handlers(
        cls,
        table: VirtualTable,
        handlers: Mapping[str, QueryHandler],
        settings: EndpointSettings | None = None,
        **kwargs: Any,
    ) -> FetchInterceptor:
        """Build an interceptor from a ``{sql: handler}`` mapping on one table."""

        registry = QueryRegistry()
        for sql, handler in handlers.items():
            registry.register(sql, table, handler)
        return cls(registry, settings, **kwargs)

    @classmethod
    def for_scenario(
        cls,
        scenario: MockScenario,
        settings: EndpointSettings | None = None,
        *,
        logger: QueryObservationSink | None = None,
    ) -> FetchInterceptor:
        """Build an interceptor over a scenario's registry, tagged with its id."""

        return cls(scenario.registry, settings, logger=logger, scenario_id=scenario.scenario_id)

    def __call__(self, request: MockRequest) -> MockResponse | None:
        return self.handle(request)

    def matches(self, request: MockRequest) -> bool:
        if request.method.upper() != "POST":
            return False
        url = request.url.split("?", 1)[0].split("#", 1)[0]
        return fnmatchcase(url, self.settings.url_pattern)

    def handle(self, request: MockRequest) -> MockResponse | None:
        if not self.matches(request):
            LOGGER.debug("Passing through %s %s", request.method, request.url)
            return None

        try:
            statements, batch = parse_body(request.body)
        except MockRequestError as exc:
            self._log("request_rejected", {"url": request.url, "error": str(exc)})
            return self._fail(exc, sql=None)

        results = []
        for statement in statements:
            self._log("query_received", {"sql": statement.sql, "params": statement.params})
            try:
                body = self.registry.execute(statement.sql, statement.params)
            except MockHarnessError as exc:
                event = "query_unmatched" if isinstance(exc, UnmatchedQueryError) else "query_failed"
                self._log(event, {"sql": statement.sql, "params": statement.params, "error": str(exc)})
                return self._fail(exc, sql=statement.sql)
            self._log(
                "query_executed",
                {"sql": statement.sql, "command": body["command"], "row_count": body["rowCount"], "status": 200},
            )
            results.append(body)

        payload: dict[str, Any] = {"results": results} if batch else results[0]
        return MockResponse(status=200, body=to_json(payload).encode("utf-8"))

    def assert_clean(self) -> None:
        """Raise the first recorded failure, if any."""

        if self.failures:
            raise self.failures[0]

    def _fail(self, exc: MockHarnessError, sql: str | None) -> MockResponse:
        self.failures.append(exc)
        if self.settings.strict:
            raise exc
        LOGGER.warning("Answering with failure response: %s", exc)
        body: dict[str, Any] = {"message": str(exc)}
        if sql is not None:
            body["query"] = sql
        return MockResponse(
            status=self.settings.failure_status,
            body=json.dumps(body, ensure_ascii=False).encode("utf-8"),
        )

    def _log(self, event: str, payload: dict[str, Any]) -> None:
        LOGGER.debug("%s %s", event, payload.get("sql", ""))
        if self.logger is not None:
            self.logger.log_event(self.scenario_id, event, payload)


__all__ = [
    "FetchInterceptor",
    "MockRequest",
    "MockResponse",
    "ParsedStatement",
    "parse_body",
]
