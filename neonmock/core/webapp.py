"""FastAPI app serving a scenario as a standalone SQL-over-HTTP endpoint."""

from __future__ import annotations

import argparse
import logging
import threading
from typing import Any, Callable, Literal

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import Response
from pydantic import BaseModel

from neonmock.core.config import EndpointSettings, Settings, load_settings, resolve_dir
from neonmock.core.observability import JSONLQueryLogger, QueryObservationSink
from neonmock.core.scenario import MockScenario, YamlScenarioLoader
from neonmock.integrations.fetch_interceptor import FetchInterceptor, MockRequest


LOGGER = logging.getLogger(__name__)

ScenarioFactory = Callable[[], MockScenario]


class TableSnapshotResponse(BaseModel):
    table: str
    fields: list[dict[str, Any]]
    rows: list[dict[str, Any]]


class ResetResponse(BaseModel):
    status: Literal["reset"]
    scenario_id: str


class UnmatchedResponse(BaseModel):
    unmatched: list[str]


class ScenarioHolder:
    """Thread-safe holder for the scenario currently being served."""

    def __init__(
        self,
        factory: ScenarioFactory,
        endpoint: EndpointSettings,
        logger: QueryObservationSink | None = None,
    ) -> None:
        self._factory = factory
        self._endpoint = endpoint
        self._logger = logger
        self._lock = threading.Lock()
        self._scenario, self._interceptor = self._build()

    def _build(self) -> tuple[MockScenario, FetchInterceptor]:
        scenario = self._factory()
        return scenario, FetchInterceptor.for_scenario(scenario, self._endpoint, logger=self._logger)

    def reset(self) -> MockScenario:
        scenario, interceptor = self._build()
        with self._lock:
            self._scenario = scenario
            self._interceptor = interceptor
        return scenario

    @property
    def scenario(self) -> MockScenario:
        with self._lock:
            return self._scenario

    @property
    def interceptor(self) -> FetchInterceptor:
        with self._lock:
            return self._interceptor


async def _read_body(request: Request) -> bytes:
    return await request.body()


def create_app(
    scenario_factory: ScenarioFactory,
    settings: Settings | None = None,
    *,
    logger: QueryObservationSink | None = None,
) -> FastAPI:
    settings = settings or Settings()
    # Served failures become responses; the route already scopes to /sql.
    endpoint = EndpointSettings(
        url_pattern="*",
        strict=False,
        failure_status=settings.endpoint.failure_status,
    )
    holder = ScenarioHolder(scenario_factory, endpoint, logger)
    LOGGER.info("Serving scenario %s", holder.scenario.scenario_id)

    app = FastAPI(title="Neon SQL Mock", version="0.1.0")
    app.state.settings = settings
    app.state.holder = holder

    @app.post("/sql")
    def run_sql(request: Request, body: bytes = Depends(_read_body)) -> Response:
        mock_request = MockRequest(
            url=str(request.url),
            method=request.method,
            headers=dict(request.headers),
            body=body,
        )
        result = holder.interceptor.handle(mock_request)
        if result is None:  # pragma: no cover - url_pattern is "*"
            raise HTTPException(status_code=404, detail="Not a SQL request")
        return Response(content=result.body, status_code=result.status, headers=result.headers)

    @app.get("/api/health")
    def healthcheck() -> dict[str, str]:  # pragma: no cover - trivial
        return {"status": "ok"}

    @app.get("/api/tables/{name}", response_model=TableSnapshotResponse)
    def table_snapshot(name: str) -> TableSnapshotResponse:
        LOGGER.debug("Table snapshot requested for %s", name)
        try:
            table = holder.scenario.table(name)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=f"Unknown table '{name}'") from exc
        return TableSnapshotResponse(table=name, fields=table.schema.fields(), rows=table.rows)

    @app.get("/api/unmatched", response_model=UnmatchedResponse)
    def unmatched_queries() -> UnmatchedResponse:
        return UnmatchedResponse(unmatched=list(holder.scenario.registry.unmatched))

    @app.post("/api/reset", response_model=ResetResponse)
    def reset_scenario() -> ResetResponse:
        scenario = holder.reset()
        LOGGER.info("Scenario %s reset", scenario.scenario_id)
        return ResetResponse(status="reset", scenario_id=scenario.scenario_id)

    return app


def _configure_logging(debug: bool) -> None:
    root_logger = logging.getLogger()
    if root_logger.handlers:
        if debug:
            root_logger.setLevel(logging.DEBUG)
        return
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
    )


def main() -> None:
    parser = argparse.ArgumentParser(description="Serve a mocked SQL-over-HTTP endpoint")
    parser.add_argument("--config", default=None, help="Path to configuration file")
    parser.add_argument("--scenario", required=True, help="Scenario name to serve")
    parser.add_argument("--scenarios-dir", default=None, help="Directory containing scenario YAML files")
    parser.add_argument("--host", default=None, help="Interface to bind the server")
    parser.add_argument("--port", type=int, default=None, help="Port to bind the server")
    parser.add_argument("--debug", action="store_true", help="Log every intercepted query")
    args = parser.parse_args()

    _configure_logging(debug=args.debug)
    settings = load_settings(args.config)
    scenarios_dir = resolve_dir(args.scenarios_dir or settings.paths.scenarios_dir, "assets/scenarios")
    loader = YamlScenarioLoader(base_dir=scenarios_dir)
    logger = None
    if settings.paths.query_logs_dir:
        logger = JSONLQueryLogger(base_dir=resolve_dir(settings.paths.query_logs_dir, "logs/query"))

    app = create_app(lambda: loader.load(args.scenario), settings, logger=logger)

    try:
        import uvicorn
    except ImportError as exc:  # pragma: no cover
        raise SystemExit("uvicorn must be installed to run the mock endpoint") from exc

    host = args.host or settings.server.host
    port = args.port or settings.server.port
    LOGGER.info("Starting uvicorn on %s:%s (scenario=%s)", host, port, args.scenario)
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
