"""FastAPI service for starting k6 runs and serving their summaries.

Endpoints:
  POST   /api/run-test            start a k6 run in the background
  GET    /api/result/{test_id}    stored summary (404 until the run finishes)
  GET    /api/results             ids of all stored summaries
  GET    /api/history             all runs with results, newest first
  DELETE /api/delete/{test_id}    remove a run's summary, raw output and script
  GET    /api/statistics          totals across all runs
  GET    /api/download/{test_id}  HTML report
  GET    /api/errorcodes          redirect to the static error-code table

The summaries are computed by loadtest_core when a run ends; this API only
reads them back.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles

from loadtest.config import LoadTestSettings
from loadtest.models import (
    ErrorResponse,
    HistoryResponse,
    MessageResponse,
    ResultsResponse,
    RunTestResponse,
    StatisticsResponse,
    StoredSummary,
    TestConfig,
)
from loadtest.report import render_report
from loadtest.runner import K6Runner
from loadtest.storage import ResultStore, SummaryNotFoundError

logger = logging.getLogger("loadtest.api")

NOT_READY = "Test results not ready yet. Please wait a moment."


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(by_alias=True),
    )


def _store(request: Request) -> ResultStore:
    return request.app.state.store


def _runner(request: Request) -> K6Runner:
    return request.app.state.runner


def create_app(settings: LoadTestSettings | None = None) -> FastAPI:
    """Build the API with its own store and runner."""
    settings = settings or LoadTestSettings()
    store = ResultStore(results_dir=settings.results_dir, scripts_dir=settings.scripts_dir)
    runner = K6Runner(settings, store)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store.ensure_dirs()
        logger.info("Results in %s, scripts in %s", settings.results_dir, settings.scripts_dir)
        yield
        if runner.active:
            logger.warning("Shutting down with %d k6 run(s) still in progress", runner.active)

    app = FastAPI(title="k6 Load Testing", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store
    app.state.runner = runner

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Error handling %s %s", request.method, request.url.path, exc_info=exc)
        return _error(500, str(exc))

    @app.post("/api/run-test")
    async def run_test(config: TestConfig, request: Request) -> RunTestResponse:
        test_id = _runner(request).start(config)
        return RunTestResponse(test_id=test_id)

    @app.get("/api/result/{test_id}", response_model=StoredSummary)
    async def get_result(test_id: str, request: Request):
        try:
            return _store(request).get(test_id)
        except SummaryNotFoundError:
            return _error(404, NOT_READY)

    @app.get("/api/results")
    async def list_results(request: Request) -> ResultsResponse:
        return ResultsResponse(results=_store(request).list_ids())

    @app.get("/api/history")
    async def history(request: Request) -> HistoryResponse:
        return HistoryResponse(tests=_store(request).history())

    @app.delete("/api/delete/{test_id}", response_model=MessageResponse)
    async def delete_test(test_id: str, request: Request):
        try:
            _store(request).delete(test_id)
        except SummaryNotFoundError:
            return _error(404, f"Unknown test id {test_id}")
        return MessageResponse(message=f"Test {test_id} deleted successfully")

    @app.get("/api/statistics")
    async def statistics(request: Request) -> StatisticsResponse:
        return StatisticsResponse(statistics=_store(request).statistics())

    @app.get("/api/download/{test_id}", response_class=HTMLResponse)
    async def download(test_id: str, request: Request):
        try:
            summary = _store(request).get(test_id)
        except SummaryNotFoundError:
            return _error(404, NOT_READY)
        return HTMLResponse(
            render_report(summary),
            headers={"Content-Disposition": f"attachment; filename=report-{test_id}.html"},
        )

    @app.get("/api/errorcodes")
    async def error_codes() -> RedirectResponse:
        return RedirectResponse("../errorcodes.json")

    if settings.static_dir is not None and settings.static_dir.is_dir():
        app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="static")

    return app
