"""FastAPI JSON surface for the HomeCare records core.

The endpoints mirror the screens of the dashboard: one table per collection
with add/edit/delete, the dashboard and meal summaries, finance, settings and
the data management actions (export, import, reset). No HTML is rendered here.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Callable, Dict, Optional

from fastapi import Body, FastAPI, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response

from ..charts import dashboard_charts, load_backend, render_charts
from ..config import LOG_PATH, SQLITE_FILE_NAME
from ..exceptions import (
    CollectionError,
    HomeCareError,
    ImportFileError,
    RecordNotFoundError,
    RecordValidationError,
    SettingsError,
    StorageError,
)
from ..forms import build_record
from ..ops import StructuredLogger
from ..persistence import StateStore
from ..queries import (
    currency_code,
    dashboard_summary,
    filter_records,
    finance_summary,
    meal_projections,
    meal_totals,
    search,
)
from ..repository import StateRepository

STATUS_BY_ERROR: Dict[type, int] = {
    RecordValidationError: 422,
    ImportFileError: 400,
    CollectionError: 400,
    SettingsError: 400,
    RecordNotFoundError: 404,
    StorageError: 503,
}


def default_repository() -> StateRepository:
    logger = StructuredLogger(path=LOG_PATH or None)
    return StateRepository(StateStore.from_path(SQLITE_FILE_NAME, logger=logger))


def _error_status(exc: HomeCareError) -> int:
    for error_type, status in STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            return status
    return 500


def create_app(
    repository: Optional[StateRepository] = None,
    *,
    today: Callable[[], date] = date.today,
) -> FastAPI:
    repo = repository or default_repository()
    app = FastAPI(title="HomeCare")
    app.state.repository = repo

    @app.exception_handler(HomeCareError)
    async def handle_homecare_error(request: Request, exc: HomeCareError) -> JSONResponse:
        content: Dict[str, Any] = {"detail": str(exc)}
        if isinstance(exc, RecordValidationError):
            content["missing"] = list(exc.missing)
        elif isinstance(exc, SettingsError):
            content["unknown"] = list(exc.unknown)
        return JSONResponse(status_code=_error_status(exc), content=content)

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------
    @app.get("/api/state")
    def read_state() -> Dict[str, Any]:
        return repo.snapshot()

    @app.get("/api/collections/{name}")
    def list_records(
        name: str,
        q: str = Query(""),
        child: str = Query(""),
        status: str = Query(""),
        kind: str = Query("", alias="type"),
    ) -> list:
        return filter_records(repo.collection(name), q, child=child, status=status, type=kind)

    @app.get("/api/collections/{name}/{record_id}")
    def read_record(name: str, record_id: str) -> Dict[str, Any]:
        return repo.get(name, record_id)

    @app.post("/api/collections/{name}")
    def save_record(name: str, payload: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
        return repo.upsert(name, build_record(name, payload))

    @app.delete("/api/collections/{name}/{record_id}")
    def delete_record(name: str, record_id: str) -> Dict[str, Any]:
        repo.remove_by_id(name, record_id)
        return {"ok": True}

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------
    @app.get("/api/dashboard")
    def dashboard() -> Dict[str, Any]:
        state = repo.snapshot()
        summary = dashboard_summary(state, today())
        specs = dashboard_charts(summary)
        rendered = render_charts(specs, load_backend(), logger=repo.logger)
        return {
            "currency": currency_code(state),
            "summary": jsonable_encoder(summary.to_dict()),
            "charts": [jsonable_encoder(spec) for spec in specs],
            "charts_rendered": bool(rendered),
        }

    @app.get("/api/meals/summary")
    def meals_summary() -> Dict[str, Any]:
        state = repo.snapshot()
        return jsonable_encoder({"rows": meal_projections(state), "total": meal_totals(state)})

    @app.get("/api/search")
    def global_search(q: str = Query("")) -> Dict[str, Any]:
        return search(repo.snapshot(), q)

    # ------------------------------------------------------------------
    # Finance and settings
    # ------------------------------------------------------------------
    @app.get("/api/finance")
    def finance() -> Dict[str, Any]:
        state = repo.snapshot()
        return jsonable_encoder({**finance_summary(state), "expenses": repo.expenses()})

    @app.post("/api/finance/expenses")
    def add_expense(payload: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
        record = build_record("expenses", payload)
        return repo.add_expense(record["desc"], record["amount"], on=today())

    @app.get("/api/settings")
    def read_settings() -> Dict[str, Any]:
        return repo.settings()

    @app.put("/api/settings")
    def write_settings(payload: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
        changes = {key: value.strip() if isinstance(value, str) else value for key, value in payload.items()}
        return repo.update_settings(changes)

    # ------------------------------------------------------------------
    # Data management
    # ------------------------------------------------------------------
    @app.get("/api/export")
    def export_state() -> Response:
        filename = repo.export_filename()
        return Response(
            content=repo.export_json(),
            media_type="application/json",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @app.post("/api/import")
    async def import_state(request: Request) -> Dict[str, Any]:
        body = await request.body()
        state = await run_in_threadpool(repo.import_json, body)
        return {"ok": True, "collections": {key: len(value) for key, value in state.items() if isinstance(value, list)}}

    @app.post("/api/reset")
    def reset_state() -> Dict[str, Any]:
        state = repo.reset()
        return {"ok": True, "children": len(state["children"])}

    return app


__all__ = ["create_app", "default_repository"]
