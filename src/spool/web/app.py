"""Read-only web browser over the materialized task state."""

import uvicorn
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import HTMLResponse, JSONResponse
from starlette.routing import Route

from spool.core import index as index_mod
from spool.core import queries as queries_mod
from spool.core import state as state_mod
from spool.core import validate as validate_mod
from spool.errors import ParseError, TaskNotFound
from spool.store.context import SpoolContext
from spool.web.dashboard import get_dashboard_html


def create_app(ctx: SpoolContext) -> Starlette:
    # ── Handlers ──────────────────────────────────────────────────────────────

    async def index(request: Request):
        return HTMLResponse(get_dashboard_html())

    async def api_list_tasks(request: Request):
        status = request.query_params.get("status", "open")
        try:
            state = state_mod.load_or_materialize_state(ctx)
        except ParseError as e:
            return _parse_error(e)
        tasks = queries_mod.list_tasks(
            state,
            status,
            assignee=request.query_params.get("assignee"),
            tag=request.query_params.get("tag"),
            priority=request.query_params.get("priority"),
        )
        return JSONResponse([t.to_dict() for t in queries_mod.board_order(tasks)])

    async def api_get_task(request: Request):
        task_id = request.path_params["task_id"]
        try:
            task = queries_mod.get_task(state_mod.load_or_materialize_state(ctx), task_id)
        except TaskNotFound:
            return JSONResponse({"error": "Task not found"}, status_code=404)
        except ParseError as e:
            return _parse_error(e)
        return JSONResponse(task.to_dict())

    async def api_index(request: Request):
        try:
            return JSONResponse(index_mod.load_or_build_index(ctx).to_dict())
        except ParseError as e:
            return _parse_error(e)

    async def api_validate(request: Request):
        result = validate_mod.validate(ctx)
        return JSONResponse({"errors": result.errors, "warnings": result.warnings})

    routes = [
        Route("/", index),
        Route("/api/tasks", api_list_tasks),
        Route("/api/tasks/{task_id}", api_get_task),
        Route("/api/index", api_index),
        Route("/api/validate", api_validate),
    ]
    return Starlette(routes=routes)


def _parse_error(e: ParseError) -> JSONResponse:
    return JSONResponse(
        {"error": str(e), "file": e.file, "line": e.line_number},
        status_code=500,
    )


def run_server(ctx: SpoolContext, host: str = "127.0.0.1", port: int = 8787):
    app = create_app(ctx)
    uvicorn.run(app, host=host, port=port)
