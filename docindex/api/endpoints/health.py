from __future__ import annotations

from fastapi import APIRouter, Request
from starlette.responses import JSONResponse

from docindex.core.observability.metrics import inc_named

router = APIRouter()


@router.get("/health/live")
def live():
    inc_named("health_live")
    return {"status": "alive"}


@router.get("/health/ready")
def ready(request: Request):
    """
    Ready once every configured channel has a READY registry.
    In prod, fragments that failed to load also block readiness.
    """
    inc_named("health_ready")

    env = request.app.state.environment
    config = request.app.state.config
    problems: list[str] = []

    if env.closed:
        problems.append("environment_closed")

    # In dev/test, skipped fragments are only reported in the load report
    if config.env == "prod":
        for w in request.app.state.load_report.warnings:
            problems.append(f"{w.get('code')}:{(w.get('data') or {}).get('path')}")

    for channel in config.channels:
        reg = env.registry(channel)
        if reg is None:
            problems.append(f"missing_registry:{channel}")
        elif not reg.ready:
            problems.append(f"not_ready:{channel}={reg.state.value}")

    if problems:
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "problems": problems},
        )

    return {"status": "ready"}
