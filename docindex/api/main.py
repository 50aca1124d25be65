from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI

from docindex.api.endpoints import health
from docindex.api.endpoints import index as index_ep
from docindex.api.endpoints import metrics as metrics_ep
from docindex.api.middleware.error_shaping import SafeErrorMiddleware, environment_unavailable_handler
from docindex.api.middleware.request_context import RequestContextMiddleware
from docindex.core.bootstrap import compose
from docindex.core.config import IndexConfig
from docindex.core.registry.environment import Environment, set_default_environment
from docindex.core.registry.errors import EnvironmentUnavailable

log = logging.getLogger("docindex.api")


def create_app(
    config: Optional[IndexConfig] = None,
    *,
    environment: Optional[Environment] = None,
) -> FastAPI:
    """
    Composition root for the HTTP host.

    Builds the environment from the fragment directory, publishes it as the
    process default and hangs it on app.state for the endpoints.
    """
    cfg = config or IndexConfig.from_env()
    env, report = compose(cfg, environment=environment)
    set_default_environment(env)

    app = FastAPI(
        title="docindex",
        version="0.1.0",
    )
    app.state.config = cfg
    app.state.environment = env
    app.state.load_report = report

    # ------------------------------------------------------------
    # Middleware stack
    # Starlette reverses add_middleware order — the LAST call = OUTERMOST wrapper.
    #   SafeErrorMiddleware → RequestContext → handler
    # ------------------------------------------------------------
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(SafeErrorMiddleware)

    app.add_exception_handler(EnvironmentUnavailable, environment_unavailable_handler)

    app.include_router(health.router)
    app.include_router(metrics_ep.router)
    app.include_router(index_ep.router)

    app.include_router(health.router, prefix="/api/v1")
    app.include_router(metrics_ep.router, prefix="/api/v1")
    app.include_router(index_ep.router, prefix="/api/v1")

    @app.get("/index-report")
    def load_report():
        return app.state.load_report.to_dict()

    log.info("api.created env=%s channels=%s", cfg.env, env.channels())
    return app


app = create_app()
