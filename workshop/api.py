"""
FastAPI app entry point aggregating per-domain routers under workshop/routes.
Run with `uvicorn workshop.api:app`.
"""
from __future__ import annotations


from fastapi import FastAPI

from . import __version__
from .db import init_schema
from .logs import ensure_log_schema, setup_logging


app = FastAPI(title="workshop-api", version=__version__)


@app.on_event("startup")
def on_startup():
    setup_logging()
    init_schema()
    ensure_log_schema()


# Include routers (split by domain)
from .routes import base as base_routes
from .routes import projects as projects_routes
from .routes import logs as logs_routes

app.include_router(base_routes.router)
app.include_router(projects_routes.router)
app.include_router(logs_routes.router)
