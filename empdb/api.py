"""
FastAPI app entry point aggregating per-domain routers under empdb/routes.
Run with `uvicorn empdb.api:app`.
"""
from __future__ import annotations


from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .db import ensure_schema
from .services.config_svc import ensure_default_config


app = FastAPI(title="empdb-api", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def on_startup():
    ensure_schema()
    ensure_default_config()


# Include routers (split by business domain)
from .routes import base as base_routes
from .routes import employees as employees_routes
from .routes import settings as settings_routes
from .routes import logs as logs_routes

app.include_router(base_routes.router)
app.include_router(employees_routes.router)
app.include_router(settings_routes.router)
app.include_router(logs_routes.router)
