# ---------------------------------------------------------
# backend/main.py
# Project Tracker - owners, developers, projects, phases
#
# Run: uvicorn backend.main:app --reload (from repo root)
#
# - FastAPI + SQLite
# - /auth/*        : developer registration, owner/developer login
# - /projects/*    : projects, assignments, phases
# - /developers/*  : developer directory and profiles
# ---------------------------------------------------------

from __future__ import annotations

import sqlite3
from contextlib import asynccontextmanager
from typing import Dict

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backend import config
from backend.config import CORS_ORIGINS, IS_DEV, IS_PROD
from backend.db import init_db
from backend.owners import load_owner_directory
from backend.routes_auth import router as auth_router
from backend.routes_developers import router as developers_router
from backend.routes_projects import router as projects_router
from backend.schemas import describe_validation_errors


# ============================================================================
# API ENDPOINT CLASSIFICATION & SECURITY MODEL
# ============================================================================
#
# [PUBLIC] - No authentication required
#   • /health         - Health check
#   • /auth/register  - Developer registration
#   • /auth/login     - Owner (allow-list) or developer login
#
# [AUTHENTICATED] - Bearer session token required (401 otherwise)
#   • /projects, /projects/{id}             - owners: all; developers: assigned only
#   • /projects/{id} PUT                     - owners: any field; developers: status only
#   • /projects/{id} DELETE                  - creating owner only
#   • /projects/{id}/assign|remove|phases    - owners only
#   • /projects/{pid}/phases/{phid} PUT      - owners, or developers assigned to pid
#   • /developers                            - owners only
#   • /developers/profile GET|PUT            - caller's own profile
#
# ENFORCEMENT RULES:
# 1. Unknown ids are 404, checked before the authorization gate runs
# 2. Every allow/deny decision goes through backend.authz.authorize()
# 3. Never trust user ids from request bodies for the caller's identity
# 4. Each unit of work runs in one BEGIN IMMEDIATE transaction (see db.get_db_connection)
#
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    app.state.owner_directory = load_owner_directory(config.OWNERS_FILE)
    yield


app = FastAPI(title="Project Tracker Backend", version="0.1", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS if IS_PROD else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------
# Error mapping
# ---------------------------------------------------------
@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed or incomplete request bodies are invalid input (400)."""
    detail = describe_validation_errors(exc.errors())
    if IS_DEV:
        print(f"[API] Invalid input on {request.method} {request.url.path}: {detail}")
    return JSONResponse(status_code=400, content={"detail": detail})


@app.exception_handler(sqlite3.Error)
async def database_error_handler(request: Request, exc: sqlite3.Error) -> JSONResponse:
    # Log error but don't expose internal details
    print(f"[DB] Error on {request.method} {request.url.path}: {type(exc).__name__}: {exc}")
    return JSONResponse(status_code=500, content={"detail": "Database error"})


# ---------------------------------------------------------
# Routes
# ---------------------------------------------------------
@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


app.include_router(auth_router)
app.include_router(projects_router)
app.include_router(developers_router)
