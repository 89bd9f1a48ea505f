# habitlog/main.py
import os
import time
import logging
import uuid
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from habitlog.routers.workout import router as workout_router
from habitlog.routers.activities import router as activities_router
from habitlog.routers.dashboard import router as dashboard_router
from habitlog.routers.notifications import router as notifications_router
from habitlog.db import SessionLocal  # for healthz DB check
from habitlog.gateway import SqlGateway
from habitlog.sync.live import LiveSessions

log = logging.getLogger("uvicorn")

@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # pending debounced saves are dropped on shutdown
    app.state.live_sessions.close_all()

app = FastAPI(
    title="habitlog API",
    lifespan=lifespan,
    openapi_tags=[
        {"name": "workout", "description": "Today's workout session and its sets"},
        {"name": "activities", "description": "Daily activity checklist and templates"},
        {"name": "dashboard", "description": "Monthly and weekly statistics"},
        {"name": "notifications", "description": "Failed saves reported back to the client"},
    ],
)

app.state.gateway = SqlGateway()
app.state.live_sessions = LiveSessions(app.state.gateway)

# CORS (relax for local dev; tighten origins in prod via env)
ALLOW_ORIGINS = os.getenv("ALLOW_ORIGINS", "*").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOW_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.middleware("http")
async def add_request_id_and_log(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000
    response.headers["X-Request-ID"] = req_id
    log.info("rid=%s %s %s -> %s in %.1fms",
             req_id, request.method, request.url.path, response.status_code, duration_ms)
    return response

@app.get("/")
def root():
    return {"ok": True, "name": "habitlog API"}

@app.get("/ping")
def ping():
    return {"pong": True}

@app.get("/healthz")
def healthz():
    # Quick DB sanity check
    try:
        with SessionLocal() as db:
            db.execute(text("SELECT 1"))
        return {"status": "ok"}
    except Exception as e:
        return {"status": "degraded", "error": str(e)}

@app.get("/version")
def version():
    return {"version": os.getenv("API_VERSION", "dev")}

# Routers
app.include_router(workout_router)
app.include_router(activities_router)
app.include_router(dashboard_router)
app.include_router(notifications_router)
