from fastapi import APIRouter
from fastapi.responses import JSONResponse

from taskflow import __version__
from taskflow.config import settings
from taskflow.db import db_ping
from taskflow.redis_client import redis_ping

router = APIRouter(tags=["health"])

@router.get("/health")
def health() -> dict:
    return {"status": "ok", "version": __version__, "env": settings.app_env}

@router.get("/ready")
def ready() -> JSONResponse:
    errors = {name: err for name, err in (("db", db_ping()), ("redis", redis_ping())) if err}
    checks = {name: name not in errors for name in ("db", "redis")}

    body: dict = {"status": "unready" if errors else "ok", "checks": checks}
    if errors:
        body["errors"] = errors

    # 503 until both the database and redis answer
    return JSONResponse(status_code=503 if errors else 200, content=body)
