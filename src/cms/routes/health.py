"""Liveness and readiness probes."""
import time
from typing import Literal

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from cms.auth.credentials import CredentialChecker
from cms.errors import StorageUnavailableError
from cms.storage.base import StorageProvider

router = APIRouter(prefix="/health", tags=["health"])


class Liveness(BaseModel):
    status: Literal["alive"] = "alive"


class DependencyCheck(BaseModel):
    """Outcome of probing one dependency.

    Attributes:
        name: Dependency identifier, e.g. ``storage:github``.
        status: 'ok' or 'failed'.
        message: Failure detail when status is 'failed'.
        duration_ms: Time spent on the probe.
    """

    name: str
    status: Literal["ok", "failed"]
    message: str | None = None
    duration_ms: float = 0.0


class Readiness(BaseModel):
    """Overall readiness and the checks it was derived from."""

    status: Literal["ready", "not_ready"]
    checks: list[DependencyCheck]


def probe_storage(storage: StorageProvider) -> DependencyCheck:
    """Ask the storage backend whether it can serve requests."""
    started = time.perf_counter()
    try:
        storage.check()
    except StorageUnavailableError as e:
        outcome, message = "failed", str(e)
    else:
        outcome, message = "ok", None
    return DependencyCheck(
        name=f"storage:{storage.name}",
        status=outcome,
        message=message,
        duration_ms=round((time.perf_counter() - started) * 1000, 2),
    )


def probe_credentials(credentials: CredentialChecker) -> DependencyCheck:
    """Logins cannot succeed until admin credentials are configured."""
    if credentials.is_configured:
        return DependencyCheck(name="auth:admin", status="ok")
    return DependencyCheck(
        name="auth:admin",
        status="failed",
        message="Admin credentials are not configured",
    )


@router.get("/live", response_model=Liveness)
async def liveness() -> Liveness:
    return Liveness()


@router.get("/ready", response_model=Readiness)
def readiness(request: Request) -> JSONResponse:
    """Report whether storage and login are usable.

    Returns:
        200 when every check passes, 503 otherwise.
    """
    checks = [
        probe_storage(request.app.state.storage),
        probe_credentials(request.app.state.credentials),
    ]
    ready = all(check.status == "ok" for check in checks)
    body = Readiness(status="ready" if ready else "not_ready", checks=checks)
    return JSONResponse(content=body.model_dump(), status_code=200 if ready else 503)
