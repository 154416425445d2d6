"""Root API router: probes plus the landlord and tenant route families."""

import structlog
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rentauth import __version__
from rentauth.api.dependencies import AppSettings, DBSession, Store
from rentauth.core.auth.routes import router as landlord_router
from rentauth.core.auth.tenant_routes import router as tenant_router
from rentauth.core.cache import CredentialStore


logger = structlog.get_logger()

OK = "ok"
UNREACHABLE = "unreachable"


class LivenessResponse(BaseModel):
    status: str


class ReadinessResponse(BaseModel):
    """Overall status plus one entry per backing service."""

    status: str
    checks: dict[str, str]


class InfoResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    app: str
    version: str
    environment: str
    signup_enabled: bool = Field(serialization_alias="signupEnabled")


async def _check_store(store: CredentialStore) -> str:
    # Every token, passcode and counter lives in the store
    return OK if await store.ping() else UNREACHABLE


async def _check_database(db: AsyncSession) -> str:
    try:
        await db.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as exc:
        logger.warning("database_check_failed", error=str(exc))
        return UNREACHABLE
    return OK


probes_router = APIRouter(tags=["health"])


@probes_router.get("/health/live", response_model=LivenessResponse, summary="Liveness probe")
async def liveness() -> LivenessResponse:
    return LivenessResponse(status="alive")


@probes_router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    summary="Readiness probe",
    description="503 while the credential store or the database is unreachable.",
)
async def readiness(store: Store, db: DBSession) -> JSONResponse:
    report = ReadinessResponse(status="ready", checks={})
    report.checks["store"] = await _check_store(store)
    report.checks["database"] = await _check_database(db)

    healthy = all(result == OK for result in report.checks.values())
    if not healthy:
        report.status = "degraded"

    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=report.model_dump(),
    )


@probes_router.get("/info", response_model=InfoResponse, summary="Application info")
async def info(settings: AppSettings) -> InfoResponse:
    return InfoResponse(
        app=settings.app_name,
        version=__version__,
        environment=settings.environment,
        signup_enabled=settings.signup_enabled,
    )


api_router = APIRouter()
api_router.include_router(probes_router)
api_router.include_router(landlord_router)
api_router.include_router(tenant_router)
