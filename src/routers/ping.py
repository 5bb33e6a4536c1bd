import asyncio
import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from src.db.interfaces.postgresql import PostgreSQLDatabase
from src.dependencies import OpenRouterDep, RedisDep, SettingsDep, get_database
from src.exceptions import LLMException
from src.schemas.api.health import HealthResponse, ServiceStatus

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)


@router.get("/ping", response_model=HealthResponse)
async def ping(
    database: Annotated[PostgreSQLDatabase, Depends(get_database)],
    redis_client: RedisDep,
    llm: OpenRouterDep,
    settings: SettingsDep,
):
    """Liveness check with database, Redis and LLM endpoint reachability."""
    services = {}

    if database.health_check():
        services["database"] = ServiceStatus(status="healthy", message="Connected")
    else:
        services["database"] = ServiceStatus(status="unhealthy", message="Database unreachable")

    try:
        await redis_client.ping()
        services["redis"] = ServiceStatus(status="healthy", message="Connected")
    except Exception as e:
        logger.warning(f"Redis health check failed: {e}")
        services["redis"] = ServiceStatus(status="unhealthy", message="Redis unreachable")

    try:
        result = await asyncio.to_thread(llm.health_check)
        services["llm"] = ServiceStatus(status="healthy", message=result.get("message", "Reachable"))
    except LLMException as e:
        logger.warning(f"LLM health check failed: {e}")
        services["llm"] = ServiceStatus(status="unhealthy", message="AI service unreachable")

    overall = "ok" if all(s.status == "healthy" for s in services.values()) else "degraded"
    return HealthResponse(status=overall, version=settings.app_version, services=services)
