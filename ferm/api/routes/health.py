"""Health check endpoints.

Provides health status for container probes and monitoring.
"""

from fastapi import APIRouter

from ferm import __version__
from ferm.api.deps import Runtime
from ferm.infra.logging import get_logger
from ferm.schemas.common import HealthResponse

router = APIRouter()
logger = get_logger(__name__)


@router.get("/health", response_model=HealthResponse)
async def health(runtime: Runtime) -> HealthResponse:
    """Basic health check.

    Returns 200 if service is running.
    """
    return HealthResponse(
        status="healthy",
        version=__version__,
        environment=runtime.settings.environment,
        checks={},
    )


@router.get("/health/ready", response_model=HealthResponse)
async def health_ready(runtime: Runtime) -> HealthResponse:
    """Readiness check.

    Verifies:
    - Database connectivity
    - Broker reachable and planting consumer running (when the broker is enabled)
    """
    checks: dict[str, bool] = {"database": await runtime.db.verify()}

    if runtime.broker.available:
        checks["broker"] = runtime.broker.healthy
        checks["plant_consumer"] = runtime.plant_consumer.running

    all_healthy = all(checks.values())
    if not all_healthy:
        logger.warning("Readiness check degraded", checks=checks)

    return HealthResponse(
        status="healthy" if all_healthy else "degraded",
        version=__version__,
        environment=runtime.settings.environment,
        checks=checks,
    )


@router.get("/health/live", response_model=HealthResponse)
async def health_live(runtime: Runtime) -> HealthResponse:
    """Liveness check."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        environment=runtime.settings.environment,
        checks={"alive": True},
    )
