"""Pull endpoint for maturity notifications.

Lets an operator (or a cron job in deployments without a resident consumer)
drain a bounded batch from the notification topic.
"""

from fastapi import APIRouter, Query

from ferm.api.deps import Runtime
from ferm.infra.logging import get_logger
from ferm.schemas.garden import DrainResponse

router = APIRouter()
logger = get_logger(__name__)


@router.post("/email", response_model=DrainResponse)
async def drain_notifications(
    runtime: Runtime,
    limit: int = Query(default=10, ge=1, le=1000),
    timeout_seconds: float = Query(default=2.0, gt=0, le=60),
) -> DrainResponse:
    processed = await runtime.maturity_consumer.drain(limit=limit, timeout_seconds=timeout_seconds)
    logger.info("Maturity notifications pull completed", processed=processed)
    return DrainResponse(processed=processed)
