"""FastAPI dependencies for dependency injection.

Provides:
- The GardenRuntime built by the application lifespan
- Caller identity forwarded by the upstream gateway
"""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status

from ferm.core.errors import ValidationError, positive_int
from ferm.infra.logging import get_logger
from ferm.services.runtime import GardenRuntime

logger = get_logger(__name__)


def get_runtime(request: Request) -> GardenRuntime:
    """Services attached to the app at startup."""
    return request.app.state.runtime


async def get_user_id(
    x_user_id: Annotated[str | None, Header()] = None,
) -> int:
    """Authenticated user id, set by the gateway after token verification.

    Raises:
        HTTPException: 401 if the header is missing or malformed
    """
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="unauthorized",
        )
    try:
        return positive_int(x_user_id, "user_id")
    except ValidationError:
        logger.warning("Rejected malformed X-User-Id header", header=x_user_id)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="unauthorized",
        )


async def get_user_role(
    x_user_role: Annotated[str | None, Header()] = None,
) -> str:
    return (x_user_role or "user").lower()


async def require_admin(
    role: Annotated[str, Depends(get_user_role)],
) -> bool:
    """Raises:
        HTTPException: 403 unless the caller is an admin
    """
    if role != "admin":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="forbidden")
    return True


# Type aliases for cleaner annotations
Runtime = Annotated[GardenRuntime, Depends(get_runtime)]
UserId = Annotated[int, Depends(get_user_id)]
UserRole = Annotated[str, Depends(get_user_role)]
AdminOnly = Annotated[bool, Depends(require_admin)]
