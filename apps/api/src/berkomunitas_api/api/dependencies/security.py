from fastapi import Depends, Header, HTTPException, status

from berkomunitas_api.core.settings import settings
from berkomunitas_api.services.rewards import RedemptionActor


async def require_admin_api_key(x_api_key: str = Header("", alias="X-API-Key")) -> None:
    if not settings.admin_api_key:
        return

    if x_api_key != settings.admin_api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
        )


async def require_admin_actor(
    admin_user: str | None = Header(None, alias="X-Admin-User"),
    _: None = Depends(require_admin_api_key),
) -> RedemptionActor:
    """Administrator identity forwarded by the back-office, recorded in audit events."""

    admin_id = (admin_user or "").strip() or None
    return RedemptionActor.admin(admin_id)
