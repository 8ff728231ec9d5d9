"""Admin API endpoints guarded by a shared token."""

from __future__ import annotations

import logging
import secrets
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

if TYPE_CHECKING:
    from fieldsnap.containers import AppContainer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Reject requests whose X-Admin-Token header does not match."""
    if x_admin_token is None or not secrets.compare_digest(
        x_admin_token.encode(), admin_token.encode()
    ):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health() -> dict[str, str]:
    return {"status": "ok"}


@router.post("/migrations/inline-images", dependencies=[Depends(require_admin)])
async def migrate_inline_images(request: Request) -> dict[str, int]:
    """Move every inline-encoded image into object storage."""
    container: AppContainer = request.app.state.container
    logger.info("Starting inline image migration")
    migrated = await container.migrator.migrate_inline_images()
    return {"migrated": migrated}
