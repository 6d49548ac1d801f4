"""
Scheduled job endpoints.

Called by the platform scheduler; authorised with ``CRON_SECRET`` or the
scheduler's own ``x-vercel-cron`` header.
"""

from __future__ import annotations

import logging
import time

from fastapi import APIRouter, Depends, Header, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import verify_cron_secret
from app.services.membership_notification_service import MembershipNotificationService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/membership-expiration", summary="Run the membership expiration batch")
async def membership_expiration(
    authorization: str | None = Header(default=None),
    x_vercel_cron: str | None = Header(default=None),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """
    Expire lapsed memberships and send expiration reminders.

    - 401 ``{"error": "Unauthorized"}`` without a valid secret
    - 500 ``{"success": false, "error": ...}`` if the batch itself blows up
    """
    if x_vercel_cron != "1" and not verify_cron_secret(authorization):
        logger.warning("Rejected unauthorised membership-expiration cron call")
        return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={"error": "Unauthorized"})

    started = time.perf_counter()
    try:
        result = await MembershipNotificationService(db=db).run_expiration_batch()
        await db.commit()
    except Exception as exc:
        await db.rollback()
        logger.exception("Membership expiration batch failed")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "error": str(exc)},
        )

    duration_ms = int((time.perf_counter() - started) * 1000)
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={"success": True, "duration": f"{duration_ms}ms", "result": result.to_payload()},
    )
