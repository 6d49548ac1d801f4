"""
Membership expiration background task.

Runs the same batch as ``GET /api/cron/membership-expiration`` from
Celery beat.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from app.workers.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(
    name="app.workers.membership_tasks.run_membership_expiration",
    bind=True,
    max_retries=3,
    default_retry_delay=300,
)
def run_membership_expiration(self) -> dict[str, Any]:  # type: ignore[no-untyped-def]
    """Expire lapsed memberships and dispatch the reminder notifications."""
    try:
        # Forked workers inherit pooled connections bound to the parent's loop
        from app.core.database import async_engine
        async_engine.sync_engine.dispose()

        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        try:
            payload = loop.run_until_complete(_run_batch())
        finally:
            loop.close()
        return payload
    except Exception as exc:
        logger.error("run_membership_expiration failed: %s", exc)
        raise self.retry(exc=exc)


async def _run_batch() -> dict[str, Any]:
    from app.core.database import AsyncSessionLocal
    from app.services.membership_notification_service import MembershipNotificationService

    async with AsyncSessionLocal() as session:
        try:
            result = await MembershipNotificationService(db=session).run_expiration_batch()
            await session.commit()
        except Exception:
            await session.rollback()
            raise
    return result.to_payload()
