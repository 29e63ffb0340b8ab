# notifier.py — Fire-and-forget notification dispatch
# The triggering request never awaits delivery; failures are logged and dropped.
import asyncio
import logging
from typing import Awaitable, Optional, Set, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

import mailer
from models import NotificationPref, NotificationType, User

logger = logging.getLogger("partner.notifier")

# Strong references so pending tasks are not garbage-collected mid-flight
_pending: Set[asyncio.Task] = set()


async def _guard(coro: Awaitable, description: str) -> None:
    try:
        delivered = await coro
        if delivered is False:
            logger.info(f"Notification not delivered: {description}")
    except Exception as e:
        logger.error(f"Notification failed: {description}: {e}", exc_info=True)


def dispatch(coro: Awaitable, description: str) -> asyncio.Task:
    task = asyncio.get_running_loop().create_task(_guard(coro, description))
    _pending.add(task)
    task.add_done_callback(_pending.discard)
    return task


async def drain() -> None:
    """Wait for every in-flight notification (tests and shutdown)."""
    while _pending:
        await asyncio.gather(*list(_pending), return_exceptions=True)


async def is_enabled(db: AsyncSession, user_id: str, notif_type: NotificationType) -> bool:
    result = await db.execute(
        select(NotificationPref.enabled).where(
            NotificationPref.user_id == user_id,
            NotificationPref.notif_type == notif_type,
        )
    )
    enabled = result.scalar_one_or_none()
    return True if enabled is None else bool(enabled)


async def notify(
    db: AsyncSession,
    recipient: Optional[User],
    notif_type: NotificationType,
    email: Tuple[str, str],
) -> bool:
    """Queue an e-mail to a user unless they opted out. Returns True if queued."""
    if recipient is None:
        return False
    if not await is_enabled(db, recipient.id, notif_type):
        logger.info(f"{notif_type.value} notification suppressed by preference for {recipient.id}")
        return False

    subject, html_body = email
    dispatch(mailer.send_email(recipient.email, subject, html_body), f"{notif_type.value} -> {recipient.id}")
    return True
