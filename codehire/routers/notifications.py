"""Notifications router — fetch, read, and mark-all-read."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select, update, func, desc
from sqlalchemy.ext.asyncio import AsyncSession

from codehire.database import get_db
from codehire.models.notification import Notification
from codehire.models.user import User
from codehire.routers.auth import get_current_user, require_user

router = APIRouter(prefix="/notifications", tags=["notifications"])


def _serialize(n: Notification) -> dict:
    return {
        "id": n.id,
        "title": n.title,
        "message": n.message,
        "kind": n.kind,
        "related_id": n.related_id,
        "is_read": n.is_read,
        "created_at": n.created_at.isoformat() if n.created_at else "",
    }


@router.get("")
async def get_notifications(
    current_user: Optional[User] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Return last 20 notifications + unread count for the current user."""
    if not current_user:
        return {"notifications": [], "unread_count": 0}

    # Unread count
    count_result = await db.execute(
        select(func.count(Notification.id)).where(
            Notification.user_id == current_user.id,
            Notification.is_read == False,
        )
    )
    unread_count = count_result.scalar() or 0

    # Last 20 notifications
    result = await db.execute(
        select(Notification)
        .where(Notification.user_id == current_user.id)
        .order_by(desc(Notification.created_at), desc(Notification.id))
        .limit(20)
    )
    notifs = result.scalars().all()

    return {
        "unread_count": unread_count,
        "notifications": [_serialize(n) for n in notifs],
    }


@router.post("/read/{notif_id}")
async def mark_read(
    notif_id: int,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Mark a single notification as read."""
    result = await db.execute(
        select(Notification).where(
            Notification.id == notif_id,
            Notification.user_id == current_user.id,
        )
    )
    notif = result.scalar_one_or_none()
    if not notif:
        raise HTTPException(status_code=404, detail="Notification not found")

    notif.is_read = True
    await db.commit()
    return _serialize(notif)


@router.post("/read-all")
async def mark_all_read(
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Mark all notifications as read for the current user."""
    await db.execute(
        update(Notification)
        .where(
            Notification.user_id == current_user.id,
            Notification.is_read == False,
        )
        .values(is_read=True)
    )
    await db.commit()
    return {"ok": True}
