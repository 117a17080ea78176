"""Resolve the calling member from identity headers forwarded by the gateway."""

from __future__ import annotations

from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from berkomunitas_api.db.session import get_session
from berkomunitas_api.models.member import Member

# Matches the length of ``members.external_id``.
_MAX_SUBJECT_LENGTH = 255


def _member_lookup(subject: str):
    """Member UUIDs match ``id``; any other subject is an identity-provider ``external_id``."""

    try:
        return select(Member).where(Member.id == UUID(subject))
    except ValueError:
        return select(Member).where(Member.external_id == subject)


async def require_member_session(
    session_user: str | None = Header(None, alias="X-Session-User"),
    db: AsyncSession = Depends(get_session),
) -> Member:
    subject = (session_user or "").strip()
    if not subject:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing session user context",
        )
    if len(subject) > _MAX_SUBJECT_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid session user identifier",
        )

    member = (await db.execute(_member_lookup(subject))).scalar_one_or_none()
    if member is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Session user not found",
        )
    return member
