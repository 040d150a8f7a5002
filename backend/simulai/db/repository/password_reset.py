import logging
from datetime import datetime, timedelta, timezone
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.sql.expression import update
from simulai.core.config import settings
from simulai.core.security import generate_reset_token
from simulai.db.models.password_reset import PasswordReset

logger = logging.getLogger(__name__)

async def create_reset_token(db: AsyncSession, user_id: int) -> PasswordReset:
    #SH: A new request invalidates the previous tokens of the user
    await db.execute(
        update(PasswordReset)
        .where((PasswordReset.user_id == user_id) & (PasswordReset.used.is_(False)))
        .values(used=True)
    )
    reset = PasswordReset(
        token=generate_reset_token(),
        user_id=user_id,
        expires_at=datetime.now(timezone.utc) + timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES),
    )
    db.add(reset)
    await db.commit()
    await db.refresh(reset)
    return reset

async def get_reset(db: AsyncSession, token: str) -> PasswordReset | None:
    result = await db.execute(select(PasswordReset).where(PasswordReset.token == token))
    return result.scalars().first()

def is_expired(reset: PasswordReset, now: datetime | None = None) -> bool:
    now = now or datetime.now(timezone.utc)
    expires_at = reset.expires_at
    # SQLite hands back naive datetimes, they were stored as UTC
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return expires_at <= now

async def mark_used(db: AsyncSession, reset: PasswordReset) -> None:
    reset.used = True
    await db.commit()
