import logging
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from simulai.core.security import encrypt_settings, decrypt_settings
from simulai.db.models.settings import AppSettings, SETTINGS_FIELDS

logger = logging.getLogger(__name__)

# MJ: The settings table holds a single row; values are encrypted before they hit the database

async def get_settings_row(db: AsyncSession) -> AppSettings | None:
    result = await db.execute(select(AppSettings).order_by(AppSettings.id).limit(1))
    return result.scalars().first()

def _row_values(row: AppSettings | None) -> dict:
    return {field: getattr(row, field) if row else None for field in SETTINGS_FIELDS}

async def get_settings(db: AsyncSession) -> dict:
    row = await get_settings_row(db)
    return decrypt_settings(_row_values(row))

async def save_settings(db: AsyncSession, values: dict) -> dict:
    row = await get_settings_row(db)
    if row is None:
        row = AppSettings()
        db.add(row)

    values = {key: value for key, value in values.items() if key in SETTINGS_FIELDS}
    for key, value in encrypt_settings(values).items():
        setattr(row, key, value)

    await db.commit()
    await db.refresh(row)
    logger.info(f"Settings updated: {', '.join(sorted(values))}")
    return decrypt_settings(_row_values(row))
