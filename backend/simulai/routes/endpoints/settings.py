import logging
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from simulai.core.responses import success_response
from simulai.db.database import get_db
from simulai.db.models.user import User
from simulai.db.repository.settings import get_settings, save_settings
from simulai.dependencies.auth import require_admin
from simulai.models.settings import SettingsIn, SettingsOut

# MJ: Admin settings (API keys, mail, AWS, prompts)
router = APIRouter(
    prefix="/settings",
    tags=["settings"],
    dependencies=[Depends(require_admin)]
)
logger = logging.getLogger(__name__)

@router.get("")
async def read_settings(db: AsyncSession = Depends(get_db)):
    values = await get_settings(db)
    return success_response("Settings retrieved successfully", SettingsOut(**values))

#SH: Only the keys present in the body are written
@router.put("")
async def update_settings(
    payload: SettingsIn,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    values = await save_settings(db, payload.model_dump(exclude_unset=True))
    logger.info(f"Settings updated by user {current_user.id}")
    return success_response("Settings updated successfully", SettingsOut(**values))
