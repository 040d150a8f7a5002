import logging
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from simulai.core.mailer import SMTPConfig, send_email, welcome_email
from simulai.core.responses import success_response
from simulai.db.database import get_db
from simulai.db.repository.settings import get_settings
from simulai.dependencies.auth import require_manager
from simulai.models.settings import WelcomeEmail

router = APIRouter(
    prefix="/email",
    tags=["email"],
    dependencies=[Depends(require_manager)]
)
logger = logging.getLogger(__name__)

#SH: Welcome mail with the temporary credentials of a new user
@router.post("/send")
async def send_welcome_email(payload: WelcomeEmail, db: AsyncSession = Depends(get_db)):
    config = SMTPConfig.resolve(await get_settings(db))
    subject, html = welcome_email(payload.name, payload.to, payload.password)
    message_id = await send_email(config, payload.to, subject, html)
    return success_response("Email sent successfully", data={"messageId": message_id})
