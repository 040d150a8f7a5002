import logging
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
from simulai.core.config import settings
from simulai.core.mailer import SMTPConfig, send_email, password_reset_email
from simulai.core.responses import success_response, error_response
from simulai.core.security import create_access_token, verify_password
from simulai.db.database import get_db
from simulai.db.models.user import User
from simulai.db.repository.password_reset import create_reset_token, get_reset, is_expired, mark_used
from simulai.db.repository.settings import get_settings
from simulai.db.repository.user import get_user, get_user_by_email, set_password
from simulai.dependencies.auth import get_current_user
from simulai.models.auth import LoginRequest, PasswordResetRequest, ResetPassword, PasswordChange
from simulai.models.user import UserOut

router = APIRouter(tags=["auth"])
logger = logging.getLogger(__name__)

def _set_token_cookie(response: JSONResponse, token: str) -> JSONResponse:
    response.set_cookie(
        key=settings.ACCESS_TOKEN_COOKIE,
        value=token,
        httponly=True,
        secure=settings.PRODUCTION,
        samesite="none" if settings.PRODUCTION else "lax",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    return response

#MJ: Login and set the accessToken cookie
@router.post("/login")
async def login(payload: LoginRequest, db: AsyncSession = Depends(get_db)):
    user = await get_user_by_email(db, payload.email)
    if not user or not verify_password(payload.password, user.password):
        logger.info(f"Failed login for {payload.email}")
        return error_response("Invalid email or password", http_status=status.HTTP_401_UNAUTHORIZED)

    token = create_access_token({"sub": user.id, "role": user.role})
    response = success_response("Login successful", UserOut.model_validate(user))
    return _set_token_cookie(response, token)

@router.get("/verify-token")
async def verify_token(current_user: User = Depends(get_current_user)):
    return success_response("Token is valid", UserOut.model_validate(current_user))

@router.post("/logout")
async def logout():
    response = success_response("Logged out successfully")
    response.delete_cookie(settings.ACCESS_TOKEN_COOKIE)
    return response

@router.get("/profile")
async def get_profile(current_user: User = Depends(get_current_user)):
    return success_response("Profile retrieved successfully", UserOut.model_validate(current_user))

@router.put("/profile/password")
async def change_password(
    payload: PasswordChange,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not verify_password(payload.current_password, current_user.password):
        return error_response("Current password is incorrect", http_status=status.HTTP_400_BAD_REQUEST)
    await set_password(db, current_user, payload.new_password)
    return success_response("Password updated successfully")

#SH: The answer is the same whether the email exists or not
@router.post("/request-password-reset")
async def request_password_reset(payload: PasswordResetRequest, db: AsyncSession = Depends(get_db)):
    user = await get_user_by_email(db, payload.email)
    if user:
        reset = await create_reset_token(db, user.id)
        subject, html = password_reset_email(user.name, reset.token)
        try:
            config = SMTPConfig.resolve(await get_settings(db))
            await send_email(config, user.email, subject, html)
        except HTTPException as e:
            #SH: Mail failures are logged only, the answer must not reveal the account
            logger.error(f"Password reset mail to user {user.id} failed: {e.detail}")
    else:
        logger.info(f"Password reset requested for unknown email {payload.email}")
    return success_response("If the email exists, a reset link has been sent")

@router.post("/reset-password")
async def reset_password(payload: ResetPassword, db: AsyncSession = Depends(get_db)):
    reset = await get_reset(db, payload.token)
    if not reset or reset.used:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or already used token")
    if is_expired(reset):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Token expired")

    user = await get_user(db, reset.user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or already used token")

    await set_password(db, user, payload.password)
    await mark_used(db, reset)
    return success_response("Password has been reset successfully")
