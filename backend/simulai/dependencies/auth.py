import logging
from typing import Optional
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from simulai.core.config import settings
from simulai.core.security import verify_access_token
from simulai.db.database import get_db
from simulai.db.models.user import User, ROLE_ADMIN, ROLE_COMPANY
from simulai.db.repository.user import get_user

logger = logging.getLogger(__name__)

http_bearer = HTTPBearer(auto_error=False)

#MJ: This is our Main Dependency for all the routes that require Authentication.
#MJ: The SPA sends the token in the accessToken cookie, API clients may use a Bearer header
def get_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer),
) -> str:
    token = request.cookies.get(settings.ACCESS_TOKEN_COOKIE)
    if not token and credentials is not None:
        token = credentials.credentials
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return token

async def get_current_user(
    token: str = Depends(get_token),
    db: AsyncSession = Depends(get_db),
) -> User:
    payload = verify_access_token(token)
    try:
        user_id = int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    user = await get_user(db, user_id)
    if not user:
        logger.warning(f"Token for unknown user {user_id}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return user

#SH: Role guard, e.g. Depends(require_roles("admin"))
def require_roles(*roles: str):
    async def checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You do not have permission to perform this action"
            )
        return current_user
    return checker

require_admin = require_roles(ROLE_ADMIN)
require_manager = require_roles(ROLE_ADMIN, ROLE_COMPANY)
