import hashlib
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Union

from fastapi import HTTPException, status
from jose import jwe, jwt, JWTError, ExpiredSignatureError
from jose.constants import ALGORITHMS
from jose.exceptions import JWEError
from passlib.context import CryptContext

from simulai.core.config import settings

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Settings values are JWE compact tokens; this prefix is how stored ciphertext is recognised.
ENCRYPTED_PREFIX = "eyJ"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Not a bcrypt hash (legacy rows)
        return False


#MJ: Access token stored in the accessToken cookie
def create_access_token(data: dict, expires_delta: Union[timedelta, None] = None) -> str:
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire})
    if "sub" in to_encode:
        to_encode["sub"] = str(to_encode["sub"])

    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def verify_access_token(token: str) -> dict:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid token",
    )
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired")
    except JWTError:
        raise credentials_exception

    if payload.get("sub") is None:
        raise credentials_exception
    return payload


def generate_reset_token() -> str:
    return secrets.token_urlsafe(32)


#SH: Settings encryption (one JWE token per value)
def _settings_key() -> bytes:
    # A256GCM needs a 32 byte key
    return hashlib.sha256(settings.JWT_SECRET_KEY.encode("utf-8")).digest()


def encrypt_value(value: Any) -> Any:
    if not value or not isinstance(value, str):
        return value
    token = jwe.encrypt(value.encode("utf-8"), _settings_key(), algorithm=ALGORITHMS.DIR, encryption=ALGORITHMS.A256GCM)
    return token.decode("utf-8") if isinstance(token, bytes) else token


def decrypt_value(token: Any) -> Any:
    if not token or not isinstance(token, str):
        return token
    if not token.startswith(ENCRYPTED_PREFIX):
        return token
    try:
        plaintext = jwe.decrypt(token, _settings_key())
    except (JWEError, JWTError, ValueError) as e:
        # Values written before encryption was enabled are returned as-is
        logger.warning(f"Could not decrypt settings value: {str(e)}")
        return token
    return plaintext.decode("utf-8") if isinstance(plaintext, bytes) else plaintext


def encrypt_settings(values: dict) -> dict:
    return {key: encrypt_value(value) for key, value in values.items()}


def decrypt_settings(values: dict) -> dict:
    return {key: decrypt_value(value) for key, value in values.items()}
