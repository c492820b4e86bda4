from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import APIKeyHeader
import jwt
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from piclips.core.config import JWTSettings
from piclips.db.database import get_db
from piclips.models.users import Users
from piclips.services.user_service import UserService

auth_scheme = APIKeyHeader(name="Authorization", scheme_name="Bearer", auto_error=False)


def get_jwt_settings(request: Request) -> JWTSettings:
    return request.app.state.settings.jwt

async def create_access_token(to_encode: dict, jwt_settings: JWTSettings):
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=jwt_settings.access_token_expire_minutes
    )
    payload = dict(to_encode)
    payload.update({"exp": expire, "type": "access"})
    encoded_jwt = jwt.encode(
        payload, jwt_settings.secret_key, algorithm=jwt_settings.algorithm
    )

    return encoded_jwt

async def verify_token(token:str, secret_key:str, algorithm:str):
    try:
        payload = jwt.decode(token, secret_key, algorithms=[algorithm])
        return payload
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token has expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Could not validate credentials")

async def _resolve_user(token: str, jwt_settings: JWTSettings, db: AsyncSession) -> Users:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if token.startswith("Bearer "):
        token = token[7:]

    try:
        payload = await verify_token(token, jwt_settings.secret_key, jwt_settings.algorithm)
    except HTTPException as e:
        e.headers = credentials_exception.headers
        raise e

    user_id = payload.get("id")
    if user_id is None or payload.get("type") != "access":
        raise credentials_exception

    try:
        user_uuid = UUID(str(user_id))
    except (ValueError, TypeError):
        raise credentials_exception

    user = await UserService(db).get_by_id(user_uuid)
    if user is None:
        logger.warning(f"Token for unknown user {user_uuid}")
        raise credentials_exception

    return user

async def get_current_user(
    token: Optional[str] = Depends(auth_scheme),
    jwt_settings: JWTSettings = Depends(get_jwt_settings),
    db: AsyncSession = Depends(get_db),
) -> Users:
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No token provided",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return await _resolve_user(token, jwt_settings, db)

async def get_optional_user(
    token: Optional[str] = Depends(auth_scheme),
    jwt_settings: JWTSettings = Depends(get_jwt_settings),
    db: AsyncSession = Depends(get_db),
) -> Optional[Users]:
    if not token:
        return None
    return await _resolve_user(token, jwt_settings, db)
