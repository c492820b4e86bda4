from pathlib import Path
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, UploadFile
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from piclips.api.dependencies import get_app_settings, get_pi_client
from piclips.core.config import AppSettings, JWTSettings
from piclips.core.exceptions import InvalidRequestError, PermissionDeniedError
from piclips.db.database import get_db
from piclips.models.users import Users
from piclips.schemas.user import (
    AuthenticateRequest,
    AuthenticateResponse,
    AvatarResponse,
    FollowResponse,
    UserProfile,
    UserUpdate,
)
from piclips.services.pi_network_service import PiNetworkClient
from piclips.services.user_service import UserService
from piclips.utils.security import create_access_token, get_current_user, get_jwt_settings

users_router = APIRouter()


@users_router.post("/authenticate", response_model=AuthenticateResponse)
async def authenticate(
    payload: AuthenticateRequest,
    db: AsyncSession = Depends(get_db),
    pi_client: PiNetworkClient = Depends(get_pi_client),
    jwt_settings: JWTSettings = Depends(get_jwt_settings),
):
    logger.info(f"Received authentication request for uid {payload.uid} ({payload.username})")

    uid = await pi_client.verify_identity(payload.uid, payload.access_token)

    user, is_new = await UserService(db).create_or_get_user(uid=uid, username=payload.username)
    token = await create_access_token({"id": str(user.id)}, jwt_settings)

    if is_new:
        logger.info(f"Registered new user {user.id} for uid {uid}")

    return AuthenticateResponse(user=UserProfile.from_model(user), token=token)


@users_router.get("/me", response_model=UserProfile)
async def get_me(
    user: Users = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return UserProfile.from_model(await UserService(db).get_profile(user.id))


@users_router.get("/{user_id}", response_model=UserProfile)
async def get_profile(
    user_id: UUID,
    user: Users = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if user_id != user.id:
        raise PermissionDeniedError("Not authorized to view this profile")
    return UserProfile.from_model(await UserService(db).get_profile(user_id))


@users_router.put("/{user_id}", response_model=UserProfile)
async def update_profile(
    user_id: UUID,
    payload: UserUpdate,
    user: Users = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    updated = await UserService(db).update_profile(user_id, user.id, payload)
    return UserProfile.from_model(updated)


@users_router.post("/{user_id}/avatar", response_model=AvatarResponse)
async def upload_avatar(
    user_id: UUID,
    avatar: Optional[UploadFile] = File(None),
    user: Users = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    settings: AppSettings = Depends(get_app_settings),
):
    if user_id != user.id:
        raise PermissionDeniedError("Not authorized to update this profile")
    if avatar is None or not avatar.filename:
        raise InvalidRequestError("No file uploaded")

    data = await avatar.read(settings.avatar_max_bytes + 1)

    path = await UserService(db).replace_avatar(
        user_id=user_id,
        requester_id=user.id,
        content_type=avatar.content_type,
        data=data,
        uploads_dir=Path(settings.uploads_dir),
        max_bytes=settings.avatar_max_bytes,
    )
    return AvatarResponse(avatar=path)


@users_router.post("/{user_id}/follow", response_model=FollowResponse)
async def toggle_follow(
    user_id: UUID,
    user: Users = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    following, followers_count = await UserService(db).toggle_follow(user.id, user_id)
    return FollowResponse(following=following, followers_count=followers_count)
