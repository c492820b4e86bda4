import asyncio
import secrets
import time
from pathlib import Path
from typing import List, Optional, Tuple
from uuid import UUID

from loguru import logger
from sqlalchemy import delete, func, insert, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from piclips.core.exceptions import InvalidRequestError, NotFoundError, PermissionDeniedError
from piclips.models.users import DEFAULT_AVATAR, Users, user_follows
from piclips.schemas.search import SearchType
from piclips.schemas.user import UserUpdate

AVATAR_CONTENT_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
}
AVATAR_URL_PREFIX = "/uploads/avatars/"
SEARCH_LIMIT = 20


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, user_id: UUID) -> Optional[Users]:
        return await self.db.get(Users, user_id)

    async def get_by_uid(self, uid: str) -> Optional[Users]:
        result = await self.db.execute(select(Users).where(Users.uid == uid))
        return result.scalar_one_or_none()

    async def get_profile(self, user_id: UUID) -> Users:
        result = await self.db.execute(
            select(Users)
            .where(Users.id == user_id)
            .options(
                selectinload(Users.followers),
                selectinload(Users.following),
                selectinload(Users.liked_videos),
            )
            .execution_options(populate_existing=True)
        )
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def create_or_get_user(self, uid: str, username: str) -> Tuple[Users, bool]:
        user = await self.get_by_uid(uid)

        if user:
            logger.info(f"Found existing user {user.id} for uid {uid}")
            return await self.get_profile(user.id), False

        logger.info(f"Creating new user for uid {uid}")

        new_user = Users(
            uid=uid,
            username=username,
            display_name=username,
        )

        self.db.add(new_user)
        try:
            await self.db.commit()
        except IntegrityError:
            # a concurrent first sign-in created the same uid
            await self.db.rollback()
            logger.warning(f"User for uid {uid} was created concurrently")
            user = await self.get_by_uid(uid)
            if user is None:
                raise
            return await self.get_profile(user.id), False

        logger.info(f"Created new user {new_user.id} for uid {uid}")

        return await self.get_profile(new_user.id), True

    async def update_profile(self, user_id: UUID, requester_id: UUID, payload: UserUpdate) -> Users:
        if user_id != requester_id:
            raise PermissionDeniedError("Not authorized to update this profile")

        user = await self.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")

        if payload.username:
            result = await self.db.execute(
                select(Users.id).where(Users.username == payload.username, Users.id != user_id)
            )
            if result.first() is not None:
                raise InvalidRequestError("Username is already taken")
            user.username = payload.username

        if payload.display_name:
            user.display_name = payload.display_name

        fields = payload.model_fields_set
        for field in ("bio", "instagram", "youtube"):
            if field in fields:
                setattr(user, field, getattr(payload, field))

        await self.db.commit()
        logger.info(f"Updated profile of user {user_id}")

        return await self.get_profile(user_id)

    async def replace_avatar(
        self,
        user_id: UUID,
        requester_id: UUID,
        content_type: Optional[str],
        data: bytes,
        uploads_dir: Path,
        max_bytes: int,
    ) -> str:
        if user_id != requester_id:
            raise PermissionDeniedError("Not authorized to update this profile")

        extension = AVATAR_CONTENT_TYPES.get(content_type or "")
        if extension is None:
            raise InvalidRequestError("Invalid file type. Only JPEG, PNG and GIF are allowed.")
        if not data:
            raise InvalidRequestError("No file uploaded")
        if len(data) > max_bytes:
            raise InvalidRequestError(f"File too large. Maximum size is {max_bytes} bytes.")

        user = await self.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")

        avatars_dir = uploads_dir / "avatars"
        avatars_dir.mkdir(parents=True, exist_ok=True)

        filename = f"avatar-{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{extension}"
        await asyncio.to_thread((avatars_dir / filename).write_bytes, data)

        previous = user.avatar
        user.avatar = f"{AVATAR_URL_PREFIX}{filename}"
        await self.db.commit()

        if previous and previous != DEFAULT_AVATAR and previous.startswith(AVATAR_URL_PREFIX):
            old_path = avatars_dir / Path(previous).name
            if old_path.exists():
                await asyncio.to_thread(old_path.unlink)
                logger.debug(f"Removed previous avatar {old_path}")

        logger.info(f"User {user_id} avatar set to {user.avatar}")
        return user.avatar

    async def toggle_follow(self, follower_id: UUID, followed_id: UUID) -> Tuple[bool, int]:
        if follower_id == followed_id:
            raise InvalidRequestError("You cannot follow yourself")

        if await self.get_by_id(followed_id) is None:
            raise NotFoundError("User not found")

        existing = await self.db.execute(
            select(user_follows.c.follower_id).where(
                user_follows.c.follower_id == follower_id,
                user_follows.c.followed_id == followed_id,
            )
        )
        if existing.first() is None:
            await self.db.execute(
                insert(user_follows).values(follower_id=follower_id, followed_id=followed_id)
            )
            following = True
        else:
            await self.db.execute(
                delete(user_follows).where(
                    user_follows.c.follower_id == follower_id,
                    user_follows.c.followed_id == followed_id,
                )
            )
            following = False

        await self.db.commit()

        count = await self.db.execute(
            select(func.count()).select_from(user_follows).where(user_follows.c.followed_id == followed_id)
        )
        followers_count = count.scalar_one()

        logger.info(f"User {follower_id} {'followed' if following else 'unfollowed'} {followed_id}")
        return following, followers_count

    async def search(self, term: str, search_type: SearchType) -> List[Users]:
        if search_type == SearchType.NAME:
            condition = or_(
                Users.username.icontains(term, autoescape=True),
                Users.display_name.icontains(term, autoescape=True),
            )
        else:
            condition = Users.hashtags.icontains(term, autoescape=True)

        result = await self.db.execute(
            select(Users).where(condition).order_by(Users.username).limit(SEARCH_LIMIT)
        )
        return list(result.scalars().all())
