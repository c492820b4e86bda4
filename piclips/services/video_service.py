from typing import List, Optional, Tuple
from uuid import UUID

from loguru import logger
from sqlalchemy import case, delete, func, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from piclips.core.exceptions import InvalidRequestError, NotFoundError, PermissionDeniedError
from piclips.models.comments import Comment
from piclips.models.interactions import Interaction, InteractionType
from piclips.models.tips import Tip
from piclips.models.users import Users
from piclips.models.videos import DEFAULT_THUMBNAIL, Privacy, Video, video_likes


def _decremented(column, amount):
    return case((column > amount, column - amount), else_=0)


def _video_options():
    return (
        selectinload(Video.owner),
        selectinload(Video.likers),
        selectinload(Video.comments),
    )


def _comment_options():
    return (
        selectinload(Comment.author),
        selectinload(Comment.replies),
    )


def _tip_options():
    return (
        selectinload(Tip.sender),
        selectinload(Tip.receiver),
    )


class VideoService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get_video(self, video_id: UUID, with_relations: bool = False) -> Video:
        stmt = select(Video).where(Video.id == video_id)
        if with_relations:
            stmt = stmt.options(*_video_options()).execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        video = result.scalar_one_or_none()
        if video is None:
            raise NotFoundError("Video not found")
        return video

    async def list_public(self) -> List[Video]:
        result = await self.db.execute(
            select(Video)
            .where(Video.privacy == Privacy.PUBLIC.value)
            .options(*_video_options())
            .order_by(Video.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_visible(self, video_id: UUID, requester_id: Optional[UUID], with_relations: bool = True) -> Video:
        video = await self._get_video(video_id, with_relations=with_relations)
        if video.privacy == Privacy.PRIVATE.value and video.user_id != requester_id:
            raise PermissionDeniedError("This video is private")
        return video

    async def list_by_user(self, user_id: UUID, requester_id: UUID) -> List[Video]:
        stmt = select(Video).where(Video.user_id == user_id)
        if user_id != requester_id:
            stmt = stmt.where(Video.privacy == Privacy.PUBLIC.value)
        result = await self.db.execute(
            stmt.options(*_video_options()).order_by(Video.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_liked(self, user_id: UUID, requester_id: UUID) -> List[Video]:
        if await self.db.get(Users, user_id) is None:
            raise NotFoundError("User not found")

        stmt = (
            select(Video)
            .join(video_likes, video_likes.c.video_id == Video.id)
            .where(video_likes.c.user_id == user_id)
            .where((Video.privacy != Privacy.PRIVATE.value) | (Video.user_id == requester_id))
        )
        result = await self.db.execute(
            stmt.options(*_video_options()).order_by(Video.created_at.desc())
        )
        return list(result.scalars().all())

    async def create_video(
        self,
        user_id: UUID,
        title: str,
        url: str,
        description: Optional[str] = None,
        privacy: Optional[str] = None,
        thumbnail: Optional[str] = None,
    ) -> Video:
        video = Video(
            title=title,
            description=description,
            url=url,
            thumbnail=thumbnail or DEFAULT_THUMBNAIL,
            user_id=user_id,
            privacy=privacy or Privacy.PUBLIC.value,
        )
        self.db.add(video)
        await self.db.execute(
            update(Users)
            .where(Users.id == user_id)
            .values(uploaded_videos_count=Users.uploaded_videos_count + 1)
        )
        await self.db.commit()

        logger.info(f"Video {video.id} created by user {user_id}")
        return await self._get_video(video.id, with_relations=True)

    async def delete_video(self, video_id: UUID, requester_id: UUID) -> str:
        video = await self._get_video(video_id)

        if video.user_id != requester_id:
            logger.warning(f"User {requester_id} tried to delete video {video_id} owned by {video.user_id}")
            raise PermissionDeniedError("You are not authorized to delete this video")

        url = video.url
        likes = await self._count_likes(video_id)

        await self.db.execute(delete(video_likes).where(video_likes.c.video_id == video_id))
        await self.db.execute(delete(Comment).where(Comment.video_id == video_id))
        await self.db.execute(delete(Interaction).where(Interaction.video_id == video_id))
        await self.db.execute(update(Tip).where(Tip.video_id == video_id).values(video_id=None))
        await self.db.execute(delete(Video).where(Video.id == video_id))
        await self.db.execute(
            update(Users)
            .where(Users.id == requester_id)
            .values(
                uploaded_videos_count=_decremented(Users.uploaded_videos_count, 1),
                likes_count=_decremented(Users.likes_count, likes),
            )
        )
        await self.db.commit()

        logger.info(f"Video {video_id} deleted with {likes} likes")
        return url

    async def _count_likes(self, video_id: UUID) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(video_likes).where(video_likes.c.video_id == video_id)
        )
        return result.scalar_one()

    async def toggle_like(self, video_id: UUID, user_id: UUID) -> Tuple[int, bool]:
        video = await self.get_visible(video_id, user_id, with_relations=False)

        existing = await self.db.execute(
            select(video_likes.c.user_id).where(
                video_likes.c.video_id == video_id,
                video_likes.c.user_id == user_id,
            )
        )
        try:
            if existing.first() is None:
                await self.db.execute(insert(video_likes).values(video_id=video_id, user_id=user_id))
                self.db.add(Interaction(user_id=user_id, video_id=video_id, type=InteractionType.LIKE.value))
                delta = 1
            else:
                removed = await self.db.execute(
                    delete(video_likes).where(
                        video_likes.c.video_id == video_id,
                        video_likes.c.user_id == user_id,
                    )
                )
                if removed.rowcount != 1:
                    # a concurrent request removed the like row first
                    await self.db.rollback()
                    logger.warning(f"Concurrent unlike of video {video_id} by user {user_id}")
                    return await self._count_likes(video_id), False
                delta = -1

            await self.db.execute(
                update(Users)
                .where(Users.id == video.user_id)
                .values(likes_count=Users.likes_count + 1 if delta > 0 else _decremented(Users.likes_count, 1))
            )
            await self.db.commit()
        except IntegrityError:
            # a concurrent request inserted the same like row first
            await self.db.rollback()
            logger.warning(f"Concurrent like of video {video_id} by user {user_id}")
            return await self._count_likes(video_id), True

        likes = await self._count_likes(video_id)
        logger.debug(f"User {user_id} {'liked' if delta > 0 else 'unliked'} video {video_id}, likes={likes}")
        return likes, delta > 0

    async def record_interaction(self, video_id: UUID, user_id: UUID, interaction_type: InteractionType) -> Video:
        if interaction_type == InteractionType.LIKE:
            raise InvalidRequestError("Likes are recorded by the like endpoint")

        video = await self.get_visible(video_id, user_id, with_relations=False)
        self.db.add(Interaction(user_id=user_id, video_id=video_id, type=interaction_type.value))
        if interaction_type == InteractionType.VIEW:
            await self.db.execute(
                update(Video).where(Video.id == video_id).values(views=Video.views + 1)
            )
        await self.db.commit()
        await self.db.refresh(video)
        return video

    async def add_comment(self, video_id: UUID, user_id: UUID, content: str) -> Tuple[Comment, int]:
        await self.get_visible(video_id, user_id, with_relations=False)

        content = content.strip()
        if not content:
            raise InvalidRequestError("Comment content is required")

        comment = Comment(content=content, user_id=user_id, video_id=video_id)
        self.db.add(comment)
        await self.db.commit()

        comment = await self._get_comment(comment.id)
        count = await self.db.execute(
            select(func.count()).select_from(Comment).where(Comment.video_id == video_id)
        )
        logger.info(f"Comment {comment.id} added to video {video_id} by user {user_id}")
        return comment, count.scalar_one()

    async def _get_comment(self, comment_id: UUID) -> Optional[Comment]:
        result = await self.db.execute(
            select(Comment)
            .where(Comment.id == comment_id)
            .options(*_comment_options())
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_comments(self, video_id: UUID, requester_id: Optional[UUID]) -> List[Comment]:
        await self.get_visible(video_id, requester_id, with_relations=False)
        result = await self.db.execute(
            select(Comment)
            .where(Comment.video_id == video_id)
            .options(*_comment_options())
            .order_by(Comment.created_at.desc())
        )
        return list(result.scalars().all())

    async def delete_comment(self, video_id: UUID, comment_id: UUID, requester_id: UUID):
        comment = await self.db.get(Comment, comment_id)
        if comment is None or comment.video_id != video_id:
            raise NotFoundError("Comment not found")

        if comment.user_id != requester_id:
            raise PermissionDeniedError("You are not authorized to delete this comment")

        await self.db.execute(delete(Comment).where(Comment.id == comment_id))
        await self.db.commit()
        logger.info(f"Comment {comment_id} deleted from video {video_id}")

    async def send_tip(self, video_id: UUID, sender_id: UUID, amount: Optional[int]) -> Tuple[Tip, int, int]:
        if amount is None or amount < 1:
            raise InvalidRequestError("Invalid tip amount")

        video = await self.get_visible(video_id, sender_id, with_relations=False)
        receiver_id = video.user_id

        try:
            debited = await self.db.execute(
                update(Users)
                .where(Users.id == sender_id, Users.token_balance >= amount)
                .values(token_balance=Users.token_balance - amount)
            )
            if debited.rowcount != 1:
                raise InvalidRequestError("Insufficient tokens")

            await self.db.execute(
                update(Users)
                .where(Users.id == receiver_id)
                .values(token_balance=Users.token_balance + amount)
            )
            tip = Tip(sender_id=sender_id, receiver_id=receiver_id, video_id=video_id, amount=amount)
            self.db.add(tip)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        balances = await self.db.execute(
            select(Users.id, Users.token_balance).where(Users.id.in_([sender_id, receiver_id]))
        )
        balance_by_user = {user_id: balance for user_id, balance in balances.all()}

        result = await self.db.execute(
            select(Tip).where(Tip.id == tip.id).options(*_tip_options()).execution_options(populate_existing=True)
        )
        tip = result.scalar_one()

        logger.info(f"User {sender_id} tipped {amount} on video {video_id} to {receiver_id}")
        return tip, balance_by_user[sender_id], balance_by_user[receiver_id]

    async def list_tips(self, video_id: UUID, requester_id: UUID) -> List[Tip]:
        await self.get_visible(video_id, requester_id, with_relations=False)
        result = await self.db.execute(
            select(Tip)
            .where(Tip.video_id == video_id)
            .options(*_tip_options())
            .order_by(Tip.created_at.desc())
        )
        return list(result.scalars().all())

    async def tip_summary(self, video_id: UUID, requester_id: UUID) -> dict:
        await self.get_visible(video_id, requester_id, with_relations=False)
        result = await self.db.execute(select(Tip.sender_id, Tip.amount).where(Tip.video_id == video_id))
        tips = result.all()
        return {
            "total_amount": sum(amount for _, amount in tips),
            "tip_count": len(tips),
            "unique_senders": len({sender for sender, _ in tips}),
        }
