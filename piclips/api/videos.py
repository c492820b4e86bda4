from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from piclips.api.dependencies import get_app_settings, get_storage
from piclips.core.config import AppSettings
from piclips.core.exceptions import InvalidRequestError
from piclips.db.database import get_db
from piclips.models.users import Users
from piclips.models.videos import Privacy, Video
from piclips.schemas.tip import TipCreate, TipCreateResponse, TipResponse, TipSummary
from piclips.schemas.user import UserSummary
from piclips.schemas.video import (
    CommentCreate,
    CommentCreateResponse,
    CommentResponse,
    DeleteResponse,
    InteractionRequest,
    InteractionResponse,
    LikeResponse,
    VideoDebug,
    VideoResponse,
)
from piclips.services.storage_service import ObjectStorage, build_video_key, object_key_from_url
from piclips.services.video_service import VideoService
from piclips.utils.security import get_current_user, get_optional_user

videos_router = APIRouter()


def to_video_response(video: Video, storage: ObjectStorage, debug: bool = False) -> VideoResponse:
    key = object_key_from_url(video.url)
    return VideoResponse(
        id=video.id,
        title=video.title,
        description=video.description,
        url=video.url,
        thumbnail=video.thumbnail,
        privacy=video.privacy,
        views=video.views,
        user=UserSummary.model_validate(video.owner),
        likes=[user.id for user in video.likers],
        comments=[comment.id for comment in video.comments],
        created_at=video.created_at,
        signed_url=storage.signed_url(key),
        debug=VideoDebug(original_url=video.url, extracted_key=key, bucket=storage.bucket) if debug else None,
    )


@videos_router.get("", response_model=List[VideoResponse], response_model_exclude_none=True)
async def list_videos(
    db: AsyncSession = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    settings: AppSettings = Depends(get_app_settings),
):
    videos = await VideoService(db).list_public()
    logger.info(f"Found {len(videos)} public videos")
    return [to_video_response(video, storage, settings.debug) for video in videos]


@videos_router.post("", response_model=VideoResponse, status_code=status.HTTP_201_CREATED, response_model_exclude_none=True)
async def upload_video(
    title: str = Form(..., min_length=1),
    description: Optional[str] = Form(None),
    privacy: Optional[Privacy] = Form(None),
    thumbnail: Optional[str] = Form(None),
    video: Optional[UploadFile] = File(None),
    user: Users = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    settings: AppSettings = Depends(get_app_settings),
):
    if video is None or not video.filename:
        raise InvalidRequestError("No video file uploaded")

    body = await video.read()
    if not body:
        raise InvalidRequestError("No video file uploaded")

    key = build_video_key(video.filename)
    logger.info(f"User {user.id} uploading {video.filename} ({len(body)} bytes, {video.content_type})")

    try:
        url = await storage.upload(key, body, video.content_type)
    except Exception as e:
        logger.exception(f"Error uploading video to object storage: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server error while uploading video",
        )

    try:
        created = await VideoService(db).create_video(
            user_id=user.id,
            title=title,
            url=url,
            description=description,
            privacy=privacy.value if privacy else None,
            thumbnail=thumbnail,
        )
    except Exception as e:
        logger.exception(f"Error saving video record, removing object {key}: {e}")
        await db.rollback()
        try:
            await storage.delete(key)
        except Exception:
            logger.exception(f"Orphaned object left in storage: {key}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server error while uploading video",
        )

    return to_video_response(created, storage, settings.debug)


@videos_router.get("/user/{user_id}", response_model=List[VideoResponse], response_model_exclude_none=True)
async def list_user_videos(
    user_id: UUID,
    user: Users = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    settings: AppSettings = Depends(get_app_settings),
):
    videos = await VideoService(db).list_by_user(user_id, user.id)
    return [to_video_response(video, storage, settings.debug) for video in videos]


@videos_router.get("/liked/{user_id}", response_model=List[VideoResponse], response_model_exclude_none=True)
async def list_liked_videos(
    user_id: UUID,
    user: Users = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    settings: AppSettings = Depends(get_app_settings),
):
    videos = await VideoService(db).list_liked(user_id, user.id)
    return [to_video_response(video, storage, settings.debug) for video in videos]


@videos_router.get("/{video_id}", response_model=VideoResponse, response_model_exclude_none=True)
async def get_video(
    video_id: UUID,
    user: Optional[Users] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    settings: AppSettings = Depends(get_app_settings),
):
    video = await VideoService(db).get_visible(video_id, user.id if user else None)
    return to_video_response(video, storage, settings.debug)


@videos_router.delete("/{video_id}", response_model=DeleteResponse)
async def delete_video(
    video_id: UUID,
    user: Users = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
):
    url = await VideoService(db).delete_video(video_id, user.id)

    key = object_key_from_url(url)
    try:
        await storage.delete(key)
    except Exception as e:
        logger.exception(f"Video {video_id} deleted but object {key} was not removed: {e}")

    return DeleteResponse(message="Video deleted successfully")


@videos_router.post("/{video_id}/like", response_model=LikeResponse)
async def toggle_like(
    video_id: UUID,
    user: Users = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    likes, is_liked = await VideoService(db).toggle_like(video_id, user.id)
    return LikeResponse(likes=likes, is_liked=is_liked)


@videos_router.post("/{video_id}/interactions", response_model=InteractionResponse)
async def record_interaction(
    video_id: UUID,
    payload: InteractionRequest,
    user: Users = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    video = await VideoService(db).record_interaction(video_id, user.id, payload.type)
    return InteractionResponse(type=payload.type, views=video.views)


@videos_router.post("/{video_id}/comment", response_model=CommentCreateResponse, status_code=status.HTTP_201_CREATED)
async def add_comment(
    video_id: UUID,
    payload: CommentCreate,
    user: Users = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    comment, count = await VideoService(db).add_comment(video_id, user.id, payload.content)
    return CommentCreateResponse(comment=CommentResponse.from_model(comment), comment_count=count)


@videos_router.get("/{video_id}/comments", response_model=List[CommentResponse])
async def list_comments(
    video_id: UUID,
    user: Optional[Users] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    comments = await VideoService(db).list_comments(video_id, user.id if user else None)
    return [CommentResponse.from_model(comment) for comment in comments]


@videos_router.delete("/{video_id}/comments/{comment_id}", response_model=DeleteResponse)
async def delete_comment(
    video_id: UUID,
    comment_id: UUID,
    user: Users = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await VideoService(db).delete_comment(video_id, comment_id, user.id)
    return DeleteResponse(message="Comment deleted successfully")


@videos_router.post("/{video_id}/tip", response_model=TipCreateResponse, status_code=status.HTTP_201_CREATED)
async def send_tip(
    video_id: UUID,
    payload: TipCreate,
    user: Users = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    tip, sender_balance, receiver_balance = await VideoService(db).send_tip(video_id, user.id, payload.amount)
    return TipCreateResponse(
        **TipResponse.from_model(tip).model_dump(),
        sender_balance=sender_balance,
        receiver_balance=receiver_balance,
    )


@videos_router.get("/{video_id}/tips", response_model=List[TipResponse])
async def list_tips(
    video_id: UUID,
    user: Users = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    tips = await VideoService(db).list_tips(video_id, user.id)
    return [TipResponse.from_model(tip) for tip in tips]


@videos_router.get("/{video_id}/tips/summary", response_model=TipSummary)
async def tip_summary(
    video_id: UUID,
    user: Users = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return TipSummary(**await VideoService(db).tip_summary(video_id, user.id))
