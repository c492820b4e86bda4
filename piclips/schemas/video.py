from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from piclips.models.interactions import InteractionType
from piclips.models.videos import Privacy
from piclips.schemas.user import UserSummary


class VideoDebug(BaseModel):
    original_url: str
    extracted_key: str
    bucket: str


class VideoResponse(BaseModel):
    id: UUID
    title: str
    description: Optional[str] = None
    url: str
    thumbnail: str
    privacy: Privacy
    views: int
    user: UserSummary
    likes: List[UUID] = Field(default_factory=list)
    comments: List[UUID] = Field(default_factory=list)
    created_at: datetime
    signed_url: str
    content_type: str = "video/mp4"
    debug: Optional[VideoDebug] = None


class DeleteResponse(BaseModel):
    message: str


class LikeResponse(BaseModel):
    likes: int
    is_liked: bool


class InteractionRequest(BaseModel):
    type: InteractionType


class InteractionResponse(BaseModel):
    type: InteractionType
    views: int


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=2000)


class CommentResponse(BaseModel):
    id: UUID
    content: str
    user: UserSummary
    video: UUID
    likes: int
    replies: List[UUID] = Field(default_factory=list)
    created_at: datetime

    @classmethod
    def from_model(cls, comment) -> "CommentResponse":
        return cls(
            id=comment.id,
            content=comment.content,
            user=UserSummary.model_validate(comment.author),
            video=comment.video_id,
            likes=comment.likes,
            replies=[reply.id for reply in comment.replies],
            created_at=comment.created_at,
        )


class CommentCreateResponse(BaseModel):
    comment: CommentResponse
    comment_count: int
