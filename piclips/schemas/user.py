from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, ConfigDict


class UserSummary(BaseModel):
    id: UUID
    username: str
    display_name: str
    avatar: str

    model_config = ConfigDict(from_attributes=True)


class AuthenticateRequest(BaseModel):
    uid: str = Field(..., min_length=1, description="Pi Network user identifier")
    username: str = Field(..., min_length=1, description="Pi Network username")
    access_token: Optional[str] = Field(default=None, description="Pi Network access token")


class UserProfile(UserSummary):
    uid: str
    bio: Optional[str] = None
    instagram: Optional[str] = None
    youtube: Optional[str] = None
    token_balance: int
    likes_count: int
    uploaded_videos_count: int
    followers: List[UUID] = Field(default_factory=list)
    following: List[UUID] = Field(default_factory=list)
    liked_videos: List[UUID] = Field(default_factory=list)
    created_at: datetime

    @classmethod
    def from_model(cls, user) -> "UserProfile":
        return cls(
            id=user.id,
            uid=user.uid,
            username=user.username,
            display_name=user.display_name,
            avatar=user.avatar,
            bio=user.bio,
            instagram=user.instagram,
            youtube=user.youtube,
            token_balance=user.token_balance,
            likes_count=user.likes_count,
            uploaded_videos_count=user.uploaded_videos_count,
            followers=[follower.id for follower in user.followers],
            following=[followed.id for followed in user.following],
            liked_videos=[video.id for video in user.liked_videos],
            created_at=user.created_at,
        )


class AuthenticateResponse(BaseModel):
    user: UserProfile
    token: str


class UserUpdate(BaseModel):
    display_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    username: Optional[str] = Field(default=None, min_length=1, max_length=50)
    bio: Optional[str] = Field(default=None, max_length=500)
    instagram: Optional[str] = None
    youtube: Optional[str] = None


class AvatarResponse(BaseModel):
    avatar: str


class FollowResponse(BaseModel):
    following: bool
    followers_count: int
