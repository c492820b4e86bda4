from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel

from piclips.schemas.user import UserSummary


class TipCreate(BaseModel):
    amount: Optional[int] = None


class TipResponse(BaseModel):
    id: UUID
    sender: UserSummary
    receiver: UserSummary
    video: Optional[UUID] = None
    amount: int
    created_at: datetime

    @classmethod
    def from_model(cls, tip) -> "TipResponse":
        return cls(
            id=tip.id,
            sender=UserSummary.model_validate(tip.sender),
            receiver=UserSummary.model_validate(tip.receiver),
            video=tip.video_id,
            amount=tip.amount,
            created_at=tip.created_at,
        )


class TipCreateResponse(TipResponse):
    sender_balance: int
    receiver_balance: int


class TipSummary(BaseModel):
    total_amount: int
    tip_count: int
    unique_senders: int
