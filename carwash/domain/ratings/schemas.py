"""Rating schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, StrictInt

from ..users.schemas import UserSummary, user_summary


class RatingBody(BaseModel):
    stars: StrictInt = Field(ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=2000)


class RatingCreate(RatingBody):
    reservationId: str = Field(min_length=1)


class RatingResponse(BaseModel):
    id: str
    reservationId: str
    userId: str
    washerId: str
    stars: int
    comment: Optional[str] = None
    createdAt: Optional[datetime] = None
    client: Optional[UserSummary] = None


class WasherRatingsResponse(BaseModel):
    washerId: str
    ratings: list[RatingResponse]
    total: int
    average: float  # One decimal
    starDistribution: dict[str, int]  # "1".."5" → count


def rating_response(rating) -> RatingResponse:
    return RatingResponse(
        id=rating.id,
        reservationId=rating.reservation_id,
        userId=rating.user_id,
        washerId=rating.washer_id,
        stars=rating.stars,
        comment=rating.comment,
        createdAt=rating.created_at,
        client=user_summary(rating.client),
    )
