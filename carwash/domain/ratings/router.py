"""Rating router"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_roles
from ...database import get_db
from ...models import User
from ...services.notification_service import NotificationSink, get_notification_sink
from ...shared.enums import Role
from .schemas import (
    RatingBody,
    RatingCreate,
    RatingResponse,
    WasherRatingsResponse,
    rating_response,
)
from .service import RatingService

router = APIRouter(prefix="/ratings", tags=["Ratings"])
reservation_rating_router = APIRouter(prefix="/reservations", tags=["Ratings"])


def get_rating_service(
    db: Session = Depends(get_db),
    notifier: NotificationSink = Depends(get_notification_sink),
) -> RatingService:
    return RatingService(db, notifier)


@router.post("", response_model=RatingResponse, status_code=status.HTTP_201_CREATED)
async def create_rating(
    data: RatingCreate,
    current_user: User = Depends(require_roles(Role.CLIENT)),
    service: RatingService = Depends(get_rating_service),
):
    rating = service.rate(data.reservationId, data.stars, data.comment, current_user)
    return rating_response(rating)


@reservation_rating_router.post(
    "/{reservation_id}/rating", response_model=RatingResponse, status_code=status.HTTP_201_CREATED
)
async def rate_reservation(
    reservation_id: str,
    data: RatingBody,
    current_user: User = Depends(require_roles(Role.CLIENT)),
    service: RatingService = Depends(get_rating_service),
):
    """Same as ``POST /ratings`` with the reservation taken from the path"""
    rating = service.rate(reservation_id, data.stars, data.comment, current_user)
    return rating_response(rating)


@router.get("/reservation/{reservation_id}", response_model=RatingResponse)
async def get_reservation_rating(
    reservation_id: str,
    current_user: User = Depends(get_current_user),
    service: RatingService = Depends(get_rating_service),
):
    return rating_response(service.for_reservation(reservation_id, current_user))


@router.get("/washer/{washer_id}", response_model=WasherRatingsResponse)
async def get_washer_ratings(
    washer_id: str,
    _: User = Depends(get_current_user),
    service: RatingService = Depends(get_rating_service),
):
    summary = service.for_washer(washer_id)
    summary["ratings"] = [rating_response(r) for r in summary["ratings"]]
    return summary
