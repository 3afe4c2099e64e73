"""Rating repository"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models import Rating, User


class RatingRepository:
    @staticmethod
    def get_by_reservation(db: Session, reservation_id: str) -> Optional[Rating]:
        return (
            db.query(Rating)
            .options(joinedload(Rating.client))
            .filter(Rating.reservation_id == reservation_id)
            .first()
        )

    @staticmethod
    def list_for_washer(db: Session, washer_id: str) -> list[Rating]:
        return (
            db.query(Rating)
            .options(joinedload(Rating.client))
            .filter(Rating.washer_id == washer_id)
            .order_by(Rating.created_at.desc())
            .all()
        )

    @staticmethod
    def add_rating(db: Session, **rating_data) -> Rating:
        """Stage a rating and flush so the unique constraint fires here"""
        rating = Rating(**rating_data)
        db.add(rating)
        db.flush()
        return rating

    @staticmethod
    def recompute_washer_rating(db: Session, washer_id: str) -> float:
        """Set the washer's rating to the mean of all their stars (unrounded)"""
        average = db.query(func.avg(Rating.stars)).filter(Rating.washer_id == washer_id).scalar()
        average = float(average or 0.0)
        db.query(User).filter(User.id == washer_id).update(
            {User.rating: average}, synchronize_session=False
        )
        return average
