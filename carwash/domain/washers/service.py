"""Washer directory service - proximity search, availability and stats"""

import logging
import math
from typing import Optional

from sqlalchemy.orm import Session

from ...config import DEFAULT_SEARCH_RADIUS_KM
from ...models import User
from ...shared.errors import NotFound, ValidationFailed
from ...shared.geo import display_distance, round_half_up
from .repository import WasherRepository
from .schemas import AvailabilityUpdate

logger = logging.getLogger(__name__)


class WasherService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = WasherRepository()

    def find_nearby(
        self, latitude: float, longitude: float, radius: Optional[float] = None
    ) -> list[dict]:
        """
        Available washers within ``radius`` km of the point, nearest first.

        Washers without stored coordinates are skipped. The radius is compared
        against the distance after rounding to one decimal.
        """
        if radius is None:
            radius = DEFAULT_SEARCH_RADIUS_KM
        if not math.isfinite(radius) or radius <= 0:
            raise ValidationFailed("radius must be a positive number")

        washers = self.repo.available_washers(self.db)
        busy = self.repo.busy_washer_ids(self.db, [w.id for w in washers])

        results = []
        for washer in washers:
            if washer.latitude is None or washer.longitude is None:
                continue
            distance = display_distance(latitude, longitude, washer.latitude, washer.longitude)
            if distance > radius:
                continue
            results.append(
                {
                    "id": washer.id,
                    "name": washer.name,
                    "email": washer.email,
                    "phone": washer.phone,
                    "latitude": washer.latitude,
                    "longitude": washer.longitude,
                    "rating": washer.rating or 0.0,
                    "completedServices": washer.completed_services or 0,
                    "distance": distance,
                    "isAvailable": washer.id not in busy,
                }
            )

        results.sort(key=lambda w: w["distance"])
        logger.info(
            f"🔍 Nearby search ({latitude}, {longitude}) r={radius}km → {len(results)} washer(s)"
        )
        return results

    def set_availability(self, washer: User, data: AvailabilityUpdate) -> User:
        if (data.latitude is None) != (data.longitude is None):
            raise ValidationFailed("latitude and longitude must be provided together")

        washer.is_available = (
            (not washer.is_available) if data.isAvailable is None else data.isAvailable
        )
        if data.latitude is not None:
            washer.latitude = float(data.latitude)
            washer.longitude = float(data.longitude)

        self.db.commit()
        self.db.refresh(washer)
        logger.info(f"🟢 Washer {washer.id} availability → {washer.is_available}")
        return washer

    def stats(self, washer_id: str) -> dict:
        washer = self.repo.get_washer(self.db, washer_id)
        if not washer:
            raise NotFound("Washer not found")

        total_jobs, completed_jobs = self.repo.job_counts(self.db, washer_id)
        ratings = self.repo.ratings_for(self.db, washer_id)
        average = sum(r.stars for r in ratings) / len(ratings) if ratings else 0.0
        completion_rate = (completed_jobs / total_jobs) * 100 if total_jobs else 0.0

        return {
            "washerId": washer.id,
            "name": washer.name,
            "rating": washer.rating or 0.0,
            "completedServices": washer.completed_services or 0,
            "totalJobs": total_jobs,
            "completedJobs": completed_jobs,
            "completionRate": int(completion_rate + 0.5),
            "averageRating": round_half_up(average),
            "totalRatings": len(ratings),
            "recentRatings": [
                {"stars": r.stars, "comment": r.comment, "date": r.created_at} for r in ratings[:5]
            ],
        }
