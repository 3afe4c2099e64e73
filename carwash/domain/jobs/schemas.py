"""Job schemas - washer-facing view of reservations"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from ..reservations.schemas import ReservationResponse


class AcceptJobRequest(BaseModel):
    estimatedArrival: Optional[datetime] = None


class EtaUpdate(BaseModel):
    estimatedArrival: datetime


class JobListResponse(BaseModel):
    jobs: list[ReservationResponse]
    total: int
