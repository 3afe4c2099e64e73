"""Service proof schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class ProofUpload(BaseModel):
    reservationId: str = Field(min_length=1)
    beforePhotos: list[str] = Field(min_length=1)
    afterPhotos: list[str] = Field(min_length=1)
    notes: Optional[str] = None

    @field_validator("beforePhotos", "afterPhotos")
    @classmethod
    def check_urls(cls, v):
        for url in v:
            if not url.startswith(("http://", "https://")):
                raise ValueError(f"Photo must be an http(s) URL: {url}")
        return v


class ProofResponse(BaseModel):
    id: str
    reservationId: str
    beforePhotos: list[str]
    afterPhotos: list[str]
    notes: Optional[str] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


def proof_response(proof) -> ProofResponse:
    return ProofResponse(
        id=proof.id,
        reservationId=proof.reservation_id,
        beforePhotos=proof.before_photos or [],
        afterPhotos=proof.after_photos or [],
        notes=proof.notes,
        createdAt=proof.created_at,
        updatedAt=proof.updated_at,
    )
