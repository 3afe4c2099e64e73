"""Service proof router"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_roles
from ...database import get_db
from ...models import User
from ...services.notification_service import NotificationSink, get_notification_sink
from ...shared.enums import Role
from .schemas import ProofResponse, ProofUpload, proof_response
from .service import ProofService

router = APIRouter(prefix="/service-proof", tags=["Service Proof"])


def get_proof_service(
    db: Session = Depends(get_db),
    notifier: NotificationSink = Depends(get_notification_sink),
) -> ProofService:
    return ProofService(db, notifier)


@router.post("", response_model=ProofResponse, status_code=status.HTTP_201_CREATED)
async def upload_proof(
    data: ProofUpload,
    current_user: User = Depends(require_roles(Role.WASHER)),
    service: ProofService = Depends(get_proof_service),
):
    return proof_response(service.upload(data, current_user))


@router.get("/{reservation_id}", response_model=ProofResponse)
async def get_proof(
    reservation_id: str,
    current_user: User = Depends(get_current_user),
    service: ProofService = Depends(get_proof_service),
):
    return proof_response(service.get_proof(reservation_id, current_user))


@router.delete("/{reservation_id}")
async def delete_proof(
    reservation_id: str,
    _: User = Depends(require_roles(Role.ADMIN)),
    service: ProofService = Depends(get_proof_service),
):
    return service.delete_proof(reservation_id)
