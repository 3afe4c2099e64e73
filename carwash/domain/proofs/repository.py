"""Service proof repository"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import ServiceProof


class ProofRepository:
    @staticmethod
    def get_by_reservation(db: Session, reservation_id: str) -> Optional[ServiceProof]:
        return db.query(ServiceProof).filter(ServiceProof.reservation_id == reservation_id).first()

    @staticmethod
    def upsert(
        db: Session,
        reservation_id: str,
        before_photos: list[str],
        after_photos: list[str],
        notes: Optional[str] = None,
    ) -> ServiceProof:
        """Stage the proof for ``reservation_id``, replacing photos of an existing one"""
        proof = ProofRepository.get_by_reservation(db, reservation_id)
        if proof is None:
            proof = ServiceProof(reservation_id=reservation_id)
            db.add(proof)
        proof.before_photos = list(before_photos)
        proof.after_photos = list(after_photos)
        if notes is not None:
            proof.notes = notes
        return proof

    @staticmethod
    def delete(db: Session, proof: ServiceProof) -> None:
        db.delete(proof)
        db.commit()
