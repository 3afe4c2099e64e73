"""
Reservation state changes expressed as single conditional UPDATEs.

Each helper returns True only when its UPDATE matched the row, so two
concurrent callers racing for the same transition cannot both succeed.
Callers own the commit.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ... import config
from ...models import Reservation, User, utcnow
from ...shared.enums import ReservationStatus

logger = logging.getLogger(__name__)

OPEN_STATUSES = (
    ReservationStatus.PENDING.value,
    ReservationStatus.CONFIRMED.value,
    ReservationStatus.IN_PROGRESS.value,
)


def conditional_update(db: Session, reservation_id: str, *criteria, **values) -> bool:
    updated = (
        db.query(Reservation)
        .filter(Reservation.id == reservation_id, *criteria)
        .update(values, synchronize_session=False)
    )
    return updated == 1


def claim(
    db: Session, reservation_id: str, washer_id: str, estimated_arrival: Optional[datetime] = None
) -> bool:
    """PENDING and unassigned → CONFIRMED with ``washer_id``"""
    values = {"washer_id": washer_id, "status": ReservationStatus.CONFIRMED.value}
    if estimated_arrival is not None:
        values["estimated_arrival"] = estimated_arrival
    return conditional_update(
        db,
        reservation_id,
        Reservation.washer_id.is_(None),
        Reservation.status == ReservationStatus.PENDING.value,
        **values,
    )


def start(db: Session, reservation_id: str, washer_id: str) -> bool:
    """CONFIRMED → IN_PROGRESS, only for the assigned washer"""
    return conditional_update(
        db,
        reservation_id,
        Reservation.washer_id == washer_id,
        Reservation.status == ReservationStatus.CONFIRMED.value,
        status=ReservationStatus.IN_PROGRESS.value,
        started_at=utcnow(),
    )


def cancel(db: Session, reservation_id: str) -> bool:
    """PENDING or CONFIRMED → CANCELLED"""
    return conditional_update(
        db,
        reservation_id,
        Reservation.status.in_(
            (ReservationStatus.PENDING.value, ReservationStatus.CONFIRMED.value)
        ),
        status=ReservationStatus.CANCELLED.value,
        cancelled_at=utcnow(),
    )


def complete(db: Session, reservation_id: str, *criteria, now: Optional[datetime] = None) -> bool:
    return conditional_update(
        db,
        reservation_id,
        Reservation.status.in_(OPEN_STATUSES),
        *criteria,
        status=ReservationStatus.COMPLETED.value,
        completed_at=now or utcnow(),
    )


def mark_serviced(db: Session, reservation_id: str, washer_id: str) -> bool:
    """
    Record that the washer finished the job.

    Stamps serviced_at once and credits the washer's completed_services on
    that first stamp. Whether status becomes COMPLETED depends on
    COMPLETION_POLICY. Returns False when the job was already serviced or is
    not IN_PROGRESS/COMPLETED.
    """
    now = utcnow()
    first = conditional_update(
        db,
        reservation_id,
        Reservation.serviced_at.is_(None),
        Reservation.status.in_(
            (ReservationStatus.IN_PROGRESS.value, ReservationStatus.COMPLETED.value)
        ),
        serviced_at=now,
    )
    if not first:
        return False

    db.query(User).filter(User.id == washer_id).update(
        {User.completed_services: User.completed_services + 1}, synchronize_session=False
    )

    policy = config.COMPLETION_POLICY
    if policy == "both":
        completed = complete(
            db,
            reservation_id,
            Reservation.status == ReservationStatus.IN_PROGRESS.value,
            Reservation.paid_at.isnot(None),
            now=now,
        )
    else:
        completed = complete(
            db, reservation_id, Reservation.status == ReservationStatus.IN_PROGRESS.value, now=now
        )
    logger.info(
        f"🧽 Reservation {reservation_id} serviced by {washer_id} (policy={policy}, completed={completed})"
    )
    return True


def mark_paid(db: Session, reservation_id: str) -> bool:
    """
    Record that completed payments cover the total.

    Stamps paid_at once; never touches a CANCELLED reservation. Returns True
    only on the first stamp so repeated reconciliation has no side effects.
    """
    now = utcnow()
    first = conditional_update(
        db,
        reservation_id,
        Reservation.paid_at.is_(None),
        Reservation.status != ReservationStatus.CANCELLED.value,
        paid_at=now,
    )
    if not first:
        return False

    policy = config.COMPLETION_POLICY
    completed = False
    if policy == "either":
        completed = complete(db, reservation_id, now=now)
    elif policy == "both":
        completed = complete(db, reservation_id, Reservation.serviced_at.isnot(None), now=now)
    logger.info(f"💰 Reservation {reservation_id} fully paid (policy={policy}, completed={completed})")
    return True


def clear_paid(db: Session, reservation_id: str) -> bool:
    """Drop a stale paid_at after a price increase; only open reservations are touched"""
    return conditional_update(
        db,
        reservation_id,
        Reservation.paid_at.isnot(None),
        Reservation.status.in_(OPEN_STATUSES),
        paid_at=None,
    )
