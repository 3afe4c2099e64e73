import pytest

from carwash.models import Notification, Reservation, User
from carwash.shared.enums import NotificationType, ReservationStatus

from .conftest import auth_headers

BEFORE = ["https://cdn.example.com/before-1.jpg"]
AFTER = ["https://cdn.example.com/after-1.jpg", "https://cdn.example.com/after-2.jpg"]


@pytest.fixture
def in_progress(factory, client_user, washer_user):
    return factory.reservation(client_user, status=ReservationStatus.IN_PROGRESS, washer=washer_user)


def upload(client, washer, reservation, before=BEFORE, after=AFTER, **extra):
    payload = {"reservationId": reservation.id, "beforePhotos": before, "afterPhotos": after}
    payload.update(extra)
    return client.post("/service-proof", json=payload, headers=auth_headers(washer))


def test_first_upload_marks_job_serviced(client, db, client_user, washer_user, in_progress):
    response = upload(client, washer_user, in_progress, notes="Interior vacuumed")

    assert response.status_code == 201
    assert response.json()["afterPhotos"] == AFTER
    db.expire_all()
    reservation = db.query(Reservation).filter(Reservation.id == in_progress.id).one()
    assert reservation.serviced_at is not None
    assert reservation.status == "COMPLETED"
    assert db.query(User).filter(User.id == washer_user.id).one().completed_services == 1
    notified = db.query(Notification).filter(Notification.user_id == client_user.id).all()
    assert [n.type for n in notified] == [NotificationType.SERVICE_COMPLETED.value]


def test_reupload_only_replaces_photos(client, db, client_user, washer_user, in_progress):
    first = upload(client, washer_user, in_progress)
    second = upload(client, washer_user, in_progress, after=["https://cdn.example.com/retake.jpg"])

    assert second.status_code == 201
    assert second.json()["id"] == first.json()["id"]
    assert second.json()["afterPhotos"] == ["https://cdn.example.com/retake.jpg"]
    db.expire_all()
    assert db.query(User).filter(User.id == washer_user.id).one().completed_services == 1
    assert db.query(Notification).filter(Notification.user_id == client_user.id).count() == 1


def test_both_policy_waits_for_payment(client, db, monkeypatch, washer_user, in_progress):
    from carwash import config

    monkeypatch.setattr(config, "COMPLETION_POLICY", "both")

    upload(client, washer_user, in_progress)

    db.expire_all()
    assert db.query(Reservation).filter(Reservation.id == in_progress.id).one().status == "IN_PROGRESS"


def test_unassigned_washer_cannot_upload(client, factory, in_progress):
    response = upload(client, factory.washer(), in_progress)

    assert response.status_code == 403


def test_upload_for_pending_job_conflicts(client, factory, client_user, washer_user):
    reservation = factory.reservation(client_user, status=ReservationStatus.CONFIRMED, washer=washer_user)

    response = upload(client, washer_user, reservation)

    assert response.status_code == 409


@pytest.mark.parametrize(
    "before,after",
    [
        ([], AFTER),
        (BEFORE, []),
        (["ftp://cdn.example.com/x.jpg"], AFTER),
    ],
)
def test_upload_validates_photos(client, washer_user, in_progress, before, after):
    response = upload(client, washer_user, in_progress, before=before, after=after)

    assert response.status_code == 400


def test_client_can_view_proof(client, client_user, washer_user, factory, in_progress):
    upload(client, washer_user, in_progress)

    assert client.get(
        f"/service-proof/{in_progress.id}", headers=auth_headers(client_user)
    ).json()["beforePhotos"] == BEFORE
    assert client.get(
        f"/service-proof/{in_progress.id}", headers=auth_headers(factory.user())
    ).status_code == 403


def test_missing_proof(client, client_user, in_progress):
    response = client.get(f"/service-proof/{in_progress.id}", headers=auth_headers(client_user))

    assert response.status_code == 404


def test_admin_deletes_proof(client, admin_user, washer_user, in_progress):
    upload(client, washer_user, in_progress)

    denied = client.delete(f"/service-proof/{in_progress.id}", headers=auth_headers(washer_user))
    deleted = client.delete(f"/service-proof/{in_progress.id}", headers=auth_headers(admin_user))

    assert denied.status_code == 403
    assert deleted.status_code == 200
    assert client.get(
        f"/service-proof/{in_progress.id}", headers=auth_headers(admin_user)
    ).status_code == 404


def test_proof_after_payment_still_credits_washer(
    client, db, client_user, washer_user, in_progress
):
    client.post(
        "/payments",
        json={"reservationId": in_progress.id, "amount": 300},
        headers=auth_headers(client_user),
    )
    db.expire_all()
    assert db.query(Reservation).filter(Reservation.id == in_progress.id).one().status == "COMPLETED"

    response = upload(client, washer_user, in_progress)
    upload(client, washer_user, in_progress)

    assert response.status_code == 201
    db.expire_all()
    reservation = db.query(Reservation).filter(Reservation.id == in_progress.id).one()
    assert reservation.status == "COMPLETED"
    assert reservation.serviced_at is not None
    assert db.query(User).filter(User.id == washer_user.id).one().completed_services == 1
    serviced = (
        db.query(Notification)
        .filter(
            Notification.user_id == client_user.id,
            Notification.type == NotificationType.SERVICE_COMPLETED.value,
        )
        .count()
    )
    assert serviced == 1
