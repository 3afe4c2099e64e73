import pytest

from carwash.models import Notification, Rating, User
from carwash.shared.enums import NotificationType, ReservationStatus

from .conftest import auth_headers


@pytest.fixture
def completed(factory, client_user, washer_user):
    return factory.reservation(client_user, status=ReservationStatus.COMPLETED, washer=washer_user)


def add_prior_rating(db, factory, washer, stars):
    rater = factory.user()
    reservation = factory.reservation(rater, status=ReservationStatus.COMPLETED, washer=washer)
    db.add(Rating(reservation_id=reservation.id, user_id=rater.id, washer_id=washer.id, stars=stars))
    db.commit()


def test_rating_recomputes_washer_mean(client, db, factory, client_user, washer_user, completed):
    add_prior_rating(db, factory, washer_user, 4)
    add_prior_rating(db, factory, washer_user, 5)

    response = client.post(
        "/ratings",
        json={"reservationId": completed.id, "stars": 5, "comment": "Spotless"},
        headers=auth_headers(client_user),
    )

    assert response.status_code == 201
    assert response.json()["washerId"] == washer_user.id
    db.expire_all()
    washer = db.query(User).filter(User.id == washer_user.id).one()
    assert washer.rating == pytest.approx(14 / 3)
    assert round(washer.rating, 2) == 4.67


def test_rating_notifies_washer(client, db, client_user, washer_user, completed):
    client.post(
        "/ratings", json={"reservationId": completed.id, "stars": 4}, headers=auth_headers(client_user)
    )

    db.expire_all()
    notification = db.query(Notification).filter(Notification.user_id == washer_user.id).one()
    assert notification.type == NotificationType.RATING_RECEIVED.value
    assert notification.extra["stars"] == 4


def test_second_rating_is_rejected(client, db, client_user, completed):
    first = client.post(
        "/ratings", json={"reservationId": completed.id, "stars": 5}, headers=auth_headers(client_user)
    )
    second = client.post(
        f"/reservations/{completed.id}/rating", json={"stars": 1}, headers=auth_headers(client_user)
    )

    assert first.status_code == 201
    assert second.status_code == 409
    assert second.json()["code"] == "ALREADY_RATED"
    db.expire_all()
    assert db.query(Rating).filter(Rating.reservation_id == completed.id).count() == 1


def test_rating_alias_route(client, client_user, completed):
    response = client.post(
        f"/reservations/{completed.id}/rating", json={"stars": 3}, headers=auth_headers(client_user)
    )

    assert response.status_code == 201
    assert response.json()["reservationId"] == completed.id


def test_only_the_reservation_client_can_rate(client, factory, completed):
    response = client.post(
        "/ratings",
        json={"reservationId": completed.id, "stars": 5},
        headers=auth_headers(factory.user()),
    )

    assert response.status_code == 403


def test_cannot_rate_unfinished_reservation(client, factory, client_user, washer_user):
    reservation = factory.reservation(
        client_user, status=ReservationStatus.IN_PROGRESS, washer=washer_user
    )

    response = client.post(
        "/ratings", json={"reservationId": reservation.id, "stars": 5}, headers=auth_headers(client_user)
    )

    assert response.status_code == 409
    assert response.json()["code"] == "INVALID_TRANSITION"


def test_cannot_rate_without_washer(client, factory, client_user):
    reservation = factory.reservation(client_user, status=ReservationStatus.COMPLETED)

    response = client.post(
        "/ratings", json={"reservationId": reservation.id, "stars": 5}, headers=auth_headers(client_user)
    )

    assert response.status_code == 409
    assert response.json()["code"] == "JOB_NOT_AVAILABLE"


@pytest.mark.parametrize("stars", [0, 6, 4.5])
def test_stars_out_of_range(client, client_user, completed, stars):
    response = client.post(
        "/ratings", json={"reservationId": completed.id, "stars": stars}, headers=auth_headers(client_user)
    )

    assert response.status_code == 400


def test_rating_unknown_reservation(client, client_user):
    response = client.post(
        "/ratings", json={"reservationId": "res_missing", "stars": 5}, headers=auth_headers(client_user)
    )

    assert response.status_code == 404


def test_get_reservation_rating_visibility(client, factory, client_user, washer_user, completed):
    client.post(
        "/ratings", json={"reservationId": completed.id, "stars": 5}, headers=auth_headers(client_user)
    )

    assert client.get(
        f"/ratings/reservation/{completed.id}", headers=auth_headers(washer_user)
    ).json()["stars"] == 5
    assert client.get(
        f"/ratings/reservation/{completed.id}", headers=auth_headers(factory.user())
    ).status_code == 403


def test_washer_rating_summary(client, db, factory, client_user, washer_user):
    for stars in (5, 5, 4, 1):
        add_prior_rating(db, factory, washer_user, stars)

    response = client.get(f"/ratings/washer/{washer_user.id}", headers=auth_headers(client_user))

    body = response.json()
    assert body["total"] == 4
    assert body["average"] == 3.8
    assert body["starDistribution"] == {"1": 1, "2": 0, "3": 0, "4": 1, "5": 2}
