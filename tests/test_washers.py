import pytest

from carwash.domain.washers.service import WasherService
from carwash.models import Rating
from carwash.shared.enums import ReservationStatus
from carwash.shared.errors import ValidationFailed

from .conftest import auth_headers

CLIENT_POINT = "latitude=19.4100&longitude=-99.1700"


def test_nearby_includes_washer_within_radius(client, client_user, factory):
    washer = factory.washer(latitude=19.4126, longitude=-99.1710)

    response = client.get(f"/washers/nearby?{CLIENT_POINT}&radius=10", headers=auth_headers(client_user))

    assert response.status_code == 200
    body = response.json()
    assert [w["id"] for w in body] == [washer.id]
    assert body[0]["distance"] == 0.3
    assert body[0]["isAvailable"] is True


def test_nearby_excludes_washer_outside_radius(client, client_user, factory):
    factory.washer(latitude=19.4126, longitude=-99.1710)

    response = client.get(f"/washers/nearby?{CLIENT_POINT}&radius=0.1", headers=auth_headers(client_user))

    assert response.json() == []


def test_nearby_defaults_to_ten_km(client, client_user, factory):
    factory.washer(latitude=19.4126, longitude=-99.1710)
    factory.washer(latitude=19.5500, longitude=-99.1700)  # ~15.6 km north

    response = client.get(f"/washers/nearby?{CLIENT_POINT}", headers=auth_headers(client_user))

    assert len(response.json()) == 1


def test_nearby_skips_unavailable_and_unlocated_washers(client, client_user, factory):
    factory.washer(latitude=19.4126, longitude=-99.1710, is_available=False)
    factory.washer()

    response = client.get(f"/washers/nearby?{CLIENT_POINT}", headers=auth_headers(client_user))

    assert response.json() == []


def test_nearby_sorted_and_flags_busy_washers(client, client_user, factory):
    far = factory.washer(latitude=19.4300, longitude=-99.1700)
    near = factory.washer(latitude=19.4126, longitude=-99.1710)
    factory.reservation(client_user, status=ReservationStatus.IN_PROGRESS, washer=near)

    response = client.get(f"/washers/nearby?{CLIENT_POINT}", headers=auth_headers(client_user))

    body = response.json()
    assert [w["id"] for w in body] == [near.id, far.id]
    assert body[0]["isAvailable"] is False
    assert body[1]["isAvailable"] is True


@pytest.mark.parametrize("radius", ["0", "-5", "nan", "inf"])
def test_nearby_rejects_invalid_radius(client, client_user, factory, radius):
    factory.washer(latitude=-33.8688, longitude=151.2093)  # Sydney

    response = client.get(
        f"/washers/nearby?{CLIENT_POINT}&radius={radius}", headers=auth_headers(client_user)
    )

    assert response.status_code == 400


@pytest.mark.parametrize("radius", [float("nan"), float("inf"), 0.0])
def test_find_nearby_rejects_non_finite_radius(db, radius):
    with pytest.raises(ValidationFailed):
        WasherService(db).find_nearby(19.41, -99.17, radius)


def test_nearby_requires_coordinates(client, client_user):
    response = client.get("/washers/nearby", headers=auth_headers(client_user))

    assert response.status_code == 400


def test_washer_cannot_search_washers(client, washer_user):
    response = client.get(f"/washers/nearby?{CLIENT_POINT}", headers=auth_headers(washer_user))

    assert response.status_code == 403


def test_availability_toggles_when_omitted(client, washer_user):
    response = client.post("/washers/availability", json={}, headers=auth_headers(washer_user))

    assert response.status_code == 200
    assert response.json()["isAvailable"] is False


def test_availability_sets_location(client, washer_user):
    response = client.post(
        "/washers/availability",
        json={"isAvailable": True, "latitude": 19.5, "longitude": -99.2},
        headers=auth_headers(washer_user),
    )

    assert response.json() == {
        "id": washer_user.id,
        "isAvailable": True,
        "latitude": 19.5,
        "longitude": -99.2,
    }


def test_availability_needs_both_coordinates(client, washer_user):
    response = client.post(
        "/washers/availability", json={"latitude": 19.5}, headers=auth_headers(washer_user)
    )

    assert response.status_code == 400


def test_washer_stats(client, db, client_user, washer_user, factory):
    done = [
        factory.reservation(client_user, status=ReservationStatus.COMPLETED, washer=washer_user)
        for _ in range(3)
    ]
    factory.reservation(client_user, status=ReservationStatus.CONFIRMED, washer=washer_user)
    for reservation, stars in zip(done, (4, 5, 5)):
        db.add(
            Rating(
                reservation_id=reservation.id,
                user_id=client_user.id,
                washer_id=washer_user.id,
                stars=stars,
            )
        )
    db.commit()

    response = client.get(f"/washers/{washer_user.id}/stats", headers=auth_headers(client_user))

    body = response.json()
    assert body["totalJobs"] == 4
    assert body["completedJobs"] == 3
    assert body["completionRate"] == 75
    assert body["averageRating"] == 4.7
    assert body["totalRatings"] == 3
    assert len(body["recentRatings"]) == 3


def test_stats_for_unknown_washer(client, client_user):
    response = client.get("/washers/usr_missing/stats", headers=auth_headers(client_user))

    assert response.status_code == 404
