from carwash.models import Notification, Payment, Reservation
from carwash.shared.enums import NotificationType, ReservationStatus

from .conftest import auth_headers


def booking(vehicle, service, **overrides):
    payload = {
        "vehicleId": vehicle.id,
        "serviceId": service.id,
        "scheduledDate": "2025-07-01",
        "scheduledTime": "09:30",
        "address": "Av. Reforma 222",
        "latitude": 19.4270,
        "longitude": -99.1677,
    }
    payload.update(overrides)
    return payload


def test_create_snapshots_service_price(client, client_user, admin_user, factory):
    vehicle = factory.vehicle(client_user)
    service = factory.service(price=300.0)

    response = client.post(
        "/reservations", json=booking(vehicle, service), headers=auth_headers(client_user)
    )
    assert response.status_code == 201
    reservation_id = response.json()["id"]
    assert response.json()["totalAmount"] == 300.0
    assert response.json()["status"] == "PENDING"
    assert response.json()["washerId"] is None

    client.put(f"/services/{service.id}", json={"price": 350}, headers=auth_headers(admin_user))

    detail = client.get(f"/reservations/{reservation_id}", headers=auth_headers(client_user))
    assert detail.json()["totalAmount"] == 300.0
    assert detail.json()["payment"] == {
        "totalAmount": 300.0,
        "totalPaid": 0.0,
        "balance": 300.0,
        "isPaid": False,
    }


def test_create_with_foreign_vehicle_is_forbidden(client, client_user, factory):
    foreign = factory.vehicle(factory.user())

    response = client.post(
        "/reservations", json=booking(foreign, factory.service()), headers=auth_headers(client_user)
    )

    assert response.status_code == 403


def test_create_with_inactive_service_is_not_found(client, client_user, factory):
    vehicle = factory.vehicle(client_user)
    service = factory.service(is_active=False)

    response = client.post(
        "/reservations", json=booking(vehicle, service), headers=auth_headers(client_user)
    )

    assert response.status_code == 404


def test_create_rejects_bad_time(client, client_user, factory):
    vehicle = factory.vehicle(client_user)

    response = client.post(
        "/reservations",
        json=booking(vehicle, factory.service(), scheduledTime="25:00"),
        headers=auth_headers(client_user),
    )

    assert response.status_code == 400


def test_create_requires_both_coordinates(client, client_user, factory):
    vehicle = factory.vehicle(client_user)
    payload = booking(vehicle, factory.service())
    del payload["longitude"]

    response = client.post("/reservations", json=payload, headers=auth_headers(client_user))

    assert response.status_code == 400


def test_washer_cannot_book(client, washer_user, factory):
    owner = factory.user()
    response = client.post(
        "/reservations",
        json=booking(factory.vehicle(owner), factory.service()),
        headers=auth_headers(washer_user),
    )

    assert response.status_code == 403


def test_listing_is_scoped_by_role(client, client_user, washer_user, admin_user, factory):
    mine = factory.reservation(client_user)
    assigned = factory.reservation(
        factory.user(), status=ReservationStatus.CONFIRMED, washer=washer_user
    )

    as_client = client.get("/reservations", headers=auth_headers(client_user)).json()
    as_washer = client.get("/reservations", headers=auth_headers(washer_user)).json()
    as_admin = client.get("/reservations", headers=auth_headers(admin_user)).json()

    assert [r["id"] for r in as_client["reservations"]] == [mine.id]
    assert [r["id"] for r in as_washer["reservations"]] == [assigned.id]
    assert as_admin["total"] == 2


def test_client_cannot_view_foreign_reservation(client, client_user, factory):
    foreign = factory.reservation(factory.user())

    response = client.get(f"/reservations/{foreign.id}", headers=auth_headers(client_user))

    assert response.status_code == 403


def test_stats_count_by_status(client, client_user, factory):
    factory.reservation(client_user)
    factory.reservation(client_user)
    factory.reservation(client_user, status=ReservationStatus.CANCELLED)

    response = client.get("/reservations/stats", headers=auth_headers(client_user))

    assert response.json()["total"] == 3
    assert response.json()["byStatus"]["PENDING"] == 2
    assert response.json()["byStatus"]["CANCELLED"] == 1


def test_client_cancels_confirmed_reservation(client, db, client_user, washer_user, factory):
    reservation = factory.reservation(
        client_user, status=ReservationStatus.CONFIRMED, washer=washer_user
    )

    response = client.patch(
        f"/reservations/{reservation.id}/status",
        json={"status": "CANCELLED"},
        headers=auth_headers(client_user),
    )

    assert response.status_code == 200
    assert response.json()["status"] == "CANCELLED"
    assert response.json()["cancelledAt"] is not None
    notified = db.query(Notification).filter(Notification.user_id == washer_user.id).all()
    assert [n.type for n in notified] == [NotificationType.RESERVATION_CANCELLED.value]


def test_client_cannot_complete_reservation(client, client_user, factory):
    reservation = factory.reservation(client_user)

    response = client.patch(
        f"/reservations/{reservation.id}/status",
        json={"status": "COMPLETED"},
        headers=auth_headers(client_user),
    )

    assert response.status_code == 403


def test_cannot_cancel_in_progress(client, client_user, washer_user, factory):
    reservation = factory.reservation(
        client_user, status=ReservationStatus.IN_PROGRESS, washer=washer_user
    )

    response = client.patch(
        f"/reservations/{reservation.id}/status",
        json={"status": "CANCELLED"},
        headers=auth_headers(client_user),
    )

    assert response.status_code == 409
    assert response.json()["code"] == "INVALID_TRANSITION"


def test_admin_cannot_skip_to_completed_from_pending(client, admin_user, client_user, factory):
    reservation = factory.reservation(client_user)

    response = client.patch(
        f"/reservations/{reservation.id}/status",
        json={"status": "COMPLETED"},
        headers=auth_headers(admin_user),
    )

    assert response.status_code == 409


def test_client_edits_pending_reservation(client, client_user, factory):
    reservation = factory.reservation(client_user)
    premium = factory.service(name="Premium", price=500.0)

    response = client.put(
        f"/reservations/{reservation.id}",
        json={"serviceId": premium.id, "notes": "Gate code 1234"},
        headers=auth_headers(client_user),
    )

    assert response.status_code == 200
    assert response.json()["totalAmount"] == 500.0
    assert response.json()["notes"] == "Gate code 1234"


def test_client_cannot_edit_confirmed_reservation(client, client_user, washer_user, factory):
    reservation = factory.reservation(
        client_user, status=ReservationStatus.CONFIRMED, washer=washer_user
    )

    response = client.put(
        f"/reservations/{reservation.id}", json={"notes": "late"}, headers=auth_headers(client_user)
    )

    assert response.status_code == 409


def test_delete_reservation_without_payments(client, db, client_user, factory):
    reservation = factory.reservation(client_user)

    response = client.delete(f"/reservations/{reservation.id}", headers=auth_headers(client_user))

    assert response.status_code == 200
    db.expire_all()
    assert db.query(Reservation).filter(Reservation.id == reservation.id).first() is None


def test_delete_reservation_with_completed_payment_is_rejected(client, db, client_user, factory):
    reservation = factory.reservation(client_user)
    db.add(
        Payment(
            reservation_id=reservation.id, amount=100.0, status="COMPLETED", payment_method="CASH"
        )
    )
    db.commit()

    response = client.delete(f"/reservations/{reservation.id}", headers=auth_headers(client_user))

    assert response.status_code == 409
    assert response.json()["code"] == "RESERVATION_HAS_PAYMENTS"


def add_completed_payment(db, reservation, amount):
    db.add(
        Payment(
            reservation_id=reservation.id, amount=amount, status="COMPLETED", payment_method="CASH"
        )
    )
    db.commit()


def test_cheaper_service_settles_covered_reservation(
    client, db, admin_user, client_user, washer_user, factory
):
    reservation = factory.reservation(
        client_user, status=ReservationStatus.CONFIRMED, washer=washer_user
    )
    add_completed_payment(db, reservation, 150.0)
    basic = factory.service(name="Basic", price=150.0)

    response = client.put(
        f"/reservations/{reservation.id}",
        json={"serviceId": basic.id},
        headers=auth_headers(admin_user),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["totalAmount"] == 150.0
    assert body["status"] == "COMPLETED"
    assert body["paidAt"] is not None
    assert body["payment"]["isPaid"] is True
    db.expire_all()
    notified = db.query(Notification).filter(Notification.user_id == client_user.id).all()
    assert [n.type for n in notified] == [NotificationType.PAYMENT_RECEIVED.value]


def test_pricier_service_clears_paid_stamp(
    client, db, monkeypatch, admin_user, client_user, washer_user, factory
):
    from carwash import config

    monkeypatch.setattr(config, "COMPLETION_POLICY", "service")
    reservation = factory.reservation(
        client_user, status=ReservationStatus.CONFIRMED, washer=washer_user
    )
    client.post(
        "/payments",
        json={"reservationId": reservation.id, "amount": 300},
        headers=auth_headers(client_user),
    )
    premium = factory.service(name="Premium", price=500.0)

    response = client.put(
        f"/reservations/{reservation.id}",
        json={"serviceId": premium.id},
        headers=auth_headers(admin_user),
    )

    body = response.json()
    assert body["status"] == "CONFIRMED"
    assert body["paidAt"] is None
    assert body["payment"]["balance"] == 200.0
    assert body["payment"]["isPaid"] is False
