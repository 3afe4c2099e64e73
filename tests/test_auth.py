from carwash.shared.enums import Role

from .conftest import PASSWORD, auth_headers


def register(client, **overrides):
    payload = {
        "email": "Maria@Example.com",
        "password": "super-secret-1",
        "name": "Maria",
        "phone": "+52 55 1234 5678",
    }
    payload.update(overrides)
    return client.post("/auth/register", json=payload)


def test_register_returns_token_and_normalised_user(client):
    response = register(client)

    assert response.status_code == 201
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["access_token"]
    assert body["user"]["email"] == "maria@example.com"
    assert body["user"]["phone"] == "+525512345678"
    assert body["user"]["role"] == "CLIENT"


def test_register_duplicate_email_conflicts(client):
    register(client)
    response = register(client, email="maria@example.com")

    assert response.status_code == 409
    assert response.json()["code"] == "DUPLICATE_EMAIL"


def test_register_as_admin_is_forbidden(client):
    response = register(client, role="ADMIN")

    assert response.status_code == 403
    assert response.json()["code"] == "FORBIDDEN"


def test_register_rejects_short_password_with_400(client):
    response = register(client, password="short")

    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert body["details"]


def test_login(client, client_user):
    response = client.post("/auth/login", json={"email": client_user.email, "password": PASSWORD})

    assert response.status_code == 200
    assert response.json()["user"]["id"] == client_user.id


def test_login_wrong_password(client, client_user):
    response = client.post("/auth/login", json={"email": client_user.email, "password": "nope-nope"})

    assert response.status_code == 401
    assert response.json() == {
        "error": "Invalid email or password",
        "code": "NOT_AUTHENTICATED",
        "details": None,
    }


def test_me_requires_token(client):
    response = client.get("/users/me")

    assert response.status_code == 401
    assert response.json()["code"] == "NOT_AUTHENTICATED"


def test_me_rejects_garbage_token(client):
    response = client.get("/users/me", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401


def test_deactivated_user_token_is_rejected(client, factory):
    user = factory.user(is_active=False)

    response = client.get("/users/me", headers=auth_headers(user))

    assert response.status_code == 401


def test_washer_updates_location(client, washer_user):
    response = client.post(
        "/users/me/location",
        json={"latitude": 19.41, "longitude": -99.17},
        headers=auth_headers(washer_user),
    )

    assert response.status_code == 200
    assert response.json()["latitude"] == 19.41


def test_client_cannot_update_location(client, client_user):
    response = client.post(
        "/users/me/location",
        json={"latitude": 19.41, "longitude": -99.17},
        headers=auth_headers(client_user),
    )

    assert response.status_code == 400


def test_location_out_of_range(client, washer_user):
    response = client.post(
        "/users/me/location",
        json={"latitude": 91, "longitude": 0},
        headers=auth_headers(washer_user),
    )

    assert response.status_code == 400


def test_admin_lists_users_by_role(client, admin_user, client_user, washer_user):
    response = client.get("/users?role=WASHER", headers=auth_headers(admin_user))

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 1
    assert body["users"][0]["id"] == washer_user.id


def test_non_admin_cannot_list_users(client, client_user):
    response = client.get("/users", headers=auth_headers(client_user))

    assert response.status_code == 403


def test_admin_deactivates_user(client, admin_user, factory):
    target = factory.user(Role.CLIENT)

    response = client.delete(f"/users/{target.id}", headers=auth_headers(admin_user))

    assert response.status_code == 200
    assert response.json()["isActive"] is False


def test_admin_cannot_deactivate_self(client, admin_user):
    response = client.delete(f"/users/{admin_user.id}", headers=auth_headers(admin_user))

    assert response.status_code == 400
