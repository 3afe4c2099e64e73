def test_root(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json() == {"message": "Car Wash On Demand API is running"}


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "database": "ok"}


def test_security_headers(client):
    response = client.get("/")

    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["Cache-Control"] == "no-store"


def test_health_skips_security_headers(client):
    response = client.get("/health")

    assert "X-Frame-Options" not in response.headers


def test_unknown_route_uses_error_body(client):
    response = client.get("/nowhere")

    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"
    assert set(response.json()) == {"error", "code", "details"}


def test_wrong_method(client):
    response = client.delete("/")

    assert response.status_code == 405
    assert response.json()["code"] == "METHOD_NOT_ALLOWED"
