from tests.conftest import register_and_login


def test_register_and_login(client):
    response = client.post(
        "/api/v1/auth/register", json={"email": "New@Example.com", "password": "longenough"}
    )
    assert response.status_code == 201
    assert response.json()["email"] == "new@example.com"

    response = client.post(
        "/api/v1/auth/login", json={"email": "new@example.com", "password": "longenough"}
    )
    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["email"] == "new@example.com"

    me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert me.status_code == 200
    assert me.json()["email"] == "new@example.com"


def test_duplicate_registration_rejected(client):
    payload = {"email": "dup@example.com", "password": "longenough"}
    assert client.post("/api/v1/auth/register", json=payload).status_code == 201

    response = client.post("/api/v1/auth/register", json=payload)
    assert response.status_code == 400
    assert response.json()["success"] is False
    assert "already registered" in response.json()["message"]


def test_short_password_fails_validation(client):
    response = client.post("/api/v1/auth/register", json={"email": "a@example.com", "password": "short"})
    assert response.status_code == 422
    assert response.json()["message"] == "Validation failed"


def test_wrong_password(client):
    register_and_login(client, "who@example.com", "correct-horse")
    response = client.post("/api/v1/auth/login", json={"email": "who@example.com", "password": "wrong-horse"})
    assert response.status_code == 401


def test_token_endpoint_accepts_form(client):
    register_and_login(client, "form@example.com", "correct-horse")
    response = client.post(
        "/api/v1/auth/token", data={"username": "form@example.com", "password": "correct-horse"}
    )
    assert response.status_code == 200
    assert response.json()["access_token"]


def test_protected_routes_require_token(client):
    assert client.get("/api/v1/auth/me").status_code == 401
    assert client.get("/api/v1/invoices").status_code == 401
    response = client.get("/api/v1/dashboard", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid token"


def test_logout(client):
    response = client.get("/api/v1/auth/logout")
    assert response.status_code == 200
    assert response.json()["message"] == "Logged out Successfully"


def test_profile_roundtrip(client, auth_headers):
    response = client.get("/api/v1/profile", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["email"] == "owner@example.com"
    assert response.json()["business_name"] is None

    response = client.put(
        "/api/v1/profile",
        headers=auth_headers,
        json={
            "full_name": "Ada Obi",
            "business_name": "Obi Studio",
            "business_type": "services",
            "phone": "08031234567",
            "location": "Lagos",
        },
    )
    assert response.status_code == 200
    assert response.json()["business_name"] == "Obi Studio"

    response = client.get("/api/v1/profile", headers=auth_headers)
    assert response.json()["business_type"] == "services"
    assert response.json()["location"] == "Lagos"


def test_root(client):
    assert client.get("/").json() == {"message": "Welcome to the VATBook APIs!"}
