from datetime import datetime, timezone

import psycopg2.errors


def test_register_success(client, mock_db):
    _, _, mock_cursor = mock_db

    # RETURNING id, name, email, created_at
    mock_cursor.fetchone.return_value = {
        "id": 1,
        "name": "Test User",
        "email": "test@example.com",
        "created_at": datetime(2030, 1, 1, tzinfo=timezone.utc),
    }

    payload = {"name": "Test User", "email": "test@example.com", "password": "password123"}

    response = client.post("/auth/register", json=payload)

    assert response.status_code == 201
    data = response.get_json()
    assert data["user"]["id"] == 1
    assert data["user"]["email"] == "test@example.com"
    assert "password_hash" not in data["user"]
    assert "token" in data

    # Verify DB interaction
    args, _ = mock_cursor.execute.call_args
    assert args[1][1] == "test@example.com"
    assert args[1][2] != "password123"


def test_register_missing_fields(client, mock_db):
    response = client.post("/auth/register", json={})
    assert response.status_code == 400
    assert "required" in response.get_json()["error"]


def test_register_without_json_body(client):
    response = client.post("/auth/register", data="not json")
    assert response.status_code == 400


def test_register_duplicate_email(client, mock_db):
    _, _, mock_cursor = mock_db
    mock_cursor.execute.side_effect = psycopg2.errors.UniqueViolation("duplicate key")

    response = client.post(
        "/auth/register",
        json={"name": "Test", "email": "test@example.com", "password": "password123"},
    )

    assert response.status_code == 400
    assert response.get_json()["error"] == "Email already registered"


def test_login_success(client, app, mock_db):
    _, _, mock_cursor = mock_db
    identity = app.extensions["identity"]

    mock_cursor.fetchone.return_value = {
        "id": 1,
        "name": "Test User",
        "email": "test@example.com",
        "password_hash": identity.hash_password("password123"),
        "created_at": None,
    }

    response = client.post("/auth/login", json={"email": "test@example.com", "password": "password123"})

    assert response.status_code == 200
    data = response.get_json()
    assert data["user"]["id"] == 1
    assert identity.verify_token(data["token"]) == 1


def test_login_invalid_credentials(client, app, mock_db):
    _, _, mock_cursor = mock_db
    identity = app.extensions["identity"]

    mock_cursor.fetchone.return_value = {
        "id": 1,
        "name": "Test User",
        "email": "test@example.com",
        "password_hash": identity.hash_password("password123"),
        "created_at": None,
    }

    response = client.post("/auth/login", json={"email": "test@example.com", "password": "wrongpassword"})

    assert response.status_code == 401
    assert response.get_json()["error"] == "Invalid credentials"


def test_login_unknown_email(client, mock_db):
    _, _, mock_cursor = mock_db
    mock_cursor.fetchone.return_value = None

    response = client.post("/auth/login", json={"email": "ghost@example.com", "password": "password123"})

    assert response.status_code == 401
    assert response.get_json()["error"] == "Invalid credentials"


def test_get_me_success(client, mock_db, auth_headers):
    _, _, mock_cursor = mock_db
    mock_cursor.fetchone.return_value = {
        "id": 1,
        "name": "Test User",
        "email": "test@example.com",
        "created_at": None,
    }

    response = client.get("/auth/me", headers=auth_headers(1))

    assert response.status_code == 200
    assert response.get_json()["email"] == "test@example.com"


def test_get_me_unauthorized(client, mock_db):
    _, _, mock_cursor = mock_db

    response = client.get("/auth/me")

    assert response.status_code == 401
    assert response.get_json()["error"] == "Missing token"
    mock_cursor.execute.assert_not_called()


def test_register_rejects_non_string_name(client, mock_db):
    _, _, mock_cursor = mock_db

    response = client.post(
        "/auth/register",
        json={"name": 123, "email": "test@example.com", "password": "password123"},
    )

    assert response.status_code == 400
    assert response.get_json()["error"] == "name must be a string"
    mock_cursor.execute.assert_not_called()


def test_register_rejects_list_body(client, mock_db):
    response = client.post("/auth/register", json=["a"])

    assert response.status_code == 400
    assert response.get_json()["error"] == "Invalid JSON body"


def test_login_rejects_non_string_password(client, mock_db):
    _, _, mock_cursor = mock_db

    response = client.post("/auth/login", json={"email": "test@example.com", "password": 1234567})

    assert response.status_code == 400
    assert response.get_json()["error"] == "password must be a string"
    mock_cursor.execute.assert_not_called()


def test_login_rejects_list_body(client, mock_db):
    response = client.post("/auth/login", json=["a"])
    assert response.status_code == 400
