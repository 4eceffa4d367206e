"""HTTP tests for registration, login, logout, deletion and session checks."""

from datetime import datetime, timedelta, timezone

from social.services.session_service import Claim, issue_token, validate_token

from conftest import TEST_SECRET, FakeRedis, user_payload


def auth_cookie(client):
    cookie = client.get_cookie("auth_key")
    return cookie.value if cookie else None


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.get_json()["status"] == "healthy"


def test_create_user_sets_session_cookie(client):
    response = client.post("/user/create", json=user_payload("ana"))

    assert response.status_code == 201
    assert response.get_json() == {"message": "User created"}
    set_cookie = response.headers["Set-Cookie"]
    assert "auth_key=" in set_cookie
    assert "HttpOnly" in set_cookie

    claim = validate_token(auth_cookie(client), TEST_SECRET)
    assert claim.user_at == "ana"
    assert claim.email == "ana@example.com"

    assert client.get("/auth/validate").get_json() == {"message": "Authorized"}


def test_create_user_normalizes_handle_and_email(client, make_client):
    response = client.post("/user/create", json=user_payload("ana", userAt="@Ana", email="ANA@Example.com"))
    assert response.status_code == 201

    claim = validate_token(auth_cookie(client), TEST_SECRET)
    assert claim.user_at == "ana"
    assert claim.email == "ana@example.com"

    other = make_client()
    response = other.post("/user/login", json={"email": "ana@example.com", "password": "Password123"})
    assert response.status_code == 200


def test_duplicate_handle_is_rejected(client, make_client, register):
    register(client, "ana")

    response = make_client().post("/user/create", json=user_payload("ana", email="other@example.com"))
    assert response.status_code == 400
    assert response.get_json() == {"error": "Username already in use"}


def test_duplicate_email_is_rejected(client, make_client, register):
    register(client, "ana")

    response = make_client().post("/user/create", json=user_payload("bob", email="ana@example.com"))
    assert response.status_code == 400
    assert response.get_json() == {"error": "Email already in use"}


def test_create_user_validation_errors(client):
    cases = [
        (user_payload("ana", userAt="a-b"), "user_at invalid character"),
        (user_payload("ana", userName="A"), "username too short"),
        (user_payload("ana", email="not-an-email"), "email invalid email"),
        (user_payload("ana", password="short"), "password too short"),
    ]
    for payload, message in cases:
        response = client.post("/user/create", json=payload)
        assert response.status_code == 400
        assert response.get_json() == {"error": message}

    response = client.post("/user/create", data="not json", content_type="text/plain")
    assert response.status_code == 400


def test_login(client, make_client, register):
    register(client, "ana")
    other = make_client()

    response = other.post("/user/login", json={"email": "ana@example.com", "password": "Password124"})
    assert response.status_code == 400
    assert response.get_json() == {"error": "Invalid credentials"}

    response = other.post("/user/login", json={"email": "nobody@example.com", "password": "Password123"})
    assert response.status_code == 400
    assert response.get_json() == {"error": "Invalid credentials"}
    assert auth_cookie(other) is None

    response = other.post("/user/login", json={"email": "ana@example.com", "password": "Password123"})
    assert response.status_code == 200
    assert response.get_json() == {"message": "Ok"}
    assert other.get("/auth/validate").status_code == 200


def test_validate_without_or_with_bad_cookie(client):
    response = client.get("/auth/validate")
    assert response.status_code == 403
    assert response.get_json() == {"error": "No credentials"}

    client.set_cookie("auth_key", "garbage")
    response = client.get("/auth/validate")
    assert response.status_code == 403
    assert response.get_json() == {"error": "Invalid JSON Web Token"}


def test_expired_cookie_is_rejected(client, register):
    register(client, "ana")
    claim = validate_token(auth_cookie(client), TEST_SECRET)

    stale = issue_token(claim, TEST_SECRET, now=datetime.now(timezone.utc) - timedelta(days=8))
    client.set_cookie("auth_key", stale)

    assert client.get("/auth/validate").status_code == 403
    assert client.get("/user/data").status_code == 403


def test_logout_clears_cookie(client, register):
    register(client, "ana")

    response = client.post("/user/log-out")
    assert response.status_code == 200
    assert response.get_json() == {"message": "Cookie removed"}
    assert auth_cookie(client) is None
    assert client.get("/auth/validate").get_json() == {"error": "No credentials"}

    assert client.post("/user/log-out").status_code == 400


def test_logout_revokes_token_when_store_available(app, client, register):
    app.extensions["revocation_service"].redis_client = FakeRedis()
    register(client, "ana")
    token = auth_cookie(client)

    assert client.post("/user/log-out").status_code == 200

    client.set_cookie("auth_key", token)
    response = client.get("/auth/validate")
    assert response.status_code == 403
    assert response.get_json() == {"error": "Invalid JSON Web Token"}


def test_token_without_store_stays_valid_after_logout(client, register):
    register(client, "ana")
    token = auth_cookie(client)

    client.post("/user/log-out")
    client.set_cookie("auth_key", token)
    assert client.get("/auth/validate").status_code == 200


def test_delete_requires_session(client):
    response = client.delete("/user/delete")
    assert response.status_code == 403


def test_delete_account(client, make_client, register):
    register(client, "ana")

    response = client.delete("/user/delete")
    assert response.status_code == 204
    assert auth_cookie(client) is None

    response = make_client().post("/user/login", json={"email": "ana@example.com", "password": "Password123"})
    assert response.status_code == 400

    assert make_client().get("/user/profile/ana").status_code == 404


def test_token_for_deleted_user_is_unauthorized(client, make_client, register):
    register(client, "ana")
    token = auth_cookie(client)
    client.delete("/user/delete")

    stale = make_client()
    stale.set_cookie("auth_key", token)
    assert stale.get("/user/data").status_code == 403


def test_forged_claim_for_other_user_is_rejected(client, register):
    register(client, "ana")
    forged = issue_token(Claim(id=999, user_at="ana", email="ana@example.com"), TEST_SECRET)
    client.set_cookie("auth_key", forged)

    assert client.get("/user/data").status_code == 403


def test_cors_preflight_allows_configured_origin(client):
    response = client.options(
        "/user/login",
        headers={
            "Origin": "http://client.test",
            "Access-Control-Request-Method": "POST",
        },
    )
    assert response.status_code in (200, 204)
    assert response.headers["Access-Control-Allow-Origin"] == "http://client.test"
    assert response.headers["Access-Control-Allow-Credentials"] == "true"

    response = client.options(
        "/user/login",
        headers={
            "Origin": "http://evil.test",
            "Access-Control-Request-Method": "POST",
        },
    )
    assert "Access-Control-Allow-Origin" not in response.headers
