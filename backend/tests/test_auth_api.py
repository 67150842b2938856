import pytest
from fastapi.testclient import TestClient

from app.main import create_app

from conftest import TEST_PASSWORD, make_settings

LOGIN_URL = "/api/v1/auth/login"


def _cookie_headers(response, name):
    return [h.lower() for h in response.headers.get_list("set-cookie") if h.startswith(f"{name}=")]


def _login(client, email, password=TEST_PASSWORD):
    return client.post(LOGIN_URL, json={"email": email, "password": password})


def test_bootstrap_only_once(client):
    assert client.get("/api/v1/init").json() == {"initialized": False}

    payload = {"name": "Root", "email": "Root@Catalog.io", "password": "secret123"}
    first = client.post("/api/v1/init", json=payload)
    assert first.status_code == 201
    assert first.json()["role"] == "SUPERADMIN"
    assert first.json()["email"] == "root@catalog.io"

    second = client.post("/api/v1/init", json={**payload, "email": "other@catalog.io"})
    assert second.status_code == 403
    assert second.json()["code"] == "already_bootstrapped"
    assert client.get("/api/v1/init").json() == {"initialized": True}


def test_login_sets_session_cookies(client, make_admin):
    admin = make_admin("a@x.com")

    response = _login(client, "A@X.com")

    assert response.status_code == 200
    body = response.json()
    assert (body["expires_in"], body["refresh_expires_in"]) == (900, 604800)
    assert body["user"]["id"] == admin.id
    assert "password_hash" not in body["user"]

    (access,) = _cookie_headers(response, "access_token")
    (refresh,) = _cookie_headers(response, "refresh_token")
    for header in (access, refresh):
        assert "httponly" in header
        assert "samesite=strict" in header
    assert "max-age=900" in access and "path=/api" in access
    assert "max-age=604800" in refresh and "path=/api/v1/auth" in refresh


def test_login_wrong_password_is_unauthorized(client, make_admin):
    make_admin("a@x.com")

    response = _login(client, "a@x.com", "wrong-password")

    assert response.status_code == 401
    assert response.json()["code"] == "invalid_credentials"
    assert not response.headers.get_list("set-cookie")


def test_login_locked_after_repeated_failures(client, make_admin):
    make_admin("a@x.com")
    for _ in range(5):
        assert _login(client, "a@x.com", "wrong-password").status_code == 401

    response = _login(client, "a@x.com")

    assert response.status_code == 429
    assert response.json()["code"] == "login_locked"
    assert response.json()["kind"] == "too_many_attempts"


def test_login_validation_error(client):
    response = client.post(LOGIN_URL, json={"email": "not-an-email", "password": "secret123"})

    assert response.status_code == 422
    assert response.json()["kind"] == "validation"


def test_login_rate_limited_per_ip(session_factory, make_admin):
    limited = create_app(make_settings(AUTH_RATE_LIMIT_REQUESTS=2), session_factory=session_factory)
    make_admin("a@x.com")
    with TestClient(limited) as client:
        assert _login(client, "a@x.com").status_code == 200
        assert _login(client, "a@x.com").status_code == 200
        response = _login(client, "a@x.com")

    assert response.status_code == 429
    assert response.json()["code"] == "rate_limited"


def test_cookie_session_reaches_protected_routes(client, make_admin):
    admin = make_admin("a@x.com")
    _login(client, "a@x.com")

    response = client.get("/api/v1/auth/verify")

    assert response.status_code == 200
    assert response.json() == {"subject_id": admin.id, "role": "ADMIN"}


def test_refresh_rotates_from_cookie(client, make_admin):
    make_admin("a@x.com")
    _login(client, "a@x.com")

    response = client.post("/api/v1/auth/refresh")

    assert response.status_code == 200
    assert response.json()["expires_in"] == 900
    assert _cookie_headers(response, "access_token")
    assert _cookie_headers(response, "refresh_token")


def test_refresh_from_body(client, token_service, make_admin):
    admin = make_admin("a@x.com")
    pair = token_service.issue(admin.id, admin.role)

    response = client.post("/api/v1/auth/refresh", json={"refresh_token": pair.refresh_token})

    assert response.status_code == 200


def test_refresh_rejects_access_token(client, token_service, make_admin):
    admin = make_admin("a@x.com")
    pair = token_service.issue(admin.id, admin.role)

    response = client.post("/api/v1/auth/refresh", json={"refresh_token": pair.access_token})

    assert response.status_code == 403
    assert response.json()["code"] == "token_invalid"


def test_refresh_without_token(client):
    response = client.post("/api/v1/auth/refresh")

    assert response.status_code == 401
    assert response.json()["code"] == "refresh_token_missing"


def test_logout_clears_cookies(client, make_admin):
    make_admin("a@x.com")
    _login(client, "a@x.com")

    response = client.post("/api/v1/auth/logout")

    assert response.status_code == 200
    assert "max-age=0" in _cookie_headers(response, "access_token")[0]
    assert "max-age=0" in _cookie_headers(response, "refresh_token")[0]
    assert client.get("/api/v1/auth/verify").status_code == 401


@pytest.mark.parametrize(
    "headers,status_code,code",
    [
        ({}, 401, "unauthorized"),
        ({"Authorization": "Bearer garbage"}, 403, "token_invalid"),
    ],
)
def test_verify_missing_vs_bad_token(client, headers, status_code, code):
    response = client.get("/api/v1/auth/verify", headers=headers)

    assert response.status_code == status_code
    assert response.json()["code"] == code


def test_change_password(client, make_admin, auth_headers):
    admin = make_admin("a@x.com")
    headers = auth_headers(admin)

    wrong = client.patch(
        "/api/v1/auth/change-password",
        json={"old_password": "not-mine", "new_password": "newpass1", "confirm_password": "newpass1"},
        headers=headers,
    )
    assert wrong.status_code == 422

    ok = client.patch(
        "/api/v1/auth/change-password",
        json={"old_password": TEST_PASSWORD, "new_password": "newpass1", "confirm_password": "newpass1"},
        headers=headers,
    )
    assert ok.status_code == 200
    assert _login(client, "a@x.com", "newpass1").status_code == 200


def test_change_password_mismatched_confirmation(client, make_admin, auth_headers):
    admin = make_admin("a@x.com")

    response = client.patch(
        "/api/v1/auth/change-password",
        json={"old_password": TEST_PASSWORD, "new_password": "newpass1", "confirm_password": "newpass2"},
        headers=auth_headers(admin),
    )

    assert response.status_code == 422


def test_health_and_metrics(client):
    health = client.get("/health")
    assert health.status_code == 200
    assert health.json()["readiness"]["database"]["ok"] is True

    metrics = client.get("/metrics")
    assert "catalog_admin_http_requests_total" in metrics.text


def test_bootstrap_rejects_password_over_byte_limit(client):
    response = client.post(
        "/api/v1/init",
        json={"name": "Root", "email": "root@catalog.io", "password": "\U0001F600" * 30},
    )

    assert response.status_code == 422
    assert response.json()["kind"] == "validation"
    assert client.get("/api/v1/init").json() == {"initialized": False}


def test_metrics_label_by_route_template(client, superadmin, auth_headers):
    client.get(f"/api/v1/admin/users/{superadmin.id}", headers=auth_headers(superadmin))
    client.get("/wp-admin/setup-config.php")

    text = client.get("/metrics").text

    assert 'path="/api/v1/admin/users/{admin_id}"' in text
    assert 'path="unmatched"' in text
    assert superadmin.id not in text
    assert "wp-admin" not in text
