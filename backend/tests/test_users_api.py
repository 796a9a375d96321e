from __future__ import annotations

import logging
from datetime import timedelta

from fastapi import Depends
from fastapi.testclient import TestClient

from user_api.core.config import Settings
from user_api.core.dependencies import require_roles
from user_api.core.errors import ValidationFailed
from user_api.core.security import TokenSigner
from user_api.db.session import StorageHandle
from user_api.main import create_app


ANN = {"name": "Ann", "email": "ann@x.com", "password": "password123"}
BOB = {"name": "Bob", "email": "bob@x.com", "password": "password456"}


def _register(client: TestClient, payload: dict) -> dict:
    response = client.post("/v1/users", json=payload)
    assert response.status_code == 201, response.text
    return response.json()["data"]["user"]


def _login(client: TestClient, payload: dict) -> str:
    response = client.post("/v1/users/login", json={"email": payload["email"], "password": payload["password"]})
    assert response.status_code == 200, response.text
    return response.json()["data"]["token"]


def _auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def test_user_lifecycle(client: TestClient) -> None:
    created = client.post("/v1/users", json=ANN)
    assert created.status_code == 201
    body = created.json()
    assert body["status"] == "success"
    user = body["data"]["user"]
    assert user["name"] == "Ann"
    assert user["role"] == "user"
    assert "password" not in user and "password_hash" not in user

    login = client.post("/v1/users/login", json={"email": "ann@x.com", "password": "password123"})
    assert login.status_code == 200
    token = login.json()["data"]["token"]
    assert login.json()["data"]["user"]["id"] == user["id"]

    fetched = client.get(f"/v1/users/{user['id']}", headers=_auth(token))
    assert fetched.status_code == 200
    assert fetched.json()["data"]["user"] == user

    bob = _register(client, BOB)
    deleted = client.delete(f"/v1/users/{bob['id']}", headers=_auth(token))
    assert deleted.status_code == 204
    assert deleted.content == b""

    missing = client.get(f"/v1/users/{bob['id']}", headers=_auth(token))
    assert missing.status_code == 404
    assert missing.json() == {"status": "error", "message": "User not found"}


def test_token_of_deleted_user_is_rejected(client: TestClient) -> None:
    user = _register(client, ANN)
    token = _login(client, ANN)

    assert client.delete(f"/v1/users/{user['id']}", headers=_auth(token)).status_code == 204

    response = client.get(f"/v1/users/{user['id']}", headers=_auth(token))
    assert response.status_code == 401
    assert response.json()["message"] == "The user belonging to this token no longer exists."


def test_create_validation_errors_list_fields(client: TestClient) -> None:
    response = client.post("/v1/users", json={"name": "A", "email": "not-an-email", "password": "short"})

    assert response.status_code == 400
    body = response.json()
    assert body["status"] == "error"
    assert body["message"] == "Validation failed"
    assert {error["field"] for error in body["errors"]} == {"name", "email", "password"}


def test_create_rejects_unknown_role_and_fields(client: TestClient) -> None:
    response = client.post("/v1/users", json={**ANN, "role": "root", "nickname": "annie"})

    assert response.status_code == 400
    assert {error["field"] for error in response.json()["errors"]} == {"role", "nickname"}


def test_create_trims_name_and_accepts_admin_role(client: TestClient) -> None:
    user = _register(client, {**ANN, "name": "  Ann  ", "role": "admin"})

    assert user["name"] == "Ann"
    assert user["role"] == "admin"


def test_duplicate_email_conflicts(client: TestClient) -> None:
    _register(client, ANN)

    response = client.post("/v1/users", json={**ANN, "name": "Another Ann"})
    assert response.status_code == 409
    assert response.json() == {"status": "error", "message": "Email already in use"}


def test_login_failures_share_one_shape(client: TestClient) -> None:
    _register(client, ANN)

    wrong_password = client.post("/v1/users/login", json={"email": "ann@x.com", "password": "password999"})
    unknown_email = client.post("/v1/users/login", json={"email": "nobody@x.com", "password": "password123"})

    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json() == {
        "status": "error",
        "message": "Invalid email or password",
    }


def test_protected_routes_require_bearer_token(client: TestClient) -> None:
    missing = client.get("/v1/users")
    assert missing.status_code == 401
    assert missing.json()["message"].startswith("You are not logged in")

    basic = client.get("/v1/users", headers={"Authorization": "Basic abc"})
    assert basic.status_code == 401

    invalid = client.get("/v1/users", headers=_auth("garbage"))
    assert invalid.status_code == 401
    assert invalid.json()["message"] == "Invalid token. Please log in again."


def test_expired_token_is_rejected(client: TestClient, settings: Settings) -> None:
    user = _register(client, ANN)
    token = TokenSigner(settings).issue(user["id"], lifetime=timedelta(seconds=-1))

    response = client.get("/v1/users", headers=_auth(token))
    assert response.status_code == 401


def test_list_users_pagination(client: TestClient) -> None:
    for index in range(12):
        _register(client, {**ANN, "email": f"user{index}@x.com"})
    token = _login(client, {**ANN, "email": "user0@x.com"})

    response = client.get("/v1/users", params={"page": 2, "limit": 5}, headers=_auth(token))

    assert response.status_code == 200
    data = response.json()["data"]
    assert len(data["users"]) == 5
    assert data["pagination"] == {"total": 12, "page": 2, "limit": 5, "pages": 3}

    invalid = client.get("/v1/users", params={"page": 0}, headers=_auth(token))
    assert invalid.status_code == 400
    assert invalid.json()["errors"][0]["field"] == "page"


def test_update_user(client: TestClient) -> None:
    ann = _register(client, ANN)
    _register(client, BOB)
    token = _login(client, ANN)

    conflict = client.patch(f"/v1/users/{ann['id']}", json={"email": "bob@x.com"}, headers=_auth(token))
    assert conflict.status_code == 409

    unchanged = client.patch(
        f"/v1/users/{ann['id']}",
        json={"email": "ann@x.com", "name": "Annie", "password": "brand-new-pass"},
        headers=_auth(token),
    )
    assert unchanged.status_code == 200
    assert unchanged.json()["data"]["user"]["name"] == "Annie"

    assert client.post("/v1/users/login", json={"email": "ann@x.com", "password": "password123"}).status_code == 401
    assert _login(client, {"email": "ann@x.com", "password": "brand-new-pass"})

    invalid = client.patch(f"/v1/users/{ann['id']}", json={"name": "A"}, headers=_auth(token))
    assert invalid.status_code == 400

    missing = client.patch("/v1/users/missing", json={"name": "Nobody"}, headers=_auth(token))
    assert missing.status_code == 404


def test_delete_missing_user(client: TestClient) -> None:
    _register(client, ANN)
    token = _login(client, ANN)

    response = client.delete("/v1/users/missing", headers=_auth(token))
    assert response.status_code == 404


def test_unmatched_route_returns_generic_envelope(client: TestClient) -> None:
    response = client.get("/v1/nothing-here")

    assert response.status_code == 404
    assert response.json() == {"status": "error", "message": "Cannot find /v1/nothing-here on this server!"}


def test_health_and_root(client: TestClient) -> None:
    health = client.get("/v1/health")
    assert health.status_code == 200
    assert health.json() == {"status": "success", "data": {"storage": "transient", "environment": "test"}}

    root = client.get("/")
    assert root.status_code == 200
    assert root.text == "API root is working!"


def test_role_restriction(client: TestClient, app) -> None:
    @app.get("/v1/admin-only", dependencies=[Depends(require_roles("admin"))])
    async def admin_only() -> dict:
        return {"status": "success"}

    _register(client, ANN)
    _register(client, {**BOB, "role": "admin"})

    forbidden = client.get("/v1/admin-only", headers=_auth(_login(client, ANN)))
    assert forbidden.status_code == 403
    assert forbidden.json()["status"] == "error"

    allowed = client.get("/v1/admin-only", headers=_auth(_login(client, BOB)))
    assert allowed.status_code == 200


def _failing_app(settings: Settings) -> TestClient:
    app = create_app(settings=settings, storage=StorageHandle())

    @app.get("/v1/boom")
    async def boom() -> None:
        raise RuntimeError("kaboom")

    return TestClient(app, raise_server_exceptions=False)


def test_unhandled_errors_include_stack_outside_production(settings: Settings) -> None:
    with _failing_app(settings) as client:
        response = client.get("/v1/boom")

    assert response.status_code == 500
    body = response.json()
    assert body["message"] == "Internal Server Error"
    assert "RuntimeError: kaboom" in body["stack"]


def test_unhandled_errors_hide_stack_in_production(settings: Settings) -> None:
    production = settings.model_copy(update={"environment": "production"})
    with _failing_app(production) as client:
        response = client.get("/v1/boom")

    assert response.status_code == 500
    assert response.json() == {"status": "error", "message": "Internal Server Error"}


def test_emails_are_stored_and_matched_exactly(client: TestClient) -> None:
    lower = _register(client, ANN)
    mixed = _register(client, {**ANN, "email": "ann@X.com"})

    assert lower["email"] == "ann@x.com"
    assert mixed["email"] == "ann@X.com"
    assert lower["id"] != mixed["id"]

    exact = client.post("/v1/users/login", json={"email": "ann@X.com", "password": "password123"})
    assert exact.status_code == 200
    assert exact.json()["data"]["user"]["id"] == mixed["id"]

    other_case = client.post("/v1/users/login", json={"email": "ANN@X.COM", "password": "password123"})
    assert other_case.status_code == 401


def test_update_keeps_submitted_email_case(client: TestClient) -> None:
    ann = _register(client, ANN)
    token = _login(client, ANN)

    response = client.patch(f"/v1/users/{ann['id']}", json={"email": "Ann@Example.COM"}, headers=_auth(token))

    assert response.status_code == 200
    assert response.json()["data"]["user"]["email"] == "Ann@Example.COM"


def test_login_with_malformed_email_is_unauthenticated(client: TestClient) -> None:
    _register(client, ANN)

    response = client.post("/v1/users/login", json={"email": "nobody", "password": "x" * 200})

    assert response.status_code == 401
    assert response.json() == {"status": "error", "message": "Invalid email or password"}


def test_login_without_fields_is_a_validation_error(client: TestClient) -> None:
    response = client.post("/v1/users/login", json={})

    assert response.status_code == 400
    assert {error["field"] for error in response.json()["errors"]} == {"email", "password"}


def test_service_validation_errors_use_field_envelope(client: TestClient, app) -> None:
    @app.get("/v1/invalid")
    async def invalid() -> None:
        raise ValidationFailed([{"field": "email", "message": "Please provide a valid email"}])

    response = client.get("/v1/invalid")

    assert response.status_code == 400
    assert response.json() == {
        "status": "error",
        "message": "Validation failed",
        "errors": [{"field": "email", "message": "Please provide a valid email"}],
    }


def test_failed_requests_are_still_logged(settings: Settings, caplog) -> None:
    with caplog.at_level(logging.INFO, logger="user_api.middleware.request_logging"):
        with _failing_app(settings) as client:
            client.get("/v1/boom")

    assert "GET /v1/boom 500" in caplog.text
