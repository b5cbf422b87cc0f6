"""Functional tests for the FastAPI application.

These tests drive the API end to end against an in-memory MongoDB.
"""

import time

from bson import ObjectId

from arithmetic_api.config import get_settings
from arithmetic_api.services import credentials


def users_collection(mongo):
    settings = get_settings()
    return mongo[settings.mongo.db_name][settings.mongo.users_collection]


def test_root_endpoint(test_client):
    """Test the root endpoint returns service information."""
    response = test_client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "running"


def test_health_check(test_client):
    """Test the basic health check endpoint."""
    response = test_client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert "timestamp" in data


def test_unknown_route_has_error_field(test_client):
    response = test_client.get("/nope")
    assert response.status_code == 404
    assert response.json()["error"] == "not_found"


# Registration


def test_register_issues_keys_and_example_signature(test_client, sign):
    response = test_client.post(
        "/auth/register", json={"name": "Ada", "email": "ada@example.com"}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Registration successful"
    assert body["planType"] == "free"
    assert body["planLimit"] == 5
    expected = sign(body["apiKey"], body["secretKey"], body["timestamp"])
    assert body["signature"] == expected["x-signature"]


def test_register_with_plan(register):
    body = register(plan_type="premium")
    assert body["planType"] == "premium"
    assert body["planLimit"] == 20


def test_register_existing_email_returns_existing_key(test_client, register, mongo):
    first = register()

    response = test_client.post(
        "/auth/register", json={"name": "Someone Else", "email": "ada@example.com"}
    )

    assert response.status_code == 200
    body = response.json()
    assert body == {
        "message": "Already registered",
        "apiKey": first["apiKey"],
        "planType": "free",
    }
    assert users_collection(mongo).count_documents({}) == 1
    stored = users_collection(mongo).find_one({"email": "ada@example.com"})
    assert stored["secretKey"] == first["secretKey"]


def test_register_existing_email_ignores_requested_plan(test_client, register, mongo):
    """An existing email is answered before the requested plan is validated."""
    first = register()

    response = test_client.post(
        "/auth/register",
        json={"name": "Ada", "email": "ada@example.com", "planType": "gold"},
    )

    assert response.status_code == 200
    assert response.json() == {
        "message": "Already registered",
        "apiKey": first["apiKey"],
        "planType": "free",
    }
    assert users_collection(mongo).count_documents({}) == 1


def test_register_requires_name_and_email(test_client):
    response = test_client.post("/auth/register", json={"name": "Ada"})
    assert response.status_code == 400
    assert response.json()["error"] == "missing_fields"


def test_register_rejects_unknown_plan(test_client, mongo):
    response = test_client.post(
        "/auth/register",
        json={"name": "Ada", "email": "ada@example.com", "planType": "gold"},
    )
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_plan_type"
    assert users_collection(mongo).count_documents({}) == 0


# Authentication


def test_protected_endpoint_requires_credentials(test_client):
    """Ensure protected endpoints reject missing auth headers."""
    response = test_client.get("/math/calculate?operation=add&a=1&b=2")
    assert response.status_code == 401
    assert response.json()["error"] == "missing_credentials"


def test_unknown_api_key_is_forbidden(test_client, sign):
    headers = sign("f" * 32, "whatever")
    response = test_client.get("/math/", headers=headers)
    assert response.status_code == 403
    assert response.json()["error"] == "invalid_api_key"


def test_expired_request_is_forbidden(test_client, register, sign):
    body = register()
    headers = sign(body["apiKey"], body["secretKey"], int(time.time()) - 7200)

    response = test_client.get("/math/", headers=headers)

    assert response.status_code == 403
    assert response.json()["error"] == "request_expired"


def test_bad_signature_is_forbidden(test_client, register, sign, mongo):
    body = register()
    headers = sign(body["apiKey"], "not-the-secret")

    response = test_client.get("/math/", headers=headers)

    assert response.status_code == 403
    assert response.json()["error"] == "invalid_signature"
    assert users_collection(mongo).find_one({})["usage"] == 0


# Calculation and usage


def test_calculate(test_client, auth_headers):
    response = test_client.get(
        "/math/calculate",
        params={"operation": "add", "a": "5", "b": "3"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.json() == {"operation": "add", "a": 5, "b": 3, "result": 8}


def test_calculate_divide_by_zero_does_not_use_quota(test_client, auth_headers, mongo):
    response = test_client.get(
        "/math/calculate",
        params={"operation": "divide", "a": "5", "b": "0"},
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert response.json()["error"] == "division_by_zero"
    assert users_collection(mongo).find_one({})["usage"] == 0


def test_calculate_rejects_bad_input(test_client, auth_headers):
    cases = [
        ({"operation": "add", "a": "x", "b": "1"}, "invalid_operand"),
        ({"operation": "pow", "a": "2", "b": "1"}, "unknown_operation"),
        ({"operation": "add", "a": "2"}, "missing_fields"),
    ]
    for params, error in cases:
        response = test_client.get(
            "/math/calculate", params=params, headers=auth_headers
        )
        assert response.status_code == 400
        assert response.json()["error"] == error


def test_quota_is_enforced_per_plan(test_client, auth_headers, mongo):
    params = {"operation": "multiply", "a": "2", "b": "3"}

    for _ in range(5):
        response = test_client.get(
            "/math/calculate", params=params, headers=auth_headers
        )
        assert response.status_code == 200

    response = test_client.get("/math/calculate", params=params, headers=auth_headers)

    assert response.status_code == 429
    assert response.json()["error"] == "quota_exceeded"
    assert users_collection(mongo).find_one({})["usage"] == 5


# Plan upgrade


def test_upgrade_plan_resets_usage(test_client, auth_headers, mongo):
    for _ in range(2):
        test_client.get("/math/", headers=auth_headers)

    response = test_client.patch(
        "/auth/upgrade-plan", json={"planType": "pro"}, headers=auth_headers
    )

    assert response.status_code == 200
    assert response.json() == {"message": "Plan upgraded to pro", "planLimit": 15}
    stored = users_collection(mongo).find_one({})
    assert stored["usage"] == 0
    assert stored["planType"] == "pro"
    assert stored["planLimit"] == 15


def test_upgrade_to_unknown_plan_leaves_state_unchanged(
    test_client, auth_headers, mongo
):
    test_client.get("/math/", headers=auth_headers)

    response = test_client.patch(
        "/auth/upgrade-plan", json={"planType": "gold"}, headers=auth_headers
    )

    assert response.status_code == 400
    assert response.json()["error"] == "invalid_plan_type"
    stored = users_collection(mongo).find_one({})
    assert stored["usage"] == 1
    assert stored["planType"] == "free"


def test_upgrade_plan_requires_authentication(test_client):
    response = test_client.patch("/auth/upgrade-plan", json={"planType": "pro"})
    assert response.status_code == 401


# Records


def test_record_lifecycle(test_client, register, sign):
    body = register(plan_type="premium")
    headers = sign(body["apiKey"], body["secretKey"])

    created = test_client.post(
        "/math/", json={"operation": "subtract", "a": 10, "b": "4"}, headers=headers
    )
    assert created.status_code == 201
    record = created.json()
    assert record["result"] == 6
    record_id = record["_id"]

    listed = test_client.get("/math/", headers=headers)
    assert [item["_id"] for item in listed.json()] == [record_id]

    updated = test_client.put(
        f"/math/{record_id}",
        json={"operation": "divide", "a": 9, "b": 3},
        headers=headers,
    )
    assert updated.status_code == 200
    assert updated.json()["operation"] == "divide"
    assert updated.json()["result"] == 3

    fetched = test_client.get(f"/math/{record_id}", headers=headers)
    assert fetched.json()["result"] == 3

    deleted = test_client.delete(f"/math/{record_id}", headers=headers)
    assert deleted.status_code == 200
    assert deleted.json() == {"message": "Deleted successfully"}

    missing = test_client.get(f"/math/{record_id}", headers=headers)
    assert missing.status_code == 404
    assert missing.json()["error"] == "not_found"


def test_create_record_requires_fields(test_client, auth_headers):
    response = test_client.post(
        "/math/", json={"operation": "add", "a": 1}, headers=auth_headers
    )
    assert response.status_code == 400
    assert response.json()["error"] == "missing_fields"


def test_create_record_rejects_operand_beyond_float_range(
    test_client, auth_headers, mongo
):
    response = test_client.post(
        "/math/", json={"operation": "add", "a": 10**400, "b": 1}, headers=auth_headers
    )

    assert response.status_code == 400
    assert response.json()["error"] == "invalid_operand"
    assert users_collection(mongo).find_one({})["usage"] == 0


def test_malformed_record_id_is_rejected_before_store(test_client, auth_headers, mongo):
    response = test_client.get("/math/not-an-id", headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["error"] == "malformed_identifier"
    assert users_collection(mongo).find_one({})["usage"] == 0


def test_missing_record_returns_404(test_client, auth_headers):
    record_id = str(ObjectId())

    assert test_client.get(f"/math/{record_id}", headers=auth_headers).status_code == 404
    assert (
        test_client.delete(f"/math/{record_id}", headers=auth_headers).status_code
        == 404
    )
    response = test_client.put(
        f"/math/{record_id}",
        json={"operation": "add", "a": 1, "b": 2},
        headers=auth_headers,
    )
    assert response.status_code == 404


# Transport rate limit


def test_rate_limit_applies_per_client(test_client, register, sign, monkeypatch):
    monkeypatch.setattr(get_settings().app, "rate_limit", "2/minute")
    body = register(plan_type="premium")
    headers = sign(body["apiKey"], body["secretKey"])

    assert test_client.get("/math/", headers=headers).status_code == 200
    assert test_client.get("/math/", headers=headers).status_code == 200
    response = test_client.get("/math/", headers=headers)

    assert response.status_code == 429
    assert response.json()["error"] == "rate_limited"


# Request timeout and CORS


def test_slow_request_times_out_without_using_quota(
    test_client, auth_headers, mongo, monkeypatch
):
    find_by_api_key = credentials.find_by_api_key

    def slow_find_by_api_key(api_key):
        time.sleep(0.3)
        return find_by_api_key(api_key)

    monkeypatch.setattr(credentials, "find_by_api_key", slow_find_by_api_key)
    monkeypatch.setattr(get_settings().app, "request_timeout_seconds", 0.05)

    response = test_client.get(
        "/math/calculate",
        params={"operation": "add", "a": "1", "b": "2"},
        headers=auth_headers,
    )

    assert response.status_code == 504
    assert response.json()["error"] == "request_timeout"
    assert users_collection(mongo).find_one({})["usage"] == 0


def test_cors_preflight_is_answered(test_client):
    response = test_client.options(
        "/math/calculate",
        headers={
            "Origin": "https://example.com",
            "Access-Control-Request-Method": "GET",
            "Access-Control-Request-Headers": "x-api-key",
        },
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"


def test_cors_headers_on_simple_request(test_client):
    response = test_client.get("/health", headers={"Origin": "https://example.com"})

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
