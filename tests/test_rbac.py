import pytest

from store_ratings.models import Role

ADMIN_ROUTES = [
    ("get", "/api/admin/dashboard"),
    ("get", "/api/admin/users"),
    ("get", "/api/admin/stores"),
    ("get", "/api/admin/users/1"),
]
OWNER_ROUTES = [
    ("get", "/api/store-owner/dashboard"),
    ("get", "/api/store-owner/stores/1"),
]


@pytest.mark.parametrize("method,path", ADMIN_ROUTES + OWNER_ROUTES + [("get", "/api/stores"), ("get", "/api/users/me")])
def test_missing_token_is_401(client, method, path):
    r = getattr(client, method)(path)
    assert r.status_code == 401
    assert r.json() == {"message": "No token, authorization denied"}


def test_malformed_token_is_401(client):
    r = client.get("/api/stores", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401
    assert r.json() == {"message": "Token is not valid"}


def test_non_bearer_scheme_is_treated_as_missing(client):
    r = client.get("/api/stores", headers={"Authorization": "Basic dXNlcjpwYXNz"})
    assert r.status_code == 401
    assert r.json()["message"] == "No token, authorization denied"


@pytest.mark.parametrize("role", [Role.NORMAL_USER, Role.STORE_OWNER])
@pytest.mark.parametrize("method,path", ADMIN_ROUTES)
def test_admin_routes_reject_other_roles(client, make_user, auth_headers, role, method, path):
    r = getattr(client, method)(path, headers=auth_headers(make_user(role=role)))
    assert r.status_code == 403
    assert r.json() == {"message": "Forbidden: Insufficient role"}


@pytest.mark.parametrize("role", [Role.NORMAL_USER, Role.SYSTEM_ADMINISTRATOR])
@pytest.mark.parametrize("method,path", OWNER_ROUTES)
def test_owner_routes_reject_other_roles(client, make_user, auth_headers, role, method, path):
    r = getattr(client, method)(path, headers=auth_headers(make_user(role=role)))
    assert r.status_code == 403


def test_admin_only_writes_reject_normal_user(client, make_user, auth_headers):
    headers = auth_headers(make_user())
    r = client.post(
        "/api/admin/users",
        json={
            "name": "Sneaky Escalation Attempt",
            "email": "sneaky@example.com",
            "password": "Passw0rd!",
            "role": "system_administrator",
        },
        headers=headers,
    )
    assert r.status_code == 403
    r = client.post("/api/admin/stores", json={"name": "Unauthorised Store Name", "address": "x"}, headers=headers)
    assert r.status_code == 403


@pytest.mark.parametrize("role", list(Role))
def test_every_role_can_browse_and_rate(client, make_user, make_store, auth_headers, role):
    store = make_store()
    headers = auth_headers(make_user(role=role))
    assert client.get("/api/stores", headers=headers).status_code == 200
    r = client.post(f"/api/stores/{store.id}/ratings", json={"rating_value": 2}, headers=headers)
    assert r.status_code == 201


def test_role_comes_from_token_not_request(client, make_user, auth_headers):
    headers = auth_headers(make_user())
    r = client.get("/api/admin/users", params={"role": "system_administrator"}, headers=headers)
    assert r.status_code == 403
