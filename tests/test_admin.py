from store_ratings.models import Role


def new_user_payload(**overrides):
    payload = {
        "name": "Brand New Store Owner Account",
        "email": "owner@example.com",
        "password": "Owner#Pass1",
        "address": "7 Warehouse Road",
        "role": "store_owner",
    }
    payload.update(overrides)
    return payload


def test_admin_creates_user_with_role(client, make_user, auth_headers):
    headers = auth_headers(make_user(role=Role.SYSTEM_ADMINISTRATOR))
    r = client.post("/api/admin/users", json=new_user_payload(), headers=headers)
    assert r.status_code == 201
    body = r.json()
    assert body["message"] == "User created successfully"
    assert body["user"]["role"] == "store_owner"
    assert "password_hash" not in body["user"]

    # the new account can sign in right away
    r = client.post("/auth/login", json={"email": "owner@example.com", "password": "Owner#Pass1"})
    assert r.status_code == 200
    assert r.json()["user"]["role"] == "store_owner"


def test_admin_create_user_rejects_bad_role_and_duplicates(client, make_user, auth_headers):
    headers = auth_headers(make_user(role=Role.SYSTEM_ADMINISTRATOR, email="admin@example.com"))
    r = client.post("/api/admin/users", json=new_user_payload(role="superuser"), headers=headers)
    assert r.status_code == 400
    assert r.json()["errors"][0]["field"] == "role"

    r = client.post("/api/admin/users", json=new_user_payload(email="admin@example.com"), headers=headers)
    assert r.status_code == 400
    assert r.json()["message"] == "Email already in use"


def test_admin_creates_store_for_owner(client, make_user, auth_headers):
    headers = auth_headers(make_user(role=Role.SYSTEM_ADMINISTRATOR))
    owner = make_user(role=Role.STORE_OWNER)
    r = client.post(
        "/api/admin/stores",
        json={"name": "Downtown Hardware Emporium", "email": "hw@shop.com", "address": "1 Main St", "owner_id": owner.id},
        headers=headers,
    )
    assert r.status_code == 201
    assert r.json()["store"]["owner_id"] == owner.id

    r = client.post(
        "/api/admin/stores",
        json={"name": "Another Hardware Emporium", "email": "hw@shop.com", "address": "2 Main St"},
        headers=headers,
    )
    assert r.status_code == 400


def test_admin_store_owner_rules(client, make_user, auth_headers):
    headers = auth_headers(make_user(role=Role.SYSTEM_ADMINISTRATOR))
    customer = make_user()
    store = {"name": "Owner Rules Test Store", "address": "1 Main St"}

    r = client.post("/api/admin/stores", json=dict(store, owner_id=9999), headers=headers)
    assert r.status_code == 404
    assert r.json()["message"] == "Owner not found"

    r = client.post("/api/admin/stores", json=dict(store, owner_id=customer.id), headers=headers)
    assert r.status_code == 400
    assert r.json()["errors"][0]["field"] == "owner_id"

    r = client.post("/api/admin/stores", json=dict(store, owner_id="1"), headers=headers)
    assert r.status_code == 400

    r = client.post("/api/admin/stores", json={"name": "Store Without An Address"}, headers=headers)
    assert r.status_code == 400


def test_admin_lists_users_with_filters(client, make_user, auth_headers):
    admin = make_user(role=Role.SYSTEM_ADMINISTRATOR, name="Administrator Account Name")
    make_user(role=Role.STORE_OWNER, name="Olivia The Store Owner Person")
    make_user(name="Regular Customer Called Sam")
    headers = auth_headers(admin)

    r = client.get("/api/admin/users", headers=headers)
    assert r.status_code == 200
    assert r.json()["count"] == 3

    r = client.get("/api/admin/users", params={"role": "store_owner"}, headers=headers)
    assert [u["name"] for u in r.json()["users"]] == ["Olivia The Store Owner Person"]

    r = client.get("/api/admin/users", params={"name": "CUSTOMER", "sortBy": "name"}, headers=headers)
    assert [u["name"] for u in r.json()["users"]] == ["Regular Customer Called Sam"]


def test_admin_user_detail(client, make_user, make_store, auth_headers):
    headers = auth_headers(make_user(role=Role.SYSTEM_ADMINISTRATOR))
    owner = make_user(role=Role.STORE_OWNER)
    customer = make_user()
    store = make_store(owner=owner)
    client.post(f"/api/stores/{store.id}/ratings", json={"rating_value": 3}, headers=auth_headers(customer))

    r = client.get(f"/api/admin/users/{owner.id}", headers=headers)
    assert r.status_code == 200
    detail = r.json()["user"]
    assert detail["role"] == "store_owner"
    [owned] = detail["stores"]
    assert owned["id"] == store.id
    assert owned["average_rating"] == 3.0 and owned["rating_count"] == 1

    r = client.get(f"/api/admin/users/{customer.id}", headers=headers)
    assert r.json()["user"]["stores"] is None

    r = client.get("/api/admin/users/9999", headers=headers)
    assert r.status_code == 404
    assert r.json() == {"message": "User not found"}


def test_admin_store_listing(client, make_user, make_store, auth_headers):
    headers = auth_headers(make_user(role=Role.SYSTEM_ADMINISTRATOR))
    owner = make_user(role=Role.STORE_OWNER, email="olivia@example.com")
    make_store(name="Owned Store With Owner Set", owner=owner)
    make_store(name="Unowned Store Without Owner")

    r = client.get("/api/admin/stores", params={"sortBy": "name", "sortOrder": "desc"}, headers=headers)
    assert r.status_code == 200
    stores = r.json()["stores"]
    assert [s["name"] for s in stores] == ["Unowned Store Without Owner", "Owned Store With Owner Set"]
    assert stores[1]["owner_email"] == "olivia@example.com"
    assert stores[0]["owner_id"] is None


def test_admin_dashboard(client, make_user, make_store, auth_headers):
    admin = make_user(role=Role.SYSTEM_ADMINISTRATOR)
    customer = make_user()
    store = make_store()
    client.post(f"/api/stores/{store.id}/ratings", json={"rating_value": 4}, headers=auth_headers(customer))

    r = client.get("/api/admin/dashboard", headers=auth_headers(admin))
    assert r.status_code == 200
    assert r.json() == {
        "users": {"total": 2, "by_role": {"system_administrator": 1, "normal_user": 1, "store_owner": 0}},
        "stores": {"total": 1},
        "ratings": {"total": 1, "average": 4.0},
    }
