from store_ratings.models import Role


def test_owner_creates_store_for_self(client, make_user, auth_headers):
    owner = make_user(role=Role.STORE_OWNER)
    other = make_user(role=Role.STORE_OWNER)
    r = client.post(
        "/api/store-owner/stores",
        json={"name": "Self Owned Flower Boutique", "address": "4 Garden Row", "owner_id": other.id},
        headers=auth_headers(owner),
    )
    assert r.status_code == 201
    # owner_id in the body is not honoured
    assert r.json()["store"]["owner_id"] == owner.id


def test_owner_dashboard(client, make_user, make_store, auth_headers):
    owner = make_user(role=Role.STORE_OWNER)
    rater = make_user(name="Rita The Regular Customer")
    store = make_store(owner=owner)
    make_store(owner=make_user(role=Role.STORE_OWNER))
    client.post(f"/api/stores/{store.id}/ratings", json={"rating_value": 5}, headers=auth_headers(rater))

    r = client.get("/api/store-owner/dashboard", headers=auth_headers(owner))
    assert r.status_code == 200
    data = r.json()
    assert data["owner"]["id"] == owner.id
    assert data["stores_count"] == 1
    assert data["summary"] == {"total_ratings": 1, "average_rating": 5.0}
    [mine] = data["stores"]
    assert mine["ratings_summary"] == {"average_rating": 5.0, "rating_count": 1}
    assert mine["ratings"][0]["user"]["name"] == "Rita The Regular Customer"


def test_owner_dashboard_without_stores(client, make_user, auth_headers):
    r = client.get("/api/store-owner/dashboard", headers=auth_headers(make_user(role=Role.STORE_OWNER)))
    assert r.status_code == 200
    assert r.json()["stores"] == []
    assert r.json()["stores_count"] == 0


def test_owner_store_detail_is_ownership_checked(client, make_user, make_store, auth_headers):
    owner = make_user(role=Role.STORE_OWNER)
    other = make_user(role=Role.STORE_OWNER)
    mine = make_store(owner=owner)
    theirs = make_store(owner=other)

    r = client.get(f"/api/store-owner/stores/{mine.id}", headers=auth_headers(owner))
    assert r.status_code == 200
    assert r.json()["store"]["id"] == mine.id
    assert r.json()["store"]["ratings"] == []

    r = client.get(f"/api/store-owner/stores/{theirs.id}", headers=auth_headers(owner))
    assert r.status_code == 403

    r = client.get("/api/store-owner/stores/9999", headers=auth_headers(owner))
    assert r.status_code == 404
    assert r.json() == {"message": "Store not found"}
