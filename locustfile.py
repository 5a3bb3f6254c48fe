from locust import HttpUser, task, between
import random


class ApiUser(HttpUser):
    wait_time = between(0.1, 0.5)

    def on_start(self):
        # Sign up a fresh normal user for this simulated client
        n = random.randint(1, 1_000_000)
        r = self.client.post(
            "/auth/signup",
            json={
                "name": f"Load Test Customer {n:07d}",
                "email": f"load_{n}@example.com",
                "password": "Passw0rd!",
                "address": f"{n} Benchmark Avenue",
            },
        )
        self.headers = {"Authorization": f"Bearer {r.json()['token']}"} if r.status_code == 201 else None
        self.store_ids = []

    @task(3)
    def list_stores(self):
        if not self.headers:
            return
        params = random.choice([{}, {"sortBy": "average_rating", "sortOrder": "desc"}, {"name": "store"}])
        r = self.client.get("/api/stores", params=params, headers=self.headers, name="/api/stores")
        if r.status_code == 200:
            self.store_ids = [s["id"] for s in r.json()["stores"]]

    @task(2)
    def rate_store(self):
        if not self.headers or not self.store_ids:
            return
        store_id = random.choice(self.store_ids)
        self.client.post(
            f"/api/stores/{store_id}/ratings",
            json={"rating_value": random.randint(1, 5)},
            headers=self.headers,
            name="/api/stores/[id]/ratings",
        )

    @task(1)
    def my_profile(self):
        if self.headers:
            self.client.get("/api/users/me", headers=self.headers)
