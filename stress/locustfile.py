"""Locust profile mixing link creation, redirects and link info lookups.

Run against a live server::

    locust -f stress/locustfile.py --host http://localhost:8080

Each simulated user remembers the codes it created so redirect and info
traffic hits links that exist. A small share of creations use a custom code
to exercise the conflict path.
"""

import random
import uuid

from locust import HttpUser, between, task

MAX_CODES_PER_USER = 200


class ShortlinksUser(HttpUser):
    wait_time = between(0.1, 0.5)

    def on_start(self) -> None:
        self.codes: list[str] = []

    def _remember(self, code: str) -> None:
        self.codes.append(code)
        if len(self.codes) > MAX_CODES_PER_USER:
            self.codes = self.codes[-MAX_CODES_PER_USER:]

    @task(2)
    def create_link(self) -> None:
        payload = {"url": f"https://example.com/page/{random.randint(1, 1000000)}"}
        with self.client.post("/api/links", json=payload, name="POST /api/links", catch_response=True) as response:
            if response.status_code == 201:
                self._remember(response.json()["code"])
            else:
                response.failure(f"unexpected status {response.status_code}")

    @task(1)
    def create_custom_link(self) -> None:
        # Reusing a remembered code half the time makes 409 an expected outcome.
        if self.codes and random.random() < 0.5:
            code = random.choice(self.codes)
        else:
            code = f"c-{uuid.uuid4().hex[:10]}"
        payload = {"url": "https://example.com/custom", "custom_code": code}
        with self.client.post(
            "/api/links", json=payload, name="POST /api/links (custom)", catch_response=True
        ) as response:
            if response.status_code == 201:
                self._remember(code)
            elif response.status_code == 409:
                response.success()
            else:
                response.failure(f"unexpected status {response.status_code}")

    @task(6)
    def redirect(self) -> None:
        if not self.codes:
            self.create_link()
            return
        code = random.choice(self.codes)
        self.client.get(f"/{code}", name="GET /:code", allow_redirects=False)

    @task(1)
    def link_info(self) -> None:
        if not self.codes:
            return
        code = random.choice(self.codes)
        self.client.get(f"/api/links/{code}", name="GET /api/links/:code")

    @task(1)
    def list_links(self) -> None:
        self.client.get("/api/links", params={"page": 1, "limit": 20}, name="GET /api/links")
