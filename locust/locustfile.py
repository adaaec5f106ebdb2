"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags ratelimit   # One vote per source per window
  locust -f locustfile.py --tags throughput  # Batch aggregates + cached public page
  locust -f locustfile.py --tags edge        # Test bad input
  locust -f locustfile.py                    # All tests

Tokens are minted locally with the service's SECRET_KEY, so run with the
same environment as the API.
"""

import random
import string
from locust import HttpUser, task, between, tag, events

from flashvote.core.security import create_access_token

# Shared state
EVENT_SLUG = "load-" + "".join(random.choices(string.ascii_lowercase, k=6))
SUBJECT_IDS = []
OWNER_HEADERS = {"Authorization": f"Bearer {create_access_token({'sub': 'load-owner'})}"}


def random_ip():
    return ".".join(str(random.randint(1, 254)) for _ in range(4))


def ensure_fixture(client):
    """Create the shared event with a few subjects once per run."""
    if SUBJECT_IDS:
        return
    resp = client.post("/api/v1/events",
        json={"title": "Load Test Event", "slug": EVENT_SLUG},
        headers=OWNER_HEADERS,
    )
    if resp.status_code != 201:
        return
    event_id = resp.json()["id"]
    for label in ("Fast service?", "Fair price?", "Would return?"):
        resp = client.post(f"/api/v1/events/{event_id}/subjects",
            json={"label": label},
            headers=OWNER_HEADERS,
        )
        if resp.status_code == 201:
            SUBJECT_IDS.append(resp.json()["id"])
    print(f"\n✓ Created event {EVENT_SLUG} with {len(SUBJECT_IDS)} subjects\n")


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("\n" + "="*60)
    print(f"SETUP: voting load test against event {EVENT_SLUG}")
    print("="*60)


class RateLimitUser(HttpUser):
    """
    TEST 1: Rate limiting - one accepted vote per (IP, subject) per window

    Run: locust -f locustfile.py --tags ratelimit -u 100 -r 50 --run-time 30s

    After test, verify per subject:
      SELECT user_ip, COUNT(*) FROM votes WHERE subject_id = X GROUP BY user_ip;
    Should be 1 per IP within any 60 s span
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        ensure_fixture(self.client)
        self.headers = {"X-Forwarded-For": random_ip()}

    @tag("ratelimit")
    @task
    def vote_repeatedly(self):
        if not SUBJECT_IDS:
            return
        with self.client.post("/api/v1/votes",
            json={"subject_id": random.choice(SUBJECT_IDS), "choice": random.random() < 0.7},
            headers=self.headers,
            name="/api/v1/votes",
            catch_response=True
        ) as resp:
            if resp.status_code == 201:
                resp.success()
            elif resp.status_code == 429 and resp.headers.get("Retry-After"):
                resp.success()  # Expected: inside the window
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ThroughputUser(HttpUser):
    """
    TEST 2: Throughput - read path

    Run twice:
      1. With Redis: locust -f locustfile.py --tags throughput -u 100 -r 20 --run-time 60s
      2. Without Redis: REDIS_ENABLED=false, run again

    Compare the public page latency; batch aggregates are never cached.
    """
    wait_time = between(0.1, 0.5)

    def on_start(self):
        ensure_fixture(self.client)

    @tag("throughput", "read")
    @task(10)
    def poll_aggregates(self):
        if SUBJECT_IDS:
            self.client.post("/api/v1/votes/batch",
                json={"subject_ids": SUBJECT_IDS},
                name="/api/v1/votes/batch")

    @tag("throughput", "read")
    @task(5)
    def public_event_page(self):
        self.client.get(f"/api/v1/public/events/{EVENT_SLUG}",
            name="/api/v1/public/events/{slug} [cached]")

    @tag("throughput", "read")
    @task(2)
    def time_series(self):
        if SUBJECT_IDS:
            self.client.get("/api/v1/votes/time-series",
                params={"subject_id": random.choice(SUBJECT_IDS), "days": 7},
                name="/api/v1/votes/time-series")

    @tag("throughput")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 3: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    def _expect(self, resp, codes):
        if resp.status_code in codes:
            resp.success()
        else:
            resp.failure(f"Expected {codes}, got {resp.status_code}")

    @tag("edge")
    @task
    def unknown_subject(self):
        with self.client.post("/api/v1/votes",
            json={"subject_id": "does-not-exist", "choice": True},
            headers={"X-Forwarded-For": random_ip()},
            catch_response=True
        ) as resp:
            self._expect(resp, [404])

    @tag("edge")
    @task
    def string_choice(self):
        with self.client.post("/api/v1/votes",
            json={"subject_id": "x", "choice": "true"},
            catch_response=True
        ) as resp:
            self._expect(resp, [400])

    @tag("edge")
    @task
    def empty_batch(self):
        with self.client.post("/api/v1/votes/batch",
            json={"subject_ids": []},
            catch_response=True
        ) as resp:
            self._expect(resp, [400])

    @tag("edge")
    @task
    def malformed_json(self):
        with self.client.post("/api/v1/votes",
            data="not json at all",
            headers={"Content-Type": "application/json"},
            catch_response=True
        ) as resp:
            self._expect(resp, [400])

    @tag("edge")
    @task
    def history_without_auth(self):
        with self.client.get("/api/v1/votes/history", catch_response=True) as resp:
            self._expect(resp, [401])


class RealisticUser(HttpUser):
    """
    TEST 4: Realistic mixed workload

    Run: locust -f locustfile.py -u 200 -r 20 --run-time 120s

    A voter opens the public page, polls results and votes once per subject.
    """
    wait_time = between(1, 3)

    def on_start(self):
        ensure_fixture(self.client)
        self.headers = {"X-Forwarded-For": random_ip()}
        self.voted = set()

    @task(30)
    def view_page(self):
        self.client.get(f"/api/v1/public/events/{EVENT_SLUG}",
            name="/api/v1/public/events/{slug}")

    @task(50)
    def poll_results(self):
        if SUBJECT_IDS:
            self.client.post("/api/v1/votes/batch",
                json={"subject_ids": SUBJECT_IDS},
                name="/api/v1/votes/batch")

    @task(20)
    def vote(self):
        remaining = [s for s in SUBJECT_IDS if s not in self.voted]
        if not remaining:
            return
        subject_id = random.choice(remaining)
        resp = self.client.post("/api/v1/votes",
            json={"subject_id": subject_id, "choice": random.random() < 0.6},
            headers=self.headers,
            name="/api/v1/votes")
        if resp.status_code == 201:
            self.voted.add(subject_id)
