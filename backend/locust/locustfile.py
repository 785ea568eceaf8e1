"""
Locust Load Test Suite

Users and the target event are not created over HTTP; seed them in the
database first and export their ids:

  CRAFTFAIR_EVENT_ID          event to fight over (small max_capacity)
  CRAFTFAIR_ADMIN_USER_ID     admin whose token approves registrations
  CRAFTFAIR_VENDOR_USER_IDS   comma-separated vendor user ids

Tokens are minted locally with the service's SECRET_KEY.

Run scenarios:
  locust -f locustfile.py --tags concurrency  # Approvals racing for the last seats
  locust -f locustfile.py --tags throughput   # Cached listing
  locust -f locustfile.py --tags edge         # Bad input
  locust -f locustfile.py                     # All tests
"""

import itertools
import os
import random

from locust import HttpUser, task, between, tag, events

from craftfair.core.security import create_access_token

EVENT_ID = os.environ.get("CRAFTFAIR_EVENT_ID")
ADMIN_USER_ID = os.environ.get("CRAFTFAIR_ADMIN_USER_ID")
VENDOR_USER_IDS = [
    uid for uid in os.environ.get("CRAFTFAIR_VENDOR_USER_IDS", "").split(",") if uid
]

# Shared state
EVENT_IDS = []
_vendor_cycle = itertools.cycle(VENDOR_USER_IDS) if VENDOR_USER_IDS else None


def headers_for(user_id, role):
    token = create_access_token(data={"sub": user_id, "role": role})
    return {"Authorization": f"Bearer {token}"}


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("\n" + "=" * 60)
    print(f"Target event: {EVENT_ID or '<unset>'}")
    print(f"Vendors: {len(VENDOR_USER_IDS)}  Admin: {'yes' if ADMIN_USER_ID else 'no'}")
    print("=" * 60)


class VendorApplicant(HttpUser):
    """
    TEST 1a: Every vendor applies to the same event, then withdraws and
    re-applies. Duplicates must come back 409, never 500.
    """
    wait_time = between(0, 0.2)

    def on_start(self):
        self.headers = {}
        if _vendor_cycle is not None:
            self.headers = headers_for(next(_vendor_cycle), "vendor")

    @tag("concurrency")
    @task(5)
    def apply(self):
        if not EVENT_ID or not self.headers:
            return

        with self.client.post(
            f"/api/v1/events/{EVENT_ID}/register",
            json={"notes": "load test"},
            headers=self.headers,
            name="/api/v1/events/{id}/register",
            catch_response=True,
        ) as resp:
            if resp.status_code in (201, 409):
                resp.success()
            else:
                resp.failure(f"Unexpected: {resp.status_code}")

    @tag("concurrency")
    @task(1)
    def withdraw(self):
        if not EVENT_ID or not self.headers:
            return

        with self.client.delete(
            f"/api/v1/events/{EVENT_ID}/register",
            headers=self.headers,
            name="/api/v1/events/{id}/register [delete]",
            catch_response=True,
        ) as resp:
            # 404: never applied, 409: already cancelled
            if resp.status_code in (200, 404, 409):
                resp.success()
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ConcurrentApprover(HttpUser):
    """
    TEST 1b: Several admin sessions approve the pending queue at once.

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    After test, verify:
      SELECT current_participants, max_capacity FROM events WHERE id = X;
      SELECT COUNT(*) FROM event_registrations
        WHERE event_id = X AND status IN ('confirmed', 'attended');
    Both counts must match and never exceed max_capacity.
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        self.headers = headers_for(ADMIN_USER_ID, "admin") if ADMIN_USER_ID else {}

    @tag("concurrency")
    @task
    def approve_pending(self):
        if not EVENT_ID or not self.headers:
            return

        resp = self.client.get(
            f"/api/v1/events/{EVENT_ID}/registrations?status=pending",
            headers=self.headers,
            name="/api/v1/events/{id}/registrations",
        )
        if resp.status_code != 200 or not resp.json():
            return

        registration = random.choice(resp.json())
        with self.client.put(
            f"/api/v1/events/{EVENT_ID}/registrations/{registration['id']}/approve",
            headers=self.headers,
            name="/api/v1/events/{id}/registrations/{rid}/approve",
            catch_response=True,
        ) as approve:
            # 409: full, or another approver got there first
            if approve.status_code in (200, 409):
                approve.success()
            else:
                approve.failure(f"Unexpected: {approve.status_code}")


class ThroughputUser(HttpUser):
    """
    TEST 2: Throughput - Cache effectiveness

    Run twice:
      1. With Redis: locust -f locustfile.py --tags throughput -u 100 -r 20 --run-time 60s
      2. With REDIS_ENABLED=false on the server, run again

    Compare avg response time, requests/sec and P95/P99 latency.
    """
    wait_time = between(0.1, 0.5)

    @tag("throughput", "read")
    @task(10)
    def list_events_cached(self):
        page = random.randint(1, 5)
        resp = self.client.get(f"/api/v1/events/?page={page}&page_size=20",
            name="/api/v1/events/ [cached]")
        if resp.status_code == 200:
            for event in resp.json().get("events", []):
                if event["id"] not in EVENT_IDS:
                    EVENT_IDS.append(event["id"])

    @tag("throughput", "read")
    @task(3)
    def get_event_detail(self):
        if EVENT_IDS:
            self.client.get(f"/api/v1/events/{random.choice(EVENT_IDS)}",
                name="/api/v1/events/{id}")

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

    def on_start(self):
        self.headers = {}
        if _vendor_cycle is not None:
            self.headers = headers_for(next(_vendor_cycle), "vendor")

    def _expect(self, resp, codes):
        if resp.status_code in codes:
            resp.success()
        else:
            resp.failure(f"Expected {codes}, got {resp.status_code}")

    @tag("edge")
    @task
    def unknown_event(self):
        with self.client.post("/api/v1/events/does-not-exist/register",
            headers=self.headers,
            catch_response=True
        ) as resp:
            self._expect(resp, (404,))

    @tag("edge")
    @task
    def rating_out_of_range(self):
        if not EVENT_ID:
            return
        with self.client.post(f"/api/v1/events/{EVENT_ID}/feedback",
            json={"rating": 6},
            headers=self.headers,
            name="/api/v1/events/{id}/feedback",
            catch_response=True
        ) as resp:
            self._expect(resp, (422,))

    @tag("edge")
    @task
    def malformed_json(self):
        if not EVENT_ID:
            return
        with self.client.post(f"/api/v1/events/{EVENT_ID}/feedback",
            data="not json at all",
            headers=self.headers,
            name="/api/v1/events/{id}/feedback",
            catch_response=True
        ) as resp:
            self._expect(resp, (400, 422))

    @tag("edge")
    @task
    def missing_auth(self):
        if not EVENT_ID:
            return
        with self.client.post(f"/api/v1/events/{EVENT_ID}/register",
            name="/api/v1/events/{id}/register",
            catch_response=True
        ) as resp:
            self._expect(resp, (401,))

    @tag("edge")
    @task
    def vendor_approves(self):
        if not EVENT_ID:
            return
        with self.client.put(f"/api/v1/events/{EVENT_ID}/registrations/any/approve",
            headers=self.headers,
            name="/api/v1/events/{id}/registrations/{rid}/approve",
            catch_response=True
        ) as resp:
            self._expect(resp, (403,))
