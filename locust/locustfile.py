"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags contention   # Race for a few seats
  locust -f locustfile.py --tags browse       # Route queries (cache path)
  locust -f locustfile.py                     # All tests

The admin key must match the server's ADMIN_API_KEY:
  RAILBOOK_ADMIN_KEY=... locust -f locustfile.py --host http://localhost:8000

At the end of a contention run the seat accounting is checked through the
API and the process exits non-zero if it does not add up.
"""

import os
import random
import string

from locust import HttpUser, between, events, tag, task

from seat_ledger import SeatLedger

ADMIN_KEY = os.environ.get("RAILBOOK_ADMIN_KEY", "")
ADMIN_HEADER = os.environ.get("RAILBOOK_ADMIN_HEADER", "X-Admin-Key")
CONTENTION_SEATS = int(os.environ.get("RAILBOOK_CONTENTION_SEATS", "10"))

CONTENTION_REQUEST_NAME = "/bookings [contention]"

# Shared state
CONTENTION_TRAIN_ID = None
LEDGER = SeatLedger(CONTENTION_REQUEST_NAME)


def random_username():
    return "u_" + "".join(random.choices(string.ascii_lowercase, k=10))


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    """Create the train every ContentionUser will fight over."""
    global CONTENTION_TRAIN_ID
    import requests

    resp = requests.post(
        f"{environment.host}/api/v1/trains/",
        json={
            "name": "Contention Express",
            "source": "LoadA",
            "destination": "LoadB",
            "total_seats": CONTENTION_SEATS,
        },
        headers={ADMIN_HEADER: ADMIN_KEY},
        timeout=10,
    )
    if resp.status_code == 201:
        CONTENTION_TRAIN_ID = resp.json()["id"]
        print(f"SETUP: contention train {CONTENTION_TRAIN_ID} with {CONTENTION_SEATS} seats")
    else:
        print(f"SETUP FAILED ({resp.status_code}): check RAILBOOK_ADMIN_KEY")


@events.request.add_listener
def on_request(name, response, exception, **kwargs):
    LEDGER.record(name, response, exception)


@events.test_stop.add_listener
def on_test_stop(environment, **kwargs):
    """
    Check the seat accounting through the API: available_seats never below 0
    and every 201 accounts for exactly one seat, i.e.
      total_seats - available_seats == number of 201 responses
    A violation sets a non-zero exit code. Granted seats are counted in this
    process, so run the check with a single (non-distributed) locust process.
    """
    if CONTENTION_TRAIN_ID is None:
        return
    import requests

    resp = requests.get(f"{environment.host}/api/v1/trains/{CONTENTION_TRAIN_ID}", timeout=10)
    train = resp.json()
    available = train["available_seats"]
    total = train["total_seats"]
    booked = total - available
    print(
        f"RESULT: train {CONTENTION_TRAIN_ID} available={available}/{total} "
        f"booked={booked} granted={LEDGER.granted}"
    )

    if not LEDGER.holds(train):
        print("FAILED: seat accounting does not add up")
        environment.process_exit_code = 1


class AuthenticatedUser(HttpUser):
    abstract = True

    def on_start(self):
        username = random_username()
        password = "load-test-pw"
        self.client.post("/api/v1/auth/register", json={
            "username": username,
            "password": password,
        })
        resp = self.client.post("/api/v1/auth/login", json={
            "username": username,
            "password": password,
        })
        token = resp.json().get("access_token") if resp.status_code == 200 else None
        self.headers = {"Authorization": f"Bearer {token}"} if token else {}


class ContentionUser(AuthenticatedUser):
    """
    Many users, few seats.

    Run: locust -f locustfile.py --tags contention -u 200 -r 100 --run-time 30s
    Expect exactly RAILBOOK_CONTENTION_SEATS 201s; everything else must be
    400 NO_SEATS_AVAILABLE, never a 500.
    """
    wait_time = between(0, 0.05)

    @tag("contention")
    @task
    def book_contended_seat(self):
        if CONTENTION_TRAIN_ID is None:
            return
        with self.client.post(
            "/api/v1/bookings/",
            json={"train_id": CONTENTION_TRAIN_ID},
            headers=self.headers,
            name=CONTENTION_REQUEST_NAME,
            catch_response=True,
        ) as resp:
            if resp.status_code == 201:
                resp.success()
            elif resp.status_code == 400 and resp.json()["error"]["code"] == "NO_SEATS_AVAILABLE":
                resp.success()
            else:
                resp.failure(f"unexpected {resp.status_code}")


class BrowsingUser(HttpUser):
    """Anonymous route queries; exercises the Redis route cache."""
    wait_time = between(0.1, 0.5)

    @tag("browse")
    @task(5)
    def query_route(self):
        self.client.get(
            "/api/v1/trains/",
            params={"source": "LoadA", "destination": "LoadB"},
            name="/trains?route",
        )

    @tag("browse")
    @task(1)
    def query_missing_route(self):
        self.client.get(
            "/api/v1/trains/",
            params={"source": "Nowhere", "destination": "Elsewhere"},
            name="/trains?route [empty]",
        )
