"""
Seat accounting for the contention scenario.

Kept free of locust imports so the check can be unit tested without gevent.
"""


class SeatLedger:
    """Counts granted seats and checks them against the train's counter."""

    def __init__(self, request_name: str):
        self.request_name = request_name
        self.granted = 0

    def record(self, name, response, exception) -> None:
        if name != self.request_name or exception is not None or response is None:
            return
        if response.status_code == 201:
            self.granted += 1

    def holds(self, train: dict) -> bool:
        """available_seats never below 0 and total - available == seats granted."""
        available = train["available_seats"]
        return available >= 0 and train["total_seats"] - available == self.granted
