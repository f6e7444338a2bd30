import asyncio

import pytest

from transit_explorer.config import Settings
from transit_explorer.errors import TransportError
from transit_explorer.models import PredictionBatch, Route, Station
from transit_explorer.timestamps import parse_service_time

T0 = parse_service_time("2018-02-20T06:00")


def walk(duration, start=(40.700, -74.000), end=(40.705, -74.000)):
    return {
        "travel_mode": "WALKING",
        "start_location": {"lat": start[0], "lng": start[1]},
        "end_location": {"lat": end[0], "lng": end[1]},
        "duration": {"value": duration, "text": f"{duration // 60} mins"},
        "polyline": {"points": "_p~iF~ps|U_ulLnnqC"},
    }


def subway(line, duration, start=(40.705, -74.000), end=(40.750, -73.990), vehicle="SUBWAY"):
    return {
        "travel_mode": "TRANSIT",
        "start_location": {"lat": start[0], "lng": start[1]},
        "end_location": {"lat": end[0], "lng": end[1]},
        "duration": {"value": duration, "text": f"{duration // 60} mins"},
        "polyline": {"points": "_p~iF~ps|U_ulLnnqC"},
        "transit_details": {
            "line": {"short_name": line, "vehicle": {"type": vehicle}, "icon": f"//icons/{line}.png"},
        },
    }


def make_route(*legs, heading=None):
    return Route.model_validate({"legs": list(legs), "heading": heading})


class FakeSubwayExplorer:
    """In-memory station locator + prediction service recording every call.

    Predictions: for a scenario queried at ``ts``, the last stop is reached at
    ``ts + ride_seconds[line]`` and its information is current as of
    ``ts + info_lag[line]``.
    """

    def __init__(self, ride_seconds=None, info_lag=None, fail_poll=(), fail_locate=(), delay=0.0):
        self.ride_seconds = ride_seconds or {}
        self.info_lag = info_lag or {}
        self.fail_poll = set(fail_poll)
        self.fail_locate = set(fail_locate)  # (lng, lat) pairs
        self.delay = delay
        self.calls = []
        self.events = []
        self.in_flight_polls = 0
        self.max_in_flight_polls = 0

    async def locate_station(self, line, x, y, heading, reference_time):
        self.calls.append(("locate", line, x, y, heading, reference_time))
        await asyncio.sleep(self.delay)
        if (x, y) in self.fail_locate:
            raise TransportError("station-locator", "HTTP 500")
        return Station(stop_id=f"{line}-{y:.3f}", stop_name=f"Stop {y:.3f}", x=x, y=y)

    async def poll_travel_times(self, line, start_stop_id, end_stop_id, timestamps):
        self.calls.append(("poll", line, start_stop_id, end_stop_id, list(timestamps)))
        self.events.append(("poll-start", line))
        self.in_flight_polls += 1
        self.max_in_flight_polls = max(self.max_in_flight_polls, self.in_flight_polls)
        try:
            await asyncio.sleep(self.delay)
            if line in self.fail_poll:
                raise TransportError("prediction", "HTTP 503")
            ride = self.ride_seconds.get(line, 600)
            lag = self.info_lag.get(line, ride)
            trips = []
            for ts in timestamps:
                seed = parse_service_time(ts)
                trips.append({
                    "status": "OK",
                    "results": [
                        {"stop_id": start_stop_id, "minimum_time": seed + 60, "latest_information_time": seed},
                        {"stop_id": end_stop_id, "minimum_time": seed + ride, "latest_information_time": seed + lag},
                    ],
                })
            return PredictionBatch(trips=trips)
        finally:
            self.in_flight_polls -= 1
            self.events.append(("poll-end", line))

    def polls(self):
        return [c for c in self.calls if c[0] == "poll"]

    def locates(self):
        return [c for c in self.calls if c[0] == "locate"]


@pytest.fixture
def settings():
    return Settings(enrich_timeout=5.0)


@pytest.fixture
def fake_explorer():
    return FakeSubwayExplorer()
