from conftest import T0, make_route, subway, walk
from transit_explorer.chain import ChainEntry
from transit_explorer.models import Leg, PredictionBatch, RouteRejected, Station, StationPair, TravelMode
from transit_explorer.route_options import classify_route
from transit_explorer.timeline import merge_timeline

STATIONS = StationPair(
    start=Station(stop_id="A27", stop_name="Broadway Junction", x=-73.905, y=40.678),
    end=Station(stop_id="A24", stop_name="Nostrand Av", x=-73.950, y=40.680),
)


def _entry(leg_index, minimum_times):
    return ChainEntry(
        leg_index=leg_index,
        stations=STATIONS,
        prediction=PredictionBatch(trips=[
            {"status": "OK", "results": [{"minimum_time": t, "latest_information_time": t - 30}]}
            for t in minimum_times
        ]),
    )


def test_walking_only_route_accumulates_durations():
    legs = classify_route(make_route(walk(300), walk(120), walk(45)))
    seeds = [T0, T0 + 3600]

    timeline = merge_timeline(legs, {}, seeds, "N")

    assert [leg.travel_segment_user_arrival_times for leg in timeline.legs] == [
        seeds,
        [T0 + 120, T0 + 3720],
        [T0 + 165, T0 + 3765],
    ]
    # the last walk ends its own duration after it is reached
    assert timeline.destination_arrival_times == [T0 + 210, T0 + 3810]


def test_leg_after_walk_adds_its_own_duration():
    legs = classify_route(make_route(walk(300), subway("A", 600)))
    timeline = merge_timeline(legs, {1: _entry(1, [T0 + 600])}, [T0], "N")

    assert timeline.legs[1].travel_segment_user_arrival_times == [T0 + 600]
    assert timeline.legs[0].travel_segment_user_completion_times == [T0 + 300]


def test_leg_after_transit_starts_after_dwell():
    legs = classify_route(make_route(subway("A", 600), walk(180)))
    timeline = merge_timeline(legs, {0: _entry(0, [T0 + 600])}, [T0], "N", dwell_seconds=60)

    transit, walking = timeline.legs
    assert transit.travel_segment_user_arrival_times == [T0]
    assert transit.travel_segment_user_completion_times == [T0 + 660]
    assert walking.travel_segment_user_arrival_times == [T0 + 660]
    assert timeline.destination_arrival_times == [T0 + 840]


def test_transit_legs_carry_stations_and_prediction():
    legs = classify_route(make_route(walk(60), subway("A", 600)))
    timeline = merge_timeline(legs, {1: _entry(1, [T0 + 600, T0 + 4200])}, [T0, T0 + 3600], "S")

    walking, transit = timeline.legs
    assert walking.start_station is None and walking.prediction is None
    assert walking.travel_status is None
    assert transit.start_station.stop_id == "A27"
    assert transit.end_station.stop_name == "Nostrand Av"
    assert transit.travel_status == ["OK", "OK"]
    assert transit.travel_segments[1][-1].minimum_time == T0 + 4200
    assert walking.travel_segments is None
    assert transit.line == "A"
    assert timeline.heading == "S"


def test_every_leg_has_one_time_per_scenario():
    legs = classify_route(make_route(walk(60), subway("A", 600), walk(30), subway("C", 300), walk(90)))
    seeds = [T0, T0 + 3600, T0 + 7200]
    chain = {1: _entry(1, [T0 + 700, T0 + 4300, T0 + 7900]), 3: _entry(3, [T0 + 1100, T0 + 4700, T0 + 8300])}

    timeline = merge_timeline(legs, chain, seeds, "N")

    for leg in timeline.legs:
        assert len(leg.travel_segment_user_arrival_times) == len(seeds)
        assert len(leg.travel_segment_user_completion_times) == len(seeds)


def test_geometry_is_decoded_from_polyline():
    legs = classify_route(make_route(walk(60)))
    timeline = merge_timeline(legs, {}, [T0], "N")

    assert timeline.legs[0].geometry == {
        "type": "LineString",
        "coordinates": [[-120.2, 38.5], [-120.95, 40.7]],
    }


def test_unsupported_transit_leg_is_rejected():
    bus = Leg(
        index=0, mode=TravelMode.TRANSIT,
        start={"lat": 40.70, "lng": -74.0}, end={"lat": 40.71, "lng": -74.0},
        duration=600, polyline="abc", line="M15", transit_type="BUS",
    )
    result = merge_timeline([bus], {}, [T0], "N")

    assert isinstance(result, RouteRejected)
    assert result.offending_legs[0].vehicle_type == "BUS"
