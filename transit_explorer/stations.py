"""Station resolution for TRANSIT legs.

Each distinct (line, coordinate) endpoint is looked up once per run, and all
lookups run concurrently. Failure policy is strict: if any endpoint of any
TRANSIT leg cannot be resolved, the whole request fails with
StationLookupError for the lowest failing leg index.
"""

import asyncio
import logging

from transit_explorer.errors import StationLookupError, TransportError
from transit_explorer.models import Heading, Leg, StationPair, TravelMode

logger = logging.getLogger("transit_explorer.stations")

ENDPOINTS = ("start", "end")


def _endpoint_key(leg: Leg, endpoint: str) -> tuple:
    coord = leg.start if endpoint == "start" else leg.end
    return (leg.line, coord.lng, coord.lat)


async def resolve_stations(
    locator,
    legs: list[Leg],
    heading: Heading,
    reference_time: str,
) -> dict[int, StationPair]:
    """Resolve start/end stations for every TRANSIT leg, keyed by leg index.

    ``locator`` is anything with an async
    ``locate_station(line, x, y, heading, reference_time) -> Station``.
    Heading is fixed for the whole run, so lookups are keyed by line and
    coordinate only.
    """
    transit_legs = [leg for leg in legs if leg.mode == TravelMode.TRANSIT]
    if not transit_legs:
        return {}

    # (leg index, endpoint) uses of each key, in route order
    uses: dict[tuple, list[tuple[int, str]]] = {}
    for leg in transit_legs:
        for endpoint in ENDPOINTS:
            uses.setdefault(_endpoint_key(leg, endpoint), []).append((leg.index, endpoint))

    keys = list(uses)
    results = await asyncio.gather(
        *(locator.locate_station(line, x, y, heading, reference_time) for line, x, y in keys),
        return_exceptions=True,
    )

    resolved = {}
    failures = []
    for key, result in zip(keys, results):
        if isinstance(result, asyncio.CancelledError):
            raise result
        if isinstance(result, TransportError):
            leg_index, endpoint = uses[key][0]
            logger.warning(f"Station lookup failed for {endpoint} of leg {leg_index}: {result}")
            failures.append(StationLookupError(leg_index, endpoint, result.with_leg(leg_index)))
        elif isinstance(result, BaseException):
            raise result
        else:
            resolved[key] = result

    if failures:
        first = min(failures, key=lambda f: (f.leg_index, ENDPOINTS.index(f.endpoint)))
        raise first from first.cause

    stations = {}
    for leg in transit_legs:
        start = resolved[_endpoint_key(leg, "start")]
        end = resolved[_endpoint_key(leg, "end")]
        logger.debug(f"Leg {leg.index} ({leg.line}): {start.stop_name} -> {end.stop_name}")
        stations[leg.index] = StationPair(start=start, end=end)

    logger.info(f"Resolved stations for {len(stations)} transit legs with {len(keys)} lookups")
    return stations
