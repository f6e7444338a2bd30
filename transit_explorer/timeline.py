"""Merge classified legs and chain results into one per-leg timeline."""

import logging
from typing import Optional, Union

from transit_explorer.chain import ChainEntry
from transit_explorer.errors import MalformedRouteError
from transit_explorer.models import EnrichedLeg, Heading, Leg, RejectedLeg, RouteRejected, Timeline, TravelMode
from transit_explorer.polyline import leg_geometry
from transit_explorer.route_options import SUPPORTED_VEHICLE_TYPES

logger = logging.getLogger("transit_explorer.timeline")

DEFAULT_TRANSFER_DWELL_SECONDS = 60


def transit_completion_times(entry: ChainEntry, dwell_seconds: int) -> list[int]:
    """Per scenario: last observed minimum_time plus the alighting/transfer dwell."""
    return [trip.results[-1].minimum_time + dwell_seconds for trip in entry.prediction.trips]


def _enrich(leg: Leg, arrivals: list[int], completions: list[int], entry: Optional[ChainEntry]) -> EnrichedLeg:
    fields = dict(
        index=leg.index,
        travel_mode=leg.mode,
        start_location=leg.start,
        end_location=leg.end,
        duration=leg.duration,
        polyline=leg.polyline,
        geometry=leg_geometry(leg.polyline, leg.start, leg.end),
        line=leg.line,
        transit_type=leg.transit_type,
        icon=leg.icon,
        travel_segment_user_arrival_times=arrivals,
        travel_segment_user_completion_times=completions,
    )
    if entry is not None:
        fields.update(
            start_station=entry.stations.start,
            end_station=entry.stations.end,
            prediction=entry.prediction,
        )
    return EnrichedLeg(**fields)


def merge_timeline(
    legs: list[Leg],
    chain: dict[int, ChainEntry],
    seeds: list[int],
    heading: Heading,
    dwell_seconds: int = DEFAULT_TRANSFER_DWELL_SECONDS,
) -> Union[Timeline, RouteRejected]:
    """Build the enriched, ordered leg sequence.

    Leg 0 is reached at the seed times. After a TRANSIT leg, the next leg is
    reached ``dwell_seconds`` after that leg's last predicted ``minimum_time``
    in each scenario. After a WALKING leg, the next leg is reached at the
    walking leg's arrival times plus the next leg's own duration.

    Completion times are the arrival times plus the leg's duration for WALKING
    legs, and the dwell-adjusted last ``minimum_time`` for TRANSIT legs; the
    last leg's completion times are the destination arrival times.
    """
    unsupported = [
        leg for leg in legs
        if leg.mode == TravelMode.TRANSIT and leg.transit_type not in SUPPORTED_VEHICLE_TYPES
    ]
    if unsupported:
        return RouteRejected(
            reason="Route uses transit without prediction data",
            offending_legs=[RejectedLeg(index=leg.index, vehicle_type=leg.transit_type) for leg in unsupported],
        )

    enriched = []
    arrivals = list(seeds)
    completions = list(seeds)
    for i, leg in enumerate(legs):
        if i > 0:
            if legs[i - 1].mode == TravelMode.TRANSIT:
                arrivals = completions
            else:
                arrivals = [t + leg.duration for t in arrivals]

        if leg.mode == TravelMode.TRANSIT:
            entry = chain.get(leg.index)
            if entry is None:
                raise MalformedRouteError(leg.index, "transit leg has no prediction results")
            completions = transit_completion_times(entry, dwell_seconds)
        else:
            entry = None
            completions = [t + leg.duration for t in arrivals]

        enriched.append(_enrich(leg, arrivals, completions, entry))

    logger.debug(f"Merged timeline of {len(enriched)} legs over {len(seeds)} scenarios")
    return Timeline(
        heading=heading,
        seed_timestamps=list(seeds),
        legs=enriched,
        destination_arrival_times=completions,
    )
