"""Time-propagation chain over the TRANSIT legs of a route.

Transit agencies only publish predictions relative to a reference time, so
each TRANSIT leg is queried with timestamps taken from the previous TRANSIT
leg's results: per scenario, the ``latest_information_time`` of the last
stop-level observation. The first TRANSIT leg is seeded with the request's
seed set. Scenarios never mix; scenario ``j`` of leg ``k+1`` only depends on
scenario ``j`` of leg ``k``.

The chain is a fold: each step takes the accumulator produced by the previous
step and returns a new one, so the next query cannot start before the
previous batch is resolved.
"""

import logging
from dataclasses import dataclass

from transit_explorer.errors import ChainBrokenError, TransportError
from transit_explorer.models import Leg, PredictionBatch, StationPair, TravelMode
from transit_explorer.timestamps import format_service_time

logger = logging.getLogger("transit_explorer.chain")


@dataclass(frozen=True)
class ChainEntry:
    leg_index: int
    stations: StationPair
    prediction: PredictionBatch


@dataclass(frozen=True)
class ChainAccumulator:
    seeds: tuple[int, ...]  # seed per scenario for the next TRANSIT leg
    entries: tuple[ChainEntry, ...] = ()

    def by_leg(self) -> dict[int, ChainEntry]:
        return {entry.leg_index: entry for entry in self.entries}


def next_seeds(batch: PredictionBatch, scenario_count: int, leg_index: int, ordinal: int) -> tuple[int, ...]:
    """Per-scenario seeds for the following TRANSIT leg.

    Also checks that every scenario carries what the timeline needs from its
    last observation (``minimum_time``), so a batch accepted here can always
    be merged.
    """
    if len(batch) != scenario_count:
        raise ChainBrokenError(
            leg_index, ordinal,
            f"expected {scenario_count} scenarios, prediction service returned {len(batch)}",
        )

    seeds = []
    for j, trip in enumerate(batch.trips):
        if not trip.results:
            raise ChainBrokenError(leg_index, ordinal, f"scenario {j} ({trip.status or 'no status'}) has no observations")
        last = trip.results[-1]
        if last.latest_information_time is None or last.minimum_time is None:
            raise ChainBrokenError(leg_index, ordinal, f"scenario {j} last observation is missing times")
        seeds.append(last.latest_information_time)
    return tuple(seeds)


async def chain_step(
    acc: ChainAccumulator,
    predictor,
    leg: Leg,
    stations: StationPair,
    ordinal: int,
    utc_offset_hours: int = -5,
) -> ChainAccumulator:
    """Query one TRANSIT leg with the accumulator's seeds and fold its batch in."""
    timestamps = [format_service_time(seed, utc_offset_hours) for seed in acc.seeds]
    logger.debug(f"Querying leg {leg.index} ({leg.line}) with seeds {timestamps}")

    try:
        batch = await predictor.poll_travel_times(
            leg.line, stations.start.stop_id, stations.end.stop_id, timestamps
        )
    except TransportError as e:
        failure = e.with_leg(leg.index)
        logger.warning(f"Prediction query failed: {failure}")
        raise ChainBrokenError(leg.index, ordinal, str(failure)) from failure

    seeds = next_seeds(batch, len(acc.seeds), leg.index, ordinal)
    logger.info(f"Chain step {ordinal} (leg {leg.index}, line {leg.line}) resolved {len(batch)} scenarios")
    return ChainAccumulator(
        seeds=seeds,
        entries=acc.entries + (ChainEntry(leg_index=leg.index, stations=stations, prediction=batch),),
    )


async def run_chain(
    predictor,
    legs: list[Leg],
    stations: dict[int, StationPair],
    seeds: list[int],
    utc_offset_hours: int = -5,
) -> ChainAccumulator:
    """Run the prediction chain over every TRANSIT leg, in route order.

    ``predictor`` is anything with an async
    ``poll_travel_times(line, start_stop_id, end_stop_id, timestamps) -> PredictionBatch``.
    With no TRANSIT legs nothing is queried and the accumulator comes back empty.
    """
    acc = ChainAccumulator(seeds=tuple(seeds))
    transit_legs = [leg for leg in legs if leg.mode == TravelMode.TRANSIT]

    for ordinal, leg in enumerate(transit_legs):
        pair = stations.get(leg.index)
        if pair is None:
            raise ChainBrokenError(leg.index, ordinal, "no stations resolved for leg")
        acc = await chain_step(acc, predictor, leg, pair, ordinal, utc_offset_hours)

    return acc
