"""Route exploration: the full enrichment pipeline for one route."""

import asyncio
import logging
from typing import Optional, Union

from transit_explorer.chain import run_chain
from transit_explorer.config import Settings
from transit_explorer.errors import EnrichTimeoutError
from transit_explorer.models import Route, RouteRejected, Timeline
from transit_explorer.route_options import classify_route, route_heading
from transit_explorer.stations import resolve_stations
from transit_explorer.timeline import merge_timeline
from transit_explorer.timestamps import default_seed_set, format_service_time

logger = logging.getLogger("transit_explorer.explorer")


async def _enrich(
    route: Route,
    seeds: list[int],
    locator,
    predictor,
    settings: Settings,
) -> Union[Timeline, RouteRejected]:
    classified = classify_route(route)
    if isinstance(classified, RouteRejected):
        return classified
    heading = route_heading(route)

    # Stations are looked up at the first scenario's departure time
    reference_time = format_service_time(seeds[0], settings.service_utc_offset_hours)
    stations = await resolve_stations(locator, classified, heading, reference_time)

    chain = await run_chain(
        predictor, classified, stations, seeds, settings.service_utc_offset_hours
    )
    return merge_timeline(
        classified, chain.by_leg(), seeds, heading, settings.transfer_dwell_seconds
    )


async def enrich_route(
    route: Route,
    seeds: Optional[list[int]],
    locator,
    predictor,
    settings: Optional[Settings] = None,
) -> Union[Timeline, RouteRejected]:
    """Classify, resolve stations, chain predictions and merge them for one route.

    Returns a Timeline, or RouteRejected for routes with non-subway transit.
    Raises MalformedRouteError before any remote call for unusable routes,
    StationLookupError / ChainBrokenError when a lookup fails, and
    EnrichTimeoutError when the whole run exceeds ``settings.enrich_timeout``.
    Cancelling the caller cancels every outstanding lookup.
    """
    settings = settings or Settings()
    if not seeds:
        seeds = default_seed_set(settings)

    logger.info(f"Enriching route with {len(route.legs)} legs over {len(seeds)} scenarios")
    work = _enrich(route, list(seeds), locator, predictor, settings)
    if not settings.enrich_timeout:
        return await work
    try:
        return await asyncio.wait_for(work, timeout=settings.enrich_timeout)
    except asyncio.TimeoutError as e:
        logger.warning(f"Route enrichment timed out after {settings.enrich_timeout}s")
        raise EnrichTimeoutError(settings.enrich_timeout) from e
