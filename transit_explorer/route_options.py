"""Leg classification, route heading and routing-service response parsing."""

import logging
from typing import Optional, Union

from transit_explorer.errors import MalformedRouteError
from transit_explorer.models import (
    Coordinate,
    Heading,
    Leg,
    RawLeg,
    RejectedLeg,
    Route,
    RouteRejected,
    TravelMode,
)

logger = logging.getLogger("transit_explorer.route_options")

WALKING_ICON = "../static/icon-walking.png"
SUPPORTED_VEHICLE_TYPES = {"SUBWAY"}


def resolve_heading(start_lat: float, end_lat: float) -> Heading:
    """Coarse north/south label for a route.

    Every train in the system is signed either northbound or southbound, even
    where the line runs mostly east-west, so routes dominated by east-west
    travel can be mislabeled. Equal latitudes resolve to "S".
    """
    return "N" if end_lat > start_lat else "S"


def route_heading(route: Route) -> Heading:
    """Heading of a route: the routing-service value if present, else derived from its legs."""
    if route.heading is not None:
        return route.heading
    if not route.legs:
        raise MalformedRouteError(None, "route has no legs")
    first, last = route.legs[0], route.legs[-1]
    if first.start_location is None:
        raise MalformedRouteError(0, "missing start_location")
    if last.end_location is None:
        raise MalformedRouteError(len(route.legs) - 1, "missing end_location")
    return resolve_heading(first.start_location.lat, last.end_location.lat)


def _vehicle_type(raw: RawLeg) -> Optional[str]:
    details = raw.transit_details
    if details is None or details.line is None or details.line.vehicle is None:
        return None
    return details.line.vehicle.type


def find_rejection(route: Route) -> Optional[RouteRejected]:
    """Reject routes using transit other than subway; there is no prediction data for it.

    Only legs whose vehicle type is known are considered here, so a single bus
    leg rejects the route even when other legs are malformed.
    """
    offending = []
    for i, raw in enumerate(route.legs):
        if raw.travel_mode != TravelMode.TRANSIT.value:
            continue
        vehicle_type = _vehicle_type(raw)
        if vehicle_type is not None and vehicle_type not in SUPPORTED_VEHICLE_TYPES:
            offending.append(RejectedLeg(index=i, vehicle_type=vehicle_type))

    if not offending:
        return None

    types = ", ".join(sorted({leg.vehicle_type for leg in offending}))
    return RouteRejected(
        reason=f"Route uses transit without prediction data ({types})",
        offending_legs=offending,
    )


def classify_leg(raw: RawLeg, index: int) -> Leg:
    """Tag one raw leg as WALKING or TRANSIT and normalize its fields."""
    if raw.start_location is None or raw.end_location is None:
        raise MalformedRouteError(index, "missing start_location or end_location")
    if raw.duration is None:
        raise MalformedRouteError(index, "missing duration")

    if raw.travel_mode == TravelMode.WALKING.value:
        return Leg(
            index=index,
            mode=TravelMode.WALKING,
            start=raw.start_location,
            end=raw.end_location,
            duration=raw.duration.value,
            polyline=raw.polyline or "",
            transit_type="WALKING",
            icon=WALKING_ICON,
        )

    if raw.travel_mode != TravelMode.TRANSIT.value:
        raise MalformedRouteError(index, f"unknown travel_mode {raw.travel_mode!r}")

    if not raw.polyline:
        raise MalformedRouteError(index, "transit leg has no polyline")
    line = raw.transit_details.line if raw.transit_details else None
    if line is None or not line.short_name:
        raise MalformedRouteError(index, "transit leg has no line details")
    vehicle_type = _vehicle_type(raw)
    if vehicle_type is None:
        raise MalformedRouteError(index, "transit leg has no vehicle type")

    return Leg(
        index=index,
        mode=TravelMode.TRANSIT,
        start=raw.start_location,
        end=raw.end_location,
        duration=raw.duration.value,
        polyline=raw.polyline,
        line=line.short_name,
        transit_type=vehicle_type,
        icon=line.icon,
    )


def classify_route(route: Route) -> Union[list[Leg], RouteRejected]:
    """Classify every leg of a route, or reject the route as a whole."""
    rejection = find_rejection(route)
    if rejection is not None:
        logger.warning(f"Route rejected: {rejection.reason}")
        return rejection
    if not route.legs:
        raise MalformedRouteError(None, "route has no legs")
    return [classify_leg(raw, i) for i, raw in enumerate(route.legs)]


def _location(raw: Optional[dict]) -> Optional[Coordinate]:
    if not raw:
        return None
    return Coordinate(lat=raw["lat"], lng=raw["lng"])


def _flatten_steps(route: dict) -> list[RawLeg]:
    steps = []
    for leg in route.get("legs", []):
        for step in leg.get("steps", []):
            steps.append(RawLeg.model_validate(step))
    return steps


def parse_transit_options(payload: dict, supported_only: bool = True) -> list[Route]:
    """Turn a routing-service directions response into Route objects.

    Each service route's legs are flattened into their steps, which become the
    legs of our Route. Service routes whose first leg has no arrival_time are
    skipped: the service only schedules trips long enough to need transit, so
    such a route is a single walk with nothing to predict.
    """
    routes = []
    for i, r in enumerate(payload.get("routes", [])):
        legs = r.get("legs", [])
        if not legs or "arrival_time" not in legs[0]:
            logger.debug(f"Skipping route {i}: no scheduled arrival time")
            continue

        start = _location(legs[0].get("start_location"))
        end = _location(legs[-1].get("end_location"))
        if start is None or end is None:
            logger.warning(f"Skipping route {i}: missing start or end location")
            continue

        departure = legs[0].get("departure_time", {}).get("value")
        arrival = legs[-1].get("arrival_time", {}).get("value")
        route = Route(
            legs=_flatten_steps(r),
            heading=resolve_heading(start.lat, end.lat),
            departure_time=departure,
            arrival_time=arrival,
        )

        if supported_only and find_rejection(route) is not None:
            logger.info(f"Dropping route {i}: uses non-subway transit")
            continue
        routes.append(route)

    logger.info(f"Parsed {len(routes)} transit options")
    return routes
