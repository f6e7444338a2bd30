import logging
import time

from fastapi import APIRouter, HTTPException

from transit_explorer.config import Settings
from transit_explorer.errors import (
    EnrichTimeoutError,
    MalformedRouteError,
    TransitExplorerError,
    TransportError,
)
from transit_explorer.explorer import enrich_route
from transit_explorer.models import (
    ExploreRequest,
    ExploreResponse,
    RouteRejected,
    TransitOptionsRequest,
    TransitOptionsResponse,
)
from transit_explorer.timestamps import normalize_seed_set, parse_service_time

logger = logging.getLogger("transit_explorer.routes")

router = APIRouter()


def _get_state():
    from transit_explorer.main import app_state
    return app_state


def _settings(state: dict) -> Settings:
    return state.get("settings") or Settings()


def _require(state: dict, key: str):
    client = state.get(key)
    if client is None:
        raise HTTPException(status_code=503, detail=f"{key} client not initialized")
    return client


@router.get("/health")
async def health():
    return {"status": "ok", "service": "Transit Explorer API"}


@router.post("/transit-options", response_model=TransitOptionsResponse)
async def get_transit_options(request: TransitOptionsRequest):
    """Candidate walking + transit routes between two points."""
    state = _get_state()
    routing = _require(state, "routing")
    settings = _settings(state)

    departure = request.departure_time
    if departure is None:
        departure = int(time.time())
    elif isinstance(departure, str):
        try:
            departure = parse_service_time(departure, settings.service_utc_offset_hours)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))

    try:
        routes = await routing.lookup_routes(
            request.start, request.end, departure, supported_only=request.supported_only
        )
    except TransportError as e:
        logger.error(f"Transit options lookup failed: {e}")
        raise HTTPException(status_code=502, detail=e.to_detail())

    return TransitOptionsResponse(routes=routes)


@router.post("/explore", response_model=ExploreResponse)
async def explore_route(request: ExploreRequest):
    """Enrich one route with chained arrival predictions for every leg."""
    state = _get_state()
    explorer = _require(state, "explorer")
    settings = _settings(state)

    seeds = None
    if request.seed_timestamps is not None:
        try:
            seeds = normalize_seed_set(request.seed_timestamps, settings.service_utc_offset_hours)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))

    try:
        result = await enrich_route(request.route, seeds, explorer, explorer, settings)
    except MalformedRouteError as e:
        raise HTTPException(status_code=422, detail=e.to_detail())
    except EnrichTimeoutError as e:
        raise HTTPException(status_code=504, detail=e.to_detail())
    except TransitExplorerError as e:
        logger.error(f"Route exploration failed: {e}")
        raise HTTPException(status_code=502, detail=e.to_detail())

    if isinstance(result, RouteRejected):
        return ExploreResponse(status="rejected", rejection=result)
    return ExploreResponse(status="ok", timeline=result)
