"""httpx clients for the routing proxy and the subway explorer service."""

import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from transit_explorer.errors import TransportError
from transit_explorer.models import Coordinate, Heading, PredictionBatch, Route, Station
from transit_explorer.route_options import parse_transit_options

logger = logging.getLogger("transit_explorer.clients")


async def _get_json(
    url: str,
    params: dict,
    service: str,
    http_client: Optional[httpx.AsyncClient],
    timeout: float,
):
    try:
        if http_client:
            resp = await http_client.get(url, params=params, timeout=timeout)
            resp.raise_for_status()
            return resp.json()
        async with httpx.AsyncClient(timeout=timeout) as client:
            resp = await client.get(url, params=params)
            resp.raise_for_status()
            return resp.json()
    except httpx.TimeoutException as e:
        raise TransportError(service, f"timed out: {e}") from e
    except httpx.HTTPStatusError as e:
        raise TransportError(service, f"HTTP {e.response.status_code}") from e
    except httpx.HTTPError as e:
        raise TransportError(service, str(e) or type(e).__name__) from e
    except ValueError as e:
        raise TransportError(service, f"invalid JSON body: {e}") from e


class RoutingClient:
    """Trip options lookup against the routing service proxy."""

    service = "routing"

    def __init__(self, base_uri: str, http_client: Optional[httpx.AsyncClient] = None, timeout: float = 12.0):
        self.base_uri = base_uri
        self.http_client = http_client
        self.timeout = timeout

    async def lookup_routes(
        self,
        start: Coordinate,
        end: Coordinate,
        departure_time: int,
        supported_only: bool = True,
    ) -> list[Route]:
        params = {
            "starting_x": start.lng,
            "starting_y": start.lat,
            "ending_x": end.lng,
            "ending_y": end.lat,
            "departure_time": departure_time,
        }
        payload = await _get_json(
            f"http://{self.base_uri}/", params, self.service, self.http_client, self.timeout
        )
        logger.info(f"Routing lookup succeeded: {len(payload.get('routes', []))} raw routes")
        try:
            return parse_transit_options(payload, supported_only=supported_only)
        except (KeyError, TypeError, ValidationError) as e:
            raise TransportError(self.service, f"unexpected response shape: {e}") from e


class SubwayExplorerClient:
    """Station locator and travel time prediction lookups."""

    def __init__(self, base_uri: str, http_client: Optional[httpx.AsyncClient] = None, timeout: float = 12.0):
        self.base_uri = base_uri
        self.http_client = http_client
        self.timeout = timeout

    async def locate_station(self, line: str, x: float, y: float, heading: Heading, reference_time: str) -> Station:
        params = {"line": line, "x": x, "y": y, "heading": heading, "time": reference_time}
        payload = await _get_json(
            f"http://{self.base_uri}/locate-stations/json",
            params, "station-locator", self.http_client, self.timeout,
        )
        try:
            return Station.from_locator(payload)
        except (KeyError, TypeError, ValidationError) as e:
            raise TransportError("station-locator", f"unexpected response shape: {e}") from e

    async def poll_travel_times(
        self,
        line: str,
        start_stop_id: str,
        end_stop_id: str,
        timestamps: list[str],
    ) -> PredictionBatch:
        """One batched query: every scenario's timestamp goes out pipe-delimited."""
        params = {
            "line": line,
            "start": start_stop_id,
            "end": end_stop_id,
            "timestamps": "|".join(timestamps),
        }
        payload = await _get_json(
            f"http://{self.base_uri}/poll-travel-times/json",
            params, "prediction", self.http_client, self.timeout,
        )
        try:
            if isinstance(payload, dict):
                batch = PredictionBatch.model_validate(payload)
            else:
                batch = PredictionBatch(trips=payload)
        except ValidationError as e:
            raise TransportError("prediction", f"unexpected response shape: {e}") from e
        logger.debug(f"poll-travel-times {line} {start_stop_id}->{end_stop_id}: {len(batch)} scenarios")
        return batch
