"""Error taxonomy for the route exploration pipeline.

Every error carries enough context (leg index, remote call) for the HTTP layer
to report which leg and which lookup failed. Route rejection is not an error:
see ``RouteRejected`` in ``models``.
"""

from typing import Optional


class TransitExplorerError(Exception):
    """Base class for all pipeline failures."""

    def to_detail(self) -> dict:
        return {"error": type(self).__name__, "message": str(self)}


class TransportError(TransitExplorerError):
    """A collaborator call failed at the network level or returned an unusable body."""

    def __init__(self, service: str, detail: str, leg_index: Optional[int] = None):
        self.service = service
        self.detail = detail
        self.leg_index = leg_index
        where = f" (leg {leg_index})" if leg_index is not None else ""
        super().__init__(f"{service} request failed{where}: {detail}")

    def with_leg(self, leg_index: int) -> "TransportError":
        """The same failure, tagged with the route leg it happened on."""
        return TransportError(self.service, self.detail, leg_index)

    def to_detail(self) -> dict:
        return {**super().to_detail(), "service": self.service, "leg_index": self.leg_index}


class MalformedRouteError(TransitExplorerError):
    """A route leg is missing data needed to classify or enrich it."""

    def __init__(self, leg_index: Optional[int], reason: str):
        self.leg_index = leg_index
        self.reason = reason
        where = f"leg {leg_index}" if leg_index is not None else "route"
        super().__init__(f"Malformed {where}: {reason}")

    def to_detail(self) -> dict:
        return {**super().to_detail(), "leg_index": self.leg_index}


class StationLookupError(TransitExplorerError):
    """A station could not be resolved for one endpoint of a TRANSIT leg."""

    def __init__(self, leg_index: int, endpoint: str, cause: Exception):
        self.leg_index = leg_index
        self.endpoint = endpoint
        self.cause = cause
        super().__init__(f"Station lookup failed for {endpoint} of leg {leg_index}: {cause}")

    def to_detail(self) -> dict:
        return {
            **super().to_detail(),
            "leg_index": self.leg_index,
            "endpoint": self.endpoint,
            "call": "locate-stations",
        }


class ChainBrokenError(TransitExplorerError):
    """A TRANSIT leg's prediction query failed, so no seed exists for later legs."""

    def __init__(self, leg_index: int, transit_ordinal: int, reason: str):
        self.leg_index = leg_index
        self.transit_ordinal = transit_ordinal
        self.reason = reason
        super().__init__(
            f"Prediction chain broken at leg {leg_index} "
            f"(transit leg #{transit_ordinal}): {reason}"
        )

    def to_detail(self) -> dict:
        return {
            **super().to_detail(),
            "leg_index": self.leg_index,
            "transit_ordinal": self.transit_ordinal,
            "call": "poll-travel-times",
        }


class EnrichTimeoutError(TransitExplorerError):
    """The whole enrichment exceeded the deployment-level timeout."""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"Route enrichment exceeded {timeout:.1f}s")
