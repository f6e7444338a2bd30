from __future__ import annotations

from enum import Enum
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

Heading = Literal["N", "S"]


class TravelMode(str, Enum):
    WALKING = "WALKING"
    TRANSIT = "TRANSIT"


class Coordinate(BaseModel):
    lat: float
    lng: float


# --- Routing service payloads (consumed read-only) ---


class Duration(BaseModel):
    value: int  # seconds
    text: str = ""


class TransitVehicle(BaseModel):
    model_config = ConfigDict(extra="allow")
    type: Optional[str] = None  # "SUBWAY", "BUS", "HEAVY_RAIL", ...


class TransitLine(BaseModel):
    model_config = ConfigDict(extra="allow")
    short_name: Optional[str] = None
    vehicle: Optional[TransitVehicle] = None
    icon: Optional[str] = None


class TransitDetails(BaseModel):
    model_config = ConfigDict(extra="allow")
    line: Optional[TransitLine] = None


class RawLeg(BaseModel):
    """One step of a routing-service itinerary, before classification.

    Fields are optional so that malformed legs can be reported by the
    classifier instead of failing at parse time.
    """
    model_config = ConfigDict(extra="allow")

    travel_mode: Optional[str] = None
    start_location: Optional[Coordinate] = None
    end_location: Optional[Coordinate] = None
    duration: Optional[Duration] = None
    polyline: Optional[str] = None
    transit_details: Optional[TransitDetails] = None

    @field_validator("duration", mode="before")
    @classmethod
    def _coerce_duration(cls, v):
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return {"value": int(v)}
        return v

    @field_validator("polyline", mode="before")
    @classmethod
    def _coerce_polyline(cls, v):
        # Google-style {"points": "..."} objects are flattened to the encoded string
        if isinstance(v, dict):
            return v.get("points")
        return v


class Route(BaseModel):
    """One candidate itinerary returned by the routing service."""
    legs: list[RawLeg]
    heading: Optional[Heading] = None  # derived from first/last latitude when absent
    departure_time: Optional[int] = None
    arrival_time: Optional[int] = None


# --- Classified legs ---


class Leg(BaseModel):
    index: int
    mode: TravelMode
    start: Coordinate
    end: Coordinate
    duration: int  # seconds
    polyline: str = ""
    line: Optional[str] = None  # TRANSIT only
    transit_type: str = "WALKING"  # "WALKING" or the vehicle type, e.g. "SUBWAY"
    icon: Optional[str] = None


class RejectedLeg(BaseModel):
    index: int
    vehicle_type: Optional[str] = None


class RouteRejected(BaseModel):
    """Terminal verdict for routes that use transit we have no prediction data for."""
    reason: str
    offending_legs: list[RejectedLeg] = Field(default_factory=list)


# --- Transit prediction service payloads ---


class Station(BaseModel):
    stop_id: str
    stop_name: str = ""
    x: float  # longitude
    y: float  # latitude

    @classmethod
    def from_locator(cls, payload: dict) -> "Station":
        """Build a Station from a station-locator response body."""
        return cls(
            stop_id=str(payload["stop_id"]),
            stop_name=payload.get("stop_name", ""),
            x=payload["stop_lon"],
            y=payload["stop_lat"],
        )


class StationPair(BaseModel):
    start: Station
    end: Station


class StopObservation(BaseModel):
    """One stop-level time observation within a predicted trip."""
    model_config = ConfigDict(extra="allow")

    minimum_time: Optional[int] = None
    latest_information_time: Optional[int] = None


class TripPrediction(BaseModel):
    """Prediction for one scenario of a batched travel-time query."""
    model_config = ConfigDict(extra="allow")

    status: str = ""
    results: list[StopObservation] = Field(default_factory=list)


class PredictionBatch(BaseModel):
    """All scenarios of one TRANSIT leg's travel-time query, in seed order."""
    trips: list[TripPrediction]

    def __len__(self) -> int:
        return len(self.trips)


# --- Pipeline output ---


class EnrichedLeg(BaseModel):
    index: int
    travel_mode: TravelMode
    start_location: Coordinate
    end_location: Coordinate
    duration: int
    polyline: str = ""
    geometry: dict  # GeoJSON LineString
    line: Optional[str] = None
    transit_type: str = "WALKING"
    icon: Optional[str] = None
    # When the user reaches the start of this leg, one value per scenario
    travel_segment_user_arrival_times: list[int]
    # When the user finishes this leg, one value per scenario
    travel_segment_user_completion_times: list[int]
    start_station: Optional[Station] = None
    end_station: Optional[Station] = None
    prediction: Optional[PredictionBatch] = None

    @computed_field
    @property
    def travel_status(self) -> Optional[list[str]]:
        if self.prediction is None:
            return None
        return [trip.status for trip in self.prediction.trips]

    @computed_field
    @property
    def travel_segments(self) -> Optional[list[list[StopObservation]]]:
        if self.prediction is None:
            return None
        return [trip.results for trip in self.prediction.trips]


class Timeline(BaseModel):
    heading: Heading
    seed_timestamps: list[int]
    legs: list[EnrichedLeg]
    destination_arrival_times: list[int]


# --- HTTP request/response models ---


SeedValue = Union[int, str]  # epoch seconds or "YYYY-MM-DDTHH:mm" in service time


class TransitOptionsRequest(BaseModel):
    start: Coordinate
    end: Coordinate
    departure_time: Optional[SeedValue] = None
    supported_only: bool = True


class TransitOptionsResponse(BaseModel):
    routes: list[Route]


class ExploreRequest(BaseModel):
    route: Route
    seed_timestamps: Optional[list[SeedValue]] = None


class ExploreResponse(BaseModel):
    status: Literal["ok", "rejected"]
    timeline: Optional[Timeline] = None
    rejection: Optional[RouteRejected] = None
