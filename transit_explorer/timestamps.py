"""Seed timestamps and their wire format.

The prediction service reads and writes wall-clock times as ``YYYY-MM-DDTHH:mm``
in a fixed UTC offset (New York standard time by default). Inside the pipeline
every timestamp is an integer epoch second.
"""

from datetime import datetime, timedelta, timezone
from typing import Iterable, Union

from transit_explorer.config import Settings

SERVICE_TIME_FORMAT = "%Y-%m-%dT%H:%M"


def _service_tz(utc_offset_hours: int) -> timezone:
    return timezone(timedelta(hours=utc_offset_hours))


def parse_service_time(value: str, utc_offset_hours: int = -5) -> int:
    """Parse a ``YYYY-MM-DDTHH:mm`` service-time string into epoch seconds."""
    try:
        naive = datetime.strptime(value, SERVICE_TIME_FORMAT)
    except ValueError as e:
        raise ValueError(f"Expected a YYYY-MM-DDTHH:mm timestamp, got {value!r}") from e
    return int(naive.replace(tzinfo=_service_tz(utc_offset_hours)).timestamp())


def format_service_time(epoch: int, utc_offset_hours: int = -5) -> str:
    """Format epoch seconds as a ``YYYY-MM-DDTHH:mm`` service-time string (minutes truncated)."""
    return datetime.fromtimestamp(epoch, tz=_service_tz(utc_offset_hours)).strftime(SERVICE_TIME_FORMAT)


def build_seed_set(start: int, count: int, step_seconds: int = 3600) -> list[int]:
    """Seed set of ``count`` scenarios starting at ``start`` and ``step_seconds`` apart."""
    if count < 1:
        raise ValueError("A seed set needs at least one scenario")
    return [start + i * step_seconds for i in range(count)]


def default_seed_set(settings: Settings) -> list[int]:
    start = parse_service_time(settings.default_seed_start, settings.service_utc_offset_hours)
    return build_seed_set(start, settings.default_seed_count, settings.default_seed_step_seconds)


def normalize_seed_set(values: Iterable[Union[int, str]], utc_offset_hours: int = -5) -> list[int]:
    """Convert user-supplied seeds (epoch ints or service-time strings) to epoch seconds."""
    seeds = []
    for v in values:
        if isinstance(v, str):
            seeds.append(parse_service_time(v, utc_offset_hours))
        else:
            seeds.append(int(v))
    if not seeds:
        raise ValueError("A seed set needs at least one scenario")
    return seeds
