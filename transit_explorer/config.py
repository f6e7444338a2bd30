import logging
import os
from dataclasses import dataclass

logger = logging.getLogger("transit_explorer.config")


@dataclass(frozen=True)
class Settings:
    """Runtime configuration, read from the environment by load_settings()."""
    gmaps_proxy_uri: str = "localhost:8000"
    subway_explorer_uri: str = "localhost:8001"
    http_timeout: float = 12.0
    enrich_timeout: float = 60.0  # 0 disables
    transfer_dwell_seconds: int = 60
    service_utc_offset_hours: int = -5
    default_seed_start: str = "2018-02-20T06:00"
    default_seed_count: int = 5
    default_seed_step_seconds: int = 3600


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring non-numeric {name}={raw!r}, using {default}")
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring non-integer {name}={raw!r}, using {default}")
        return default


def load_settings() -> Settings:
    """Build Settings from environment variables (after .env has been loaded)."""
    defaults = Settings()
    return Settings(
        gmaps_proxy_uri=os.getenv("GMAPS_PROXY_SERVICE_URI", defaults.gmaps_proxy_uri),
        subway_explorer_uri=os.getenv("SUBWAY_EXPLORER_SERVICE_URI", defaults.subway_explorer_uri),
        http_timeout=_env_float("HTTP_TIMEOUT_SECONDS", defaults.http_timeout),
        enrich_timeout=_env_float("ENRICH_TIMEOUT_SECONDS", defaults.enrich_timeout),
        transfer_dwell_seconds=_env_int("TRANSFER_DWELL_SECONDS", defaults.transfer_dwell_seconds),
        service_utc_offset_hours=_env_int("SERVICE_UTC_OFFSET_HOURS", defaults.service_utc_offset_hours),
        default_seed_start=os.getenv("DEFAULT_SEED_START", defaults.default_seed_start),
        default_seed_count=_env_int("DEFAULT_SEED_COUNT", defaults.default_seed_count),
        default_seed_step_seconds=_env_int("DEFAULT_SEED_STEP_SECONDS", defaults.default_seed_step_seconds),
    )
