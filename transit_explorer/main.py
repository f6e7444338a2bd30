import logging
from contextlib import asynccontextmanager

import httpx
from dotenv import load_dotenv

load_dotenv()  # Load .env before settings are read

from fastapi import FastAPI

from transit_explorer.clients import RoutingClient, SubwayExplorerClient
from transit_explorer.config import load_settings

logger = logging.getLogger("transit_explorer")
logging.basicConfig(level=logging.INFO)

# Global state populated during startup
app_state: dict = {}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the shared HTTP client and the service clients."""
    settings = load_settings()
    app_state["settings"] = settings
    logger.info(
        f"Routing proxy at {settings.gmaps_proxy_uri}, "
        f"subway explorer at {settings.subway_explorer_uri}"
    )

    # Shared httpx client for connection pooling across all lookups
    http_client = httpx.AsyncClient(
        timeout=settings.http_timeout,
        limits=httpx.Limits(max_connections=50, max_keepalive_connections=20),
    )
    app_state["http_client"] = http_client
    app_state["routing"] = RoutingClient(settings.gmaps_proxy_uri, http_client, settings.http_timeout)
    app_state["explorer"] = SubwayExplorerClient(settings.subway_explorer_uri, http_client, settings.http_timeout)
    logger.info("Shared HTTP client created (connection pooling enabled)")

    yield

    logger.info("Shutting down...")
    await http_client.aclose()
    logger.info("Shared HTTP client closed")


app = FastAPI(title="Transit Explorer API", version="0.1.0", lifespan=lifespan)

from transit_explorer.routes import router  # noqa: E402

app.include_router(router, prefix="/api")
