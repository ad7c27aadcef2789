import httpx

from dashboard.app.core.config import settings


http_client: httpx.AsyncClient | None = None


async def init_http_client(transport: httpx.AsyncBaseTransport | None = None) -> None:
    """Initialise the shared client for the restaurant API."""
    global http_client
    headers = {"Accept": "application/json"}
    if settings.UPSTREAM_API_TOKEN:
        headers["Authorization"] = f"Bearer {settings.UPSTREAM_API_TOKEN}"
    http_client = httpx.AsyncClient(
        base_url=settings.UPSTREAM_API_URL,
        headers=headers,
        timeout=settings.UPSTREAM_TIMEOUT_SECONDS,
        transport=transport,
    )


async def close_http_client() -> None:
    """Close the upstream client if it was initialised."""
    if http_client is not None:
        await http_client.aclose()
