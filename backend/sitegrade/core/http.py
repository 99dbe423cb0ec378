import httpx
from contextlib import asynccontextmanager
from typing import Optional
from sitegrade.core.config import Settings

DEFAULT_UA = (
    "SiteGradeScanner/0.1 (+https://example.local) "
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

HEADERS = {"User-Agent": DEFAULT_UA, "Accept": "application/json, text/html, */*"}


def timeout_for(settings: Settings) -> httpx.Timeout:
    return httpx.Timeout(settings.http_timeout, connect=settings.http_connect_timeout)


@asynccontextmanager
async def client_for(settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
    async with httpx.AsyncClient(
        timeout=timeout_for(settings),
        headers=HEADERS,
        follow_redirects=True,
        http2=True,
        verify=True,
        transport=transport,
    ) as client:
        yield client
