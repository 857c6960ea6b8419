import logging
from typing import NamedTuple
from urllib.parse import quote

import httpx

from vegscout.mappers.content_rules import classify_content, most_informative
from vegscout.mappers.url_utils import scheme_variants
from vegscout.schemas.menu import ContentTag, FetchResult

logger = logging.getLogger(__name__)

_MAX_BODY = 5 * 1024 * 1024  # 5 MB
_TIMEOUT = 15.0
_USER_AGENT = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)
_HEADERS = {
    "User-Agent": _USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}

ALLORIGINS_URL = "https://api.allorigins.win/get"
CODETABS_URL = "https://api.codetabs.com/v1/proxy"


class RawResponse(NamedTuple):
    status_code: int | None
    text: str | None
    content_type: str | None = None


class DirectTransport:
    name = "direct"

    async def retrieve(self, client: httpx.AsyncClient, url: str, timeout: float) -> RawResponse:
        resp = await client.get(url, follow_redirects=True, timeout=timeout, headers=_HEADERS)
        content_type = resp.headers.get("content-type", "")
        if len(resp.content) > _MAX_BODY:
            logger.debug("Skipping oversized page %s (%d bytes)", url, len(resp.content))
            return RawResponse(resp.status_code, None, content_type)
        if "application/pdf" in content_type:
            return RawResponse(resp.status_code, "%PDF-", content_type)
        return RawResponse(resp.status_code, resp.text, content_type)


class AllOriginsTransport:
    """JSON-wrapping CORS proxy; the page arrives in ``contents``."""

    name = "allorigins"

    async def retrieve(self, client: httpx.AsyncClient, url: str, timeout: float) -> RawResponse:
        resp = await client.get(ALLORIGINS_URL, params={"url": url}, timeout=timeout)
        if resp.status_code >= 400:
            return RawResponse(resp.status_code, None)
        data = resp.json()
        status = (data.get("status") or {}).get("http_code")
        content_type = (data.get("status") or {}).get("content_type")
        return RawResponse(status or resp.status_code, data.get("contents"), content_type)


class CodeTabsTransport:
    name = "codetabs"

    async def retrieve(self, client: httpx.AsyncClient, url: str, timeout: float) -> RawResponse:
        resp = await client.get(f"{CODETABS_URL}?quest={quote(url, safe='')}", timeout=timeout)
        return RawResponse(resp.status_code, resp.text, resp.headers.get("content-type"))


DEFAULT_TRANSPORTS = (DirectTransport(), AllOriginsTransport(), CodeTabsTransport())


class ContentFetcher:
    def __init__(
        self,
        client: httpx.AsyncClient,
        transports=DEFAULT_TRANSPORTS,
        timeout: float = _TIMEOUT,
    ):
        self._client = client
        self._transports = tuple(transports)
        self._timeout = timeout

    async def fetch(self, url: str) -> FetchResult:
        """First acceptable HTML across scheme variants and transports.

        Never raises; a null-content result carries the most informative
        rejection tag seen.
        """
        seen_tags: list[ContentTag] = []
        for candidate in scheme_variants(url):
            for transport in self._transports:
                raw = await self._retrieve(transport, candidate)
                if raw is None:
                    continue
                tag = classify_content(raw.text, raw.status_code, raw.content_type)
                seen_tags.append(tag)
                if tag != ContentTag.html:
                    logger.debug("%s via %s rejected as %s", candidate, transport.name, tag)
                    continue
                if raw.status_code is not None and raw.status_code >= 400:
                    logger.warning(
                        "Accepting %s via %s despite status %s", candidate, transport.name, raw.status_code,
                    )
                return FetchResult(
                    url=candidate,
                    content=raw.text,
                    tag=tag,
                    status_code=raw.status_code,
                    transport=transport.name,
                )

        tag = most_informative(seen_tags)
        logger.info("All transports failed for %s (%s)", url, tag)
        return FetchResult(url=url, content=None, tag=tag)

    async def _retrieve(self, transport, url: str) -> RawResponse | None:
        try:
            return await transport.retrieve(self._client, url, self._timeout)
        except (httpx.HTTPError, ValueError) as exc:
            logger.debug("Transport %s failed for %s: %s", transport.name, url, exc)
            return None
