import logging

import httpx
from pydantic import BaseModel

from vegscout.schemas.menu import MenuItem

logger = logging.getLogger(__name__)

_TIMEOUT = 60.0


class RenderedMenu(BaseModel):
    success: bool = False
    menu_items: list[MenuItem] = []
    categories: list[str] = []
    restaurant_info: dict = {}
    menu_page_url: str | None = None
    error: str | None = None


class RenderBackendService:
    """Client for the browser-rendering scraper used on JavaScript-heavy sites."""

    def __init__(self, client: httpx.AsyncClient, base_url: str, timeout: float = _TIMEOUT):
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    async def render_and_extract(self, url: str, mobile: bool = True) -> RenderedMenu:
        """Best-effort, never raises."""
        try:
            return await self._do_render(url, mobile)
        except Exception:
            logger.exception("Render backend failed for %s", url)
            return RenderedMenu(error="render backend unavailable")

    async def _do_render(self, url: str, mobile: bool) -> RenderedMenu:
        resp = await self._client.post(
            f"{self._base_url}/api/scrape-menu-complete",
            json={"url": url, "options": {"mobile": mobile, "timeout": int(self._timeout * 1000)}},
            timeout=self._timeout + 5,
        )
        if resp.status_code >= 400:
            logger.warning("Render backend returned %s for %s", resp.status_code, url)
            return RenderedMenu(error=f"status {resp.status_code}")

        data = resp.json()
        items: list[MenuItem] = []
        for raw in data.get("menuItems") or []:
            if not isinstance(raw, dict) or not str(raw.get("name") or "").strip():
                continue
            price = raw.get("price")
            items.append(MenuItem(
                name=str(raw["name"]).strip(),
                price=str(price) if price not in (None, "") else None,
                category=str(raw.get("category") or "General"),
                description=str(raw["description"]) if raw.get("description") else None,
            ))
        return RenderedMenu(
            success=bool(data.get("success")),
            menu_items=items,
            categories=[str(c) for c in data.get("categories") or []],
            restaurant_info=data.get("restaurantInfo") or {},
            menu_page_url=data.get("menuPageUrl"),
            error=data.get("error"),
        )
