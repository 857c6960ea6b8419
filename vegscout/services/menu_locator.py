import logging
from dataclasses import dataclass, field

from vegscout.diagnostics import DiagnosticLog
from vegscout.mappers.html_reducer import (
    find_keyword_links,
    html_to_text,
    page_summary_text,
    reduce_for_menu_search,
)
from vegscout.mappers.menu_parser import has_price_indicators
from vegscout.mappers.url_utils import is_pdf_url, normalize_url, resolve, site_root
from vegscout.schemas.menu import (
    ContentTag,
    FetchResult,
    LocateResult,
    MenuCandidate,
    MenuCheck,
    MenuSearch,
)
from vegscout.services.claude import ClaudeService
from vegscout.services.content_fetcher import ContentFetcher
from vegscout.strategy import Accepted, Failed, Insufficient, StrategyResult, first_acceptable

logger = logging.getLogger(__name__)

MAX_DEPTH = 3
MAX_CANDIDATES = 5
MAX_KEYWORD_LINKS = 5
MENU_CHECK_THRESHOLD = 40
HIDDEN_MENU_THRESHOLD = 50
RECURSE_THRESHOLD = 70
PDF_FALLBACK_THRESHOLD = 60
MENU_CHECK_TEXT_CHARS = 20000

COMMON_MENU_PATHS = (
    "/menu", "/menus", "/food-menu", "/restaurant-menu", "/our-menu", "/order",
    "/order-online", "/food", "/dining", "/food-and-drink", "/eat", "/kitchen",
    "/dishes", "/lunch", "/dinner", "/breakfast",
)

_SEARCH_PROMPT = """You are analyzing a restaurant website to find the page that lists its food menu.

Website: {url}

Navigation-relevant HTML (links, buttons, nav, menu-flagged blocks):
{structure}

Visible text (truncated):
{text}

Find up to {limit} URLs most likely to contain the actual food menu with dish names.
Consider direct menu pages, PDF menus and online ordering systems. Ignore social media,
reservations, gift cards, careers and contact pages.

Respond with JSON only:
{{
  "hasHiddenMenu": true/false,
  "menuUrls": [
    {{"url": "...", "confidence": 0-100, "reason": "...", "type": "direct|pdf|orderingsystem"}}
  ],
  "contextClues": ["..."]
}}"""

_CHECK_PROMPT = """Does this page contain an actual restaurant food menu, meaning a list of
dishes (ideally with prices or descriptions), rather than a homepage, an about page or a
page that only links to a menu?

URL: {url}

Page text:
{text}

Respond with JSON only:
{{"isMenu": true/false, "confidence": 0-100, "reason": "...", "menuItemsFound": 0}}"""

_DEEP_CHECK_PROMPT = """The page below was flagged as possibly containing a menu embedded in
tabs, accordions or scripts. Look carefully for dish names, prices and menu sections.

URL: {url}

Page text:
{text}

Respond with JSON only:
{{"isMenu": true/false, "confidence": 0-100, "reason": "...", "menuItemsFound": 0}}"""


@dataclass
class SearchState:
    """Owned by one ``locate`` call and passed explicitly down the recursion."""

    visited: set[str] = field(default_factory=set)
    fetch_count: int = 0
    homepage: FetchResult | None = None
    pdf_candidates: list[str] = field(default_factory=list)

    def claim(self, url: str) -> bool:
        key = normalize_url(url)
        if key in self.visited:
            return False
        self.visited.add(key)
        return True


@dataclass(frozen=True)
class Found:
    url: str
    method: str
    page: FetchResult


class MenuLocator:
    def __init__(
        self,
        fetcher: ContentFetcher,
        claude: ClaudeService | None = None,
        max_depth: int = MAX_DEPTH,
        max_candidates: int = MAX_CANDIDATES,
    ):
        self._fetcher = fetcher
        self._claude = claude
        self._max_depth = max_depth
        self._max_candidates = max_candidates

    async def locate(self, homepage_url: str, diagnostics: DiagnosticLog | None = None) -> LocateResult:
        diag = diagnostics or DiagnosticLog()
        state = SearchState()

        accepted, trail = await first_acceptable([
            ("ai-search", lambda: self._ai_search(homepage_url, state, diag)),
            ("common-path", lambda: self._try_common_paths(homepage_url, state, diag)),
            ("keyword-link", lambda: self._keyword_links(homepage_url, state, diag)),
        ])
        for name, outcome in trail:
            diag.record("locate", "%s -> %s", name, type(outcome).__name__)

        homepage_tag = state.homepage.tag if state.homepage else None
        if accepted is None:
            return LocateResult(
                homepage_tag=homepage_tag,
                pdf_candidates=state.pdf_candidates,
                fetch_count=state.fetch_count,
            )

        found: Found = accepted.value
        diag.record("locate", "menu page %s (%s)", found.url, found.method)
        return LocateResult(
            url=found.url,
            method=found.method,
            page=found.page,
            homepage_tag=homepage_tag,
            pdf_candidates=state.pdf_candidates,
            fetch_count=state.fetch_count,
        )

    async def _fetch(self, url: str, state: SearchState) -> FetchResult:
        state.fetch_count += 1
        page = await self._fetcher.fetch(url)
        if page.tag == ContentTag.pdf_binary and url not in state.pdf_candidates:
            state.pdf_candidates.append(url)
        return page

    async def _homepage(self, url: str, state: SearchState) -> FetchResult:
        if state.homepage is None:
            state.claim(url)
            state.homepage = await self._fetch(url, state)
        return state.homepage

    # Tier 1: AI contextual search with bounded recursion

    async def _ai_search(self, url: str, state: SearchState, diag: DiagnosticLog) -> StrategyResult:
        if self._claude is None:
            return Insufficient("AI unavailable")
        homepage = await self._homepage(url, state)
        if not homepage.ok:
            return Failed(f"homepage not fetchable ({homepage.tag})")
        found = await self._search_page(homepage, 0, state, diag, is_homepage=True)
        return Accepted(found) if found else Insufficient("no AI candidate qualified")

    async def _search_page(
        self,
        page: FetchResult,
        depth: int,
        state: SearchState,
        diag: DiagnosticLog,
        is_homepage: bool = False,
    ) -> Found | None:
        if depth >= self._max_depth:
            return None

        search = await self._propose_candidates(page)
        diag.record(
            "locate", "depth %d: %d candidates from %s", depth, len(search.candidates), page.url,
        )

        for candidate in search.candidates[: self._max_candidates]:
            if not state.claim(candidate.url):
                continue

            if candidate.type == "pdf" or is_pdf_url(candidate.url):
                if candidate.confidence > PDF_FALLBACK_THRESHOLD:
                    diag.record("locate", "PDF menu candidate kept as fallback: %s", candidate.url)
                    state.pdf_candidates.append(candidate.url)
                continue

            candidate_page = await self._fetch(candidate.url, state)
            if not candidate_page.ok:
                diag.record("locate", "candidate %s unusable (%s)", candidate.url, candidate_page.tag)
                continue

            check = await self._check_menu(candidate_page)
            if check.is_menu and check.confidence > MENU_CHECK_THRESHOLD:
                return Found(candidate_page.url, "ai-search", candidate_page)

            if candidate.confidence > RECURSE_THRESHOLD and depth + 1 < self._max_depth:
                diag.record("locate", "recursing into %s", candidate.url)
                found = await self._search_page(candidate_page, depth + 1, state, diag)
                if found:
                    return found

        # Candidate pages were already checked when they were claimed
        if not is_homepage:
            return None

        check = await self._check_menu(page)
        if check.is_menu and check.confidence > MENU_CHECK_THRESHOLD:
            return Found(page.url, "homepage", page)

        if search.has_hidden_menu:
            deep = await self._check_menu(page, deep=True)
            if deep.is_menu and deep.confidence > HIDDEN_MENU_THRESHOLD:
                return Found(page.url, "homepage", page)
        return None

    async def _propose_candidates(self, page: FetchResult) -> MenuSearch:
        prompt = _SEARCH_PROMPT.format(
            url=page.url,
            structure=reduce_for_menu_search(page.content or ""),
            text=page_summary_text(page.content or ""),
            limit=self._max_candidates,
        )
        data = await self._claude.analyze(None, prompt, max_tokens=1024, temperature=0)
        if not isinstance(data, dict):
            return MenuSearch()

        candidates: list[MenuCandidate] = []
        for raw in data.get("menuUrls") or []:
            if not isinstance(raw, dict):
                continue
            absolute = resolve(page.url, str(raw.get("url") or ""))
            if absolute is None:
                continue
            candidates.append(MenuCandidate(
                url=absolute,
                confidence=_as_int(raw.get("confidence")),
                reason=raw.get("reason"),
                type=str(raw.get("type") or "direct").lower(),
            ))
        return MenuSearch(
            has_hidden_menu=bool(data.get("hasHiddenMenu")),
            candidates=candidates,
            context_clues=[str(c) for c in data.get("contextClues") or []],
        )

    async def _check_menu(self, page: FetchResult, deep: bool = False) -> MenuCheck:
        if self._claude is None:
            return MenuCheck()
        template = _DEEP_CHECK_PROMPT if deep else _CHECK_PROMPT
        prompt = template.format(url=page.url, text=html_to_text(page.content or "")[:MENU_CHECK_TEXT_CHARS])
        data = await self._claude.analyze(None, prompt, max_tokens=512, temperature=0)
        if not isinstance(data, dict):
            return MenuCheck()
        return MenuCheck(
            is_menu=bool(data.get("isMenu")),
            confidence=_as_int(data.get("confidence")),
            reason=data.get("reason"),
            items_found=_as_int(data.get("menuItemsFound")),
        )

    async def _validate(self, page: FetchResult) -> bool:
        """AI menu check when available, else the price-indicator heuristic."""
        if self._claude is not None:
            check = await self._check_menu(page)
            if check.confidence or check.is_menu:
                return check.is_menu and check.confidence > MENU_CHECK_THRESHOLD
        return has_price_indicators(html_to_text(page.content or ""))

    # Tier 2: common paths

    async def _try_common_paths(self, url: str, state: SearchState, diag: DiagnosticLog) -> StrategyResult:
        root = site_root(url)
        for path in COMMON_MENU_PATHS:
            candidate = f"{root}{path}"
            if not state.claim(candidate):
                continue
            page = await self._fetch(candidate, state)
            if not page.ok:
                continue
            if await self._validate(page):
                return Accepted(Found(page.url, "common-path", page))
            diag.record("locate", "common path %s is not a menu", candidate)
        return Insufficient("no common path qualified")

    # Tier 3: keyword links, no AI

    async def _keyword_links(self, url: str, state: SearchState, diag: DiagnosticLog) -> StrategyResult:
        homepage = await self._homepage(url, state)
        if not homepage.ok:
            return Failed(f"homepage not fetchable ({homepage.tag})")

        links = find_keyword_links(homepage.content or "", homepage.url, limit=MAX_KEYWORD_LINKS * 2)
        tested = 0
        for link in links:
            if tested >= MAX_KEYWORD_LINKS:
                break
            if is_pdf_url(link):
                if link not in state.pdf_candidates:
                    state.pdf_candidates.append(link)
                continue
            if not state.claim(link):
                continue
            tested += 1
            page = await self._fetch(link, state)
            if page.ok and has_price_indicators(html_to_text(page.content or "")):
                return Accepted(Found(page.url, "keyword-link", page))
            diag.record("locate", "keyword link %s rejected", link)
        return Insufficient("no keyword link qualified")


def _as_int(value) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0
