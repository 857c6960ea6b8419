import asyncio
import logging

from vegscout.diagnostics import DiagnosticLog
from vegscout.exceptions.custom import (
    AnalysisFailure,
    BinaryContentError,
    BotProtectionError,
    ExtractionInsufficientError,
    GooglePlacesError,
    MenuNotFoundError,
    NetworkUnreachableError,
    RateLimitError,
)
from vegscout.mappers.friendliness import aggregate, failed_analysis
from vegscout.mappers.menu_parser import dedupe_items
from vegscout.mappers.url_utils import ensure_scheme, normalize_url, validate_url
from vegscout.schemas.analysis import AnalysisMethod, RestaurantAnalysis
from vegscout.schemas.menu import ContentTag, ExtractionMethod, ExtractionResult, LocateResult, MenuItem
from vegscout.schemas.restaurant import Restaurant
from vegscout.services.content_fetcher import ContentFetcher
from vegscout.services.google_places import GooglePlacesService
from vegscout.services.menu_extractor import MenuExtractor
from vegscout.services.menu_locator import MenuLocator
from vegscout.services.render_backend import RenderBackendService
from vegscout.services.veg_classifier import VegClassifier

logger = logging.getLogger(__name__)

NO_WEBSITE_MESSAGE = "No website is listed for this restaurant, so its menu could not be analyzed."
UNEXPECTED_MESSAGE = "The analysis failed unexpectedly. Please try again later."
RESTAURANT_TIMEOUT = 120.0
MIN_ITEMS_BEFORE_RENDER = 3


def looks_like_url(target: str) -> bool:
    target = target.strip()
    return "://" in target or ("." in target and " " not in target and validate_url(ensure_scheme(target)))


class MenuAnalysisService:
    """Runs locate, fetch, extract, classify and aggregate for one restaurant."""

    def __init__(
        self,
        fetcher: ContentFetcher,
        locator: MenuLocator,
        extractor: MenuExtractor,
        classifier: VegClassifier,
        google_places: GooglePlacesService | None = None,
        render_backend: RenderBackendService | None = None,
        diagnostics_capacity: int = 200,
        restaurant_timeout: float = RESTAURANT_TIMEOUT,
    ):
        self._fetcher = fetcher
        self._locator = locator
        self._extractor = extractor
        self._classifier = classifier
        self._google_places = google_places
        self._render_backend = render_backend
        self._diagnostics_capacity = diagnostics_capacity
        self._restaurant_timeout = restaurant_timeout

    async def scrape_and_analyze(
        self, website_url_or_place_id: str, restaurant_name: str | None = None
    ) -> RestaurantAnalysis:
        """Analyze a website URL, or a place id resolved through the places provider.

        Places lookup errors propagate; pipeline failures come back as failed analyses.
        """
        target = website_url_or_place_id.strip()
        if looks_like_url(target):
            url = ensure_scheme(target)
            return await self.analyze_website(url, normalize_url(url), restaurant_name or url)

        if self._google_places is None:
            raise GooglePlacesError("Places lookups are not configured")
        details = await self._google_places.get_place_details(target)
        name = restaurant_name or details.name or target
        if not details.website:
            return failed_analysis(target, AnalysisMethod.no_website, NO_WEBSITE_MESSAGE, name)
        return await self.analyze_website(details.website, target, name)

    async def analyze_restaurant(self, restaurant: Restaurant) -> RestaurantAnalysis:
        website = restaurant.website
        if not website and self._google_places is not None:
            try:
                website = (await self._google_places.get_place_details(restaurant.id)).website
            except (GooglePlacesError, RateLimitError) as exc:
                logger.warning("Details lookup failed for %s: %s", restaurant.id, exc)
                return failed_analysis(
                    restaurant.id,
                    AnalysisMethod.failed,
                    "Restaurant details could not be retrieved, so its website is unknown.",
                    restaurant.name,
                )
        if not website:
            return failed_analysis(restaurant.id, AnalysisMethod.no_website, NO_WEBSITE_MESSAGE, restaurant.name)
        return await self.analyze_website(website, restaurant.id, restaurant.name)

    async def analyze_website(self, url: str, restaurant_id: str, restaurant_name: str) -> RestaurantAnalysis:
        diag = DiagnosticLog(self._diagnostics_capacity, scope=restaurant_id)
        try:
            return await asyncio.wait_for(
                self._run(url, restaurant_id, restaurant_name, diag), timeout=self._restaurant_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Analysis of %s timed out after %.0fs", restaurant_id, self._restaurant_timeout)
            diag.record("pipeline", "timed out after %.0fs", self._restaurant_timeout)
            return failed_analysis(
                restaurant_id,
                AnalysisMethod.failed,
                f"Analysis timed out after {self._restaurant_timeout:.0f} seconds.",
                restaurant_name,
                diag.entries(),
            )
        except AnalysisFailure as exc:
            logger.info("Analysis of %s ended: %s", restaurant_id, exc.message)
            diag.record("pipeline", "failed: %s", exc.message)
            return failed_analysis(
                restaurant_id, AnalysisMethod.scraping_failed, exc.user_message, restaurant_name, diag.entries(),
            )
        except Exception:
            logger.exception("Analysis of %s crashed", restaurant_id)
            return failed_analysis(
                restaurant_id, AnalysisMethod.failed, UNEXPECTED_MESSAGE, restaurant_name, diag.entries(),
            )

    async def _run(
        self, url: str, restaurant_id: str, restaurant_name: str, diag: DiagnosticLog
    ) -> RestaurantAnalysis:
        url = ensure_scheme(url)
        if not validate_url(url):
            raise NetworkUnreachableError(f"Invalid website URL: {url}")

        located = await self._locator.locate(url, diag)
        extraction: ExtractionResult | None = None
        items: list[MenuItem] = []
        menu_url = located.url

        if located.url:
            page = located.page or await self._fetcher.fetch(located.url)
            if page.ok:
                extraction = await self._extractor.extract(page.content or "", diag)
                if extraction.usable:
                    items = extraction.items

        partial = extraction.items if extraction else []
        if self._should_render(located, items):
            rendered = await self._render_backend.render_and_extract(url)
            rendered_items = dedupe_items(rendered.menu_items)
            diag.record("pipeline", "render backend returned %d items", len(rendered_items))
            # Keep whichever attempt found more
            if len(rendered_items) > len(partial):
                items = rendered_items
                extraction = ExtractionResult(items=items, method=ExtractionMethod.rendered)
                menu_url = rendered.menu_page_url or menu_url or url
            else:
                items = partial

        if items and extraction is not None:
            diag.record("pipeline", "classifying %d items from %s extraction", len(items), extraction.method.value)

        if not items:
            raise self._failure_for(located, extraction)

        outcome = await self._classifier.classify(items, restaurant_name, diag)
        analysis = aggregate(outcome.batches, restaurant_id, outcome.method, restaurant_name, menu_url)
        return analysis.model_copy(update={
            "message": _summary(analysis),
            "diagnostics": diag.entries(),
        })

    def _should_render(self, located: LocateResult, items: list[MenuItem]) -> bool:
        if self._render_backend is None or len(items) >= MIN_ITEMS_BEFORE_RENDER:
            return False
        if located.url is not None or located.pdf_candidates:
            return True
        return located.homepage_tag in (ContentTag.html, ContentTag.bot_blocked, ContentTag.pdf_binary)

    @staticmethod
    def _failure_for(located: LocateResult, extraction: ExtractionResult | None) -> AnalysisFailure:
        if located.url is not None:
            found = len(extraction.items) if extraction else 0
            return ExtractionInsufficientError(f"Only {found} items extracted from {located.url}")

        tag = located.homepage_tag
        if tag == ContentTag.bot_blocked:
            return BotProtectionError("Homepage returned a bot-protection challenge")
        if located.pdf_candidates or tag == ContentTag.pdf_binary:
            return BinaryContentError(f"Only PDF menus found: {', '.join(located.pdf_candidates)}")
        if tag in (ContentTag.empty, ContentTag.error_page):
            return NetworkUnreachableError(f"Homepage unreachable ({tag})")
        return MenuNotFoundError("No menu page found")


def _summary(analysis: RestaurantAnalysis) -> str:
    source = "Keyword analysis" if analysis.method == AnalysisMethod.keyword else "AI analysis"
    return (
        f"{source} found {analysis.vegetarian_count} vegetarian option"
        f"{'' if analysis.vegetarian_count == 1 else 's'} out of {analysis.total_items} menu items."
    )
