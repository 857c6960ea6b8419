import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable

from vegscout.exceptions.custom import SelectionValidationError
from vegscout.mappers.friendliness import failed_analysis, meets_criteria, vegetarian_score
from vegscout.schemas.analysis import AnalysisMethod, Friendliness
from vegscout.schemas.responses import BatchAnalysisResponse, ProgressEvent, RestaurantResult
from vegscout.schemas.restaurant import Restaurant
from vegscout.services.menu_analysis import MenuAnalysisService

logger = logging.getLogger(__name__)

MAX_SELECTION = 5
RESTAURANT_TIMEOUT = 120.0

ProgressCallback = Callable[[ProgressEvent], Awaitable[None] | None]


def validate_selection(restaurants: list[Restaurant]) -> None:
    if not restaurants:
        raise SelectionValidationError("No restaurants selected for analysis")
    if len(restaurants) > MAX_SELECTION:
        raise SelectionValidationError(f"Maximum {MAX_SELECTION} restaurants can be analyzed at once")


class BatchAnalysisService:
    def __init__(self, analysis: MenuAnalysisService, restaurant_timeout: float = RESTAURANT_TIMEOUT):
        self._analysis = analysis
        self._restaurant_timeout = restaurant_timeout

    async def analyze_selection(
        self,
        restaurants: list[Restaurant],
        min_criteria: Friendliness = Friendliness.good,
        on_progress: ProgressCallback | None = None,
    ) -> BatchAnalysisResponse:
        """Analyze up to five restaurants concurrently.

        Raises SelectionValidationError before any network call. A failing
        restaurant yields a failed analysis without affecting the others.
        """
        validate_selection(restaurants)
        total = len(restaurants)
        completed = 0

        async def emit(stage: str, message: str, current: str | None = None) -> None:
            if on_progress is None:
                return
            event = ProgressEvent(
                stage=stage,
                progress=round(completed / total * 100),
                message=message,
                completed=completed,
                total=total,
                current_restaurant=current,
            )
            try:
                result = on_progress(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Progress callback failed")

        async def run_one(restaurant: Restaurant) -> RestaurantResult:
            nonlocal completed
            await emit("analyzing", f"Analyzing {restaurant.name}...", restaurant.name)
            try:
                analysis = await asyncio.wait_for(
                    self._analysis.analyze_restaurant(restaurant), timeout=self._restaurant_timeout,
                )
            except asyncio.TimeoutError:
                logger.warning("Analysis of %s timed out", restaurant.id)
                analysis = failed_analysis(
                    restaurant.id,
                    AnalysisMethod.failed,
                    f"Analysis timed out after {self._restaurant_timeout:.0f} seconds.",
                    restaurant.name,
                )
            except Exception:
                logger.exception("Analysis of %s failed", restaurant.id)
                analysis = failed_analysis(
                    restaurant.id,
                    AnalysisMethod.failed,
                    "The analysis failed unexpectedly. Please try again later.",
                    restaurant.name,
                )
            completed += 1
            await emit("analyzing", f"Finished {restaurant.name}", restaurant.name)
            return RestaurantResult(
                restaurant=restaurant,
                analysis=analysis,
                meets_criteria=meets_criteria(analysis.friendliness, min_criteria),
                vegetarian_score=round(vegetarian_score(analysis), 3),
            )

        await emit("starting", f"Starting analysis of {total} restaurant{'s' if total != 1 else ''}")
        results = list(await asyncio.gather(*(run_one(r) for r in restaurants)))
        qualifying = sorted(
            (r for r in results if r.meets_criteria),
            key=lambda r: r.vegetarian_score,
            reverse=True,
        )
        message = f"{len(qualifying)} of {total} restaurants meet the '{min_criteria}' criteria"
        await emit("complete", message)

        return BatchAnalysisResponse(
            success=True,
            min_criteria=min_criteria,
            results=results,
            qualifying=qualifying,
            message=message,
        )
