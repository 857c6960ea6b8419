import logging
import sys
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from vegscout.config import Settings
from vegscout.exceptions.custom import GooglePlacesError, RateLimitError, SelectionValidationError
from vegscout.exceptions.handlers import (
    google_places_error_handler,
    rate_limit_error_handler,
    selection_error_handler,
)
from vegscout.jobs import JobStore
from vegscout.routers.analysis import router as analysis_router
from vegscout.routers.restaurants import router as restaurants_router
from vegscout.services.batch_analysis import BatchAnalysisService
from vegscout.services.claude import ClaudeService
from vegscout.services.content_fetcher import ContentFetcher
from vegscout.services.google_places import GooglePlacesService
from vegscout.services.menu_analysis import MenuAnalysisService
from vegscout.services.menu_extractor import MenuExtractor
from vegscout.services.menu_locator import MenuLocator
from vegscout.services.render_backend import RenderBackendService
from vegscout.services.veg_classifier import VegClassifier


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = Settings()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stdout,
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)

    async with httpx.AsyncClient(timeout=30.0) as client:
        google_places = GooglePlacesService(client, settings.google_places_api_key)

        # Without a key the AI tiers are skipped and heuristic fallbacks run
        claude: ClaudeService | None = None
        if settings.anthropic_api_key:
            claude = ClaudeService(
                settings.anthropic_api_key, models=settings.ai_models, timeout=settings.ai_timeout,
            )

        render_backend: RenderBackendService | None = None
        if settings.render_backend_url:
            render_backend = RenderBackendService(client, settings.render_backend_url)

        fetcher = ContentFetcher(client, timeout=settings.fetch_timeout)
        menu_analysis = MenuAnalysisService(
            fetcher,
            MenuLocator(fetcher, claude),
            MenuExtractor(claude),
            VegClassifier(
                claude,
                batch_size=settings.classify_batch_size,
                parallelism=settings.classify_parallelism,
                group_pause=settings.classify_group_pause,
                max_retries=settings.classify_retries,
            ),
            google_places=google_places,
            render_backend=render_backend,
            diagnostics_capacity=settings.diagnostics_capacity,
            restaurant_timeout=settings.restaurant_timeout,
        )

        app.state.google_places_service = google_places
        app.state.menu_analysis_service = menu_analysis
        app.state.batch_analysis_service = BatchAnalysisService(
            menu_analysis, restaurant_timeout=settings.restaurant_timeout,
        )
        app.state.job_store = JobStore()

        yield


app = FastAPI(title="Veg Scout", lifespan=lifespan)

app.add_exception_handler(GooglePlacesError, google_places_error_handler)
app.add_exception_handler(RateLimitError, rate_limit_error_handler)
app.add_exception_handler(SelectionValidationError, selection_error_handler)

app.include_router(analysis_router)
app.include_router(restaurants_router)


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}
