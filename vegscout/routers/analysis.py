import asyncio
import logging

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from vegscout.dependencies import BatchAnalysisDep, JobStoreDep, MenuAnalysisDep
from vegscout.jobs import JobStore
from vegscout.schemas.analysis import Friendliness, RestaurantAnalysis
from vegscout.schemas.responses import BatchAnalysisResponse, JobStatusResponse, JobSubmittedResponse
from vegscout.schemas.restaurant import Restaurant
from vegscout.services.batch_analysis import BatchAnalysisService, validate_selection

logger = logging.getLogger(__name__)

router = APIRouter()


class RestaurantAnalysisRequest(BaseModel):
    website_url: str | None = None
    place_id: str | None = None
    name: str | None = None


class SelectionRequest(BaseModel):
    restaurants: list[Restaurant] = []
    min_criteria: Friendliness = Friendliness.good


async def _run_selection(
    job_id: str,
    service: BatchAnalysisService,
    store: JobStore,
    request: SelectionRequest,
) -> None:
    store.mark_running(job_id)
    try:
        result = await service.analyze_selection(
            request.restaurants,
            request.min_criteria,
            on_progress=lambda event: store.record_progress(job_id, event),
        )
        store.mark_completed(job_id, result)
    except Exception as exc:
        logger.exception("Selection job %s failed", job_id)
        store.mark_failed(job_id, str(exc))


@router.post("/analysis/restaurant", response_model=RestaurantAnalysis)
async def analyze_restaurant(
    request: RestaurantAnalysisRequest,
    service: MenuAnalysisDep,
) -> RestaurantAnalysis:
    target = request.website_url or request.place_id
    if not target:
        raise HTTPException(status_code=422, detail="website_url or place_id is required")
    return await service.scrape_and_analyze(target, restaurant_name=request.name)


@router.post("/analysis/selection", response_model=JobSubmittedResponse, status_code=202)
async def submit_selection(
    request: SelectionRequest,
    service: BatchAnalysisDep,
    store: JobStoreDep,
) -> JobSubmittedResponse:
    validate_selection(request.restaurants)

    restaurant_ids = [r.id for r in request.restaurants]
    existing = store.has_active_job(restaurant_ids)
    if existing:
        return JSONResponse(content={
            "job_id": existing.job_id,
            "status": "already_running",
            "message": "An analysis for this selection is already running",
        })

    job = store.create_job(restaurant_ids=restaurant_ids)
    asyncio.create_task(_run_selection(job.job_id, service, store, request))
    return JobSubmittedResponse(
        job_id=job.job_id,
        status=job.status,
        message="Selection analysis submitted",
    )


@router.get("/jobs/{job_id}", response_model=JobStatusResponse)
async def get_job_status(job_id: str, store: JobStoreDep) -> JobStatusResponse:
    job = store.get_job(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return JobStatusResponse(**job.model_dump())


@router.post("/analysis/selection/sync", response_model=BatchAnalysisResponse)
async def analyze_selection_sync(
    request: SelectionRequest,
    service: BatchAnalysisDep,
) -> BatchAnalysisResponse:
    return await service.analyze_selection(request.restaurants, request.min_criteria)
