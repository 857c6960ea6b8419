from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from vegscout.schemas.analysis import Friendliness, RestaurantAnalysis
from vegscout.schemas.restaurant import Restaurant


class ProgressEvent(BaseModel):
    stage: str  # "starting" | "analyzing" | "complete"
    progress: int  # 0-100
    message: str
    completed: int
    total: int
    current_restaurant: str | None = None


class RestaurantResult(BaseModel):
    restaurant: Restaurant
    analysis: RestaurantAnalysis
    meets_criteria: bool = False
    vegetarian_score: float = 0.0


class BatchAnalysisResponse(BaseModel):
    success: bool
    min_criteria: Friendliness
    results: list[RestaurantResult] = []
    qualifying: list[RestaurantResult] = []
    message: str | None = None


class JobSubmittedResponse(BaseModel):
    job_id: str
    status: str
    message: str


class JobStatusResponse(BaseModel):
    job_id: str
    status: str
    created_at: datetime
    finished_at: datetime | None = None
    progress: ProgressEvent | None = None
    result: BatchAnalysisResponse | None = None
    error: str | None = None
