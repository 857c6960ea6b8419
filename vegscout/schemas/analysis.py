from enum import StrEnum

from pydantic import BaseModel

from vegscout.schemas.menu import ClassifiedItem


class Friendliness(StrEnum):
    excellent = "excellent"
    good = "good"
    fair = "fair"
    poor = "poor"
    very_poor = "very poor"
    unknown = "unknown"


class AnalysisMethod(StrEnum):
    ai_analysis = "ai-analysis"
    keyword = "keyword"
    no_website = "no-website"
    scraping_failed = "scraping-failed"
    failed = "failed"


class RestaurantVegCheck(BaseModel):
    is_vegetarian_restaurant: bool = False
    confidence: float = 0.5
    reasoning: str | None = None


class ClassificationBatchResult(BaseModel):
    items: list[ClassifiedItem] = []
    confidence: float | None = None
    friendliness: Friendliness = Friendliness.unknown
    recommendations: list[str] = []
    total_items: int = 0
    failed: bool = False


class ClassificationOutcome(BaseModel):
    batches: list[ClassificationBatchResult] = []
    method: AnalysisMethod = AnalysisMethod.ai_analysis
    fully_vegetarian: bool = False


class RestaurantAnalysis(BaseModel):
    restaurant_id: str
    restaurant_name: str | None = None
    items: list[ClassifiedItem] = []
    vegetarian_count: int = 0
    total_items: int = 0
    friendliness: Friendliness = Friendliness.unknown
    confidence: float = 0.0
    recommendations: list[str] = []
    method: AnalysisMethod
    menu_url: str | None = None
    message: str | None = None
    diagnostics: list[str] = []
