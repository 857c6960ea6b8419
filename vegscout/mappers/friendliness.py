from vegscout.schemas.analysis import (
    AnalysisMethod,
    ClassificationBatchResult,
    Friendliness,
    RestaurantAnalysis,
)
from vegscout.schemas.menu import ClassifiedItem

TIER_RANK = {
    Friendliness.unknown: -1,
    Friendliness.very_poor: 0,
    Friendliness.poor: 1,
    Friendliness.fair: 2,
    Friendliness.good: 3,
    Friendliness.excellent: 4,
}

# (tier, minimum vegetarian ratio, minimum vegetarian item count)
_THRESHOLDS = (
    (Friendliness.excellent, 0.40, 5),
    (Friendliness.good, 0.30, 3),
    (Friendliness.fair, 0.20, 2),
)

_TIER_ALIASES = {
    "limited": Friendliness.poor,
    "very_poor": Friendliness.very_poor,
    "very-poor": Friendliness.very_poor,
    "none": Friendliness.very_poor,
}

DEFAULT_CONFIDENCE = 0.5

FAILED_METHODS = frozenset({
    AnalysisMethod.no_website,
    AnalysisMethod.scraping_failed,
    AnalysisMethod.failed,
})


def parse_tier(value: str | None, default: Friendliness = Friendliness.fair) -> Friendliness:
    """Read a tier reported by the model; unknown labels fall back to ``default``."""
    if not value:
        return default
    key = value.strip().lower()
    if key in _TIER_ALIASES:
        return _TIER_ALIASES[key]
    try:
        return Friendliness(key)
    except ValueError:
        return default


def compute_tier(vegetarian_count: int, total_items: int) -> Friendliness:
    """Tier from vegetarian count and ratio.

    Non-decreasing in both inputs' favourable direction: more vegetarian
    items, or a higher ratio, never yields a lower tier.
    """
    if total_items <= 0:
        return Friendliness.unknown
    if vegetarian_count <= 0:
        return Friendliness.very_poor
    ratio = vegetarian_count / total_items
    for tier, min_ratio, min_count in _THRESHOLDS:
        if ratio >= min_ratio and vegetarian_count >= min_count:
            return tier
    return Friendliness.poor


def stronger(a: Friendliness, b: Friendliness) -> Friendliness:
    return a if TIER_RANK[a] >= TIER_RANK[b] else b


def meets_criteria(tier: Friendliness, minimum: Friendliness) -> bool:
    if tier == Friendliness.unknown:
        return False
    return TIER_RANK[tier] >= TIER_RANK[minimum]


def _dedupe(values: list[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for value in values:
        key = value.strip().lower()
        if key and key not in seen:
            seen.add(key)
            out.append(value.strip())
    return out


def aggregate(
    batches: list[ClassificationBatchResult],
    restaurant_id: str,
    method: AnalysisMethod = AnalysisMethod.ai_analysis,
    restaurant_name: str | None = None,
    menu_url: str | None = None,
) -> RestaurantAnalysis:
    """Merge batch results into one restaurant report.

    The computed tier is upgraded when any single batch reported a stronger
    one, so a dessert-only batch cannot drag the whole menu down.
    """
    items: list[ClassifiedItem] = [item for batch in batches for item in batch.items]
    total = sum(batch.total_items for batch in batches)
    total = max(total, len(items))

    confidences = [b.confidence for b in batches if b.confidence is not None]
    confidence = sum(confidences) / len(confidences) if confidences else DEFAULT_CONFIDENCE

    tier = compute_tier(len(items), total)
    for batch in batches:
        if not batch.failed and batch.friendliness != Friendliness.unknown:
            tier = stronger(tier, batch.friendliness)

    return RestaurantAnalysis(
        restaurant_id=restaurant_id,
        restaurant_name=restaurant_name,
        items=items,
        vegetarian_count=len(items),
        total_items=total,
        friendliness=tier,
        confidence=round(confidence, 3),
        recommendations=_dedupe([r for b in batches for r in b.recommendations]),
        method=method,
        menu_url=menu_url,
    )


def failed_analysis(
    restaurant_id: str,
    method: AnalysisMethod,
    message: str,
    restaurant_name: str | None = None,
    diagnostics: list[str] | None = None,
) -> RestaurantAnalysis:
    if method not in FAILED_METHODS:
        raise ValueError(f"{method} is not a failure method")
    return RestaurantAnalysis(
        restaurant_id=restaurant_id,
        restaurant_name=restaurant_name,
        method=method,
        friendliness=Friendliness.unknown,
        message=message,
        diagnostics=diagnostics or [],
    )


def vegetarian_score(analysis: RestaurantAnalysis) -> float:
    """Sort key for qualifying restaurants."""
    ratio = analysis.vegetarian_count / analysis.total_items if analysis.total_items else 0.0
    return max(TIER_RANK[analysis.friendliness], 0) + analysis.confidence * 2 + ratio
