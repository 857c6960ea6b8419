import asyncio
import json
import logging

from vegscout.diagnostics import DiagnosticLog
from vegscout.exceptions.custom import AIErrorKind, AIProviderError
from vegscout.mappers.friendliness import compute_tier, parse_tier
from vegscout.mappers.menu_parser import normalize_category
from vegscout.mappers.veg_filter import clean_name, keyword_classify, post_filter
from vegscout.schemas.analysis import (
    AnalysisMethod,
    ClassificationBatchResult,
    ClassificationOutcome,
    Friendliness,
    RestaurantVegCheck,
)
from vegscout.schemas.menu import ClassifiedItem, MenuItem
from vegscout.services.claude import ClaudeService
from vegscout.strategy import Accepted, Failed, Insufficient, StrategyResult, first_acceptable

logger = logging.getLogger(__name__)

BATCH_SIZE = 30
PARALLELISM = 3
GROUP_PAUSE = 1.5
MAX_RETRIES = 2
RETRY_DELAY = 1.5

SAMPLE_SIZE = 5
FULLY_VEGETARIAN_MIN_CONFIDENCE = 0.8
FULLY_VEGETARIAN_ITEM_CONFIDENCE = 0.95
KEYWORD_CONFIDENCE = 0.6
DEFAULT_ITEM_CONFIDENCE = 0.7
DEFAULT_BATCH_CONFIDENCE = 0.5

_SYSTEM_PROMPT = """You classify restaurant menu items as vegetarian or not.

An item is NOT vegetarian if it contains, or is likely to contain, any of:
- MEAT: beef, pork, lamb, veal, ham, bacon, sausage, pepperoni, salami, chorizo, prosciutto, steak, brisket
- POULTRY: chicken, turkey, duck, goose, quail
- FISH: tuna, salmon, cod, tilapia, trout, halibut, anchovy, sardine, mackerel, any fish
- SEAFOOD: shrimp, prawn, crab, lobster, scallop, mussel, clam, oyster, calamari, octopus
- BROTHS: bone broth, chicken broth, beef broth, fish stock
- HIDDEN ANIMAL PRODUCTS: fish sauce, oyster sauce, gelatin, lard

Be conservative: when an item is ambiguous, exclude it. Dairy and eggs are acceptable.
Never return menu section names (e.g. "Appetizers", "Dinner Menu") as items.
Return item names in Title Case. Respond with JSON only."""

_BATCH_PROMPT = """Restaurant: {name}

Menu items (batch {index} of {count}):
{items}

Return only the vegetarian items:
{{
  "vegetarianItems": [
    {{"name": "...", "description": "...", "price": "...", "category": "appetizer|main|side|dessert|beverage",
      "confidence": 0.0-1.0, "notes": "...", "isVegan": true/false, "explicitlyMarked": true/false}}
  ],
  "restaurantVegFriendliness": "excellent|good|fair|poor",
  "totalItems": {size},
  "confidence": 0.0-1.0,
  "recommendations": ["..."]
}}"""

_RESTAURANT_PROMPT = """Is "{name}" a fully vegetarian (or vegan) restaurant, meaning it serves no
meat, poultry, fish or seafood at all? Judge from the name and this sample of menu items:
{sample}

Respond with JSON only:
{{"isVegetarianRestaurant": true/false, "confidence": 0.0-1.0, "reasoning": "...",
  "evidenceFor": ["..."], "evidenceAgainst": ["..."]}}"""


def _confidence(value, default: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if number > 1:
        number /= 100
    return min(max(number, 0.0), 1.0)


def _format_items(items: list[MenuItem]) -> str:
    rows = [
        {k: v for k, v in (("name", i.name), ("description", i.description), ("price", i.price),
                           ("category", i.category)) if v}
        for i in items
    ]
    return json.dumps(rows, ensure_ascii=False, indent=1)


class VegClassifier:
    def __init__(
        self,
        claude: ClaudeService | None = None,
        batch_size: int = BATCH_SIZE,
        parallelism: int = PARALLELISM,
        group_pause: float = GROUP_PAUSE,
        max_retries: int = MAX_RETRIES,
        retry_delay: float = RETRY_DELAY,
    ):
        self._claude = claude
        self._batch_size = max(batch_size, 1)
        self._parallelism = max(parallelism, 1)
        self._group_pause = group_pause
        self._max_retries = max_retries
        self._retry_delay = retry_delay

    async def classify(
        self,
        items: list[MenuItem],
        restaurant_name: str,
        diagnostics: DiagnosticLog | None = None,
    ) -> ClassificationOutcome:
        diag = diagnostics or DiagnosticLog()
        if not items:
            return ClassificationOutcome(method=AnalysisMethod.keyword)

        accepted, trail = await first_acceptable([
            ("fully-vegetarian", lambda: self._fully_vegetarian(items, restaurant_name, diag)),
            ("ai-batches", lambda: self._ai_batches(items, restaurant_name, diag)),
            ("keyword", lambda: self._keyword(items, diag)),
        ])
        for name, outcome in trail:
            diag.record("classify", "%s -> %s", name, type(outcome).__name__)
        # keyword strategy always accepts
        return accepted.value

    async def check_vegetarian_restaurant(
        self, restaurant_name: str, items: list[MenuItem]
    ) -> RestaurantVegCheck | None:
        if self._claude is None:
            return None
        sample = "\n".join(
            f"- {clean_name(i.name)}" for i in items[:SAMPLE_SIZE] if clean_name(i.name)
        )
        data = await self._claude.analyze(
            None,
            _RESTAURANT_PROMPT.format(name=clean_name(restaurant_name), sample=sample or "- (none)"),
            max_tokens=512,
            temperature=0,
        )
        if not isinstance(data, dict):
            return None
        return RestaurantVegCheck(
            is_vegetarian_restaurant=bool(data.get("isVegetarianRestaurant")),
            confidence=_confidence(data.get("confidence"), DEFAULT_BATCH_CONFIDENCE),
            reasoning=str(data["reasoning"]) if data.get("reasoning") else None,
        )

    async def _fully_vegetarian(
        self, items: list[MenuItem], restaurant_name: str, diag: DiagnosticLog
    ) -> StrategyResult:
        check = await self.check_vegetarian_restaurant(restaurant_name, items)
        if check is None:
            return Insufficient("restaurant check unavailable")
        diag.record(
            "classify", "fully vegetarian=%s (%.2f)", check.is_vegetarian_restaurant, check.confidence,
        )
        if not check.is_vegetarian_restaurant or check.confidence < FULLY_VEGETARIAN_MIN_CONFIDENCE:
            return Insufficient("not a fully vegetarian restaurant")

        classified = [
            ClassifiedItem(
                name=item.name,
                price=item.price,
                category=normalize_category(item.name, item.description, item.category),
                description=item.description,
                is_vegan="vegan" in f"{item.name} {item.description or ''}".lower(),
                confidence=FULLY_VEGETARIAN_ITEM_CONFIDENCE,
                notes="From fully vegetarian restaurant",
            )
            for item in items
        ]
        batch = ClassificationBatchResult(
            items=classified,
            confidence=FULLY_VEGETARIAN_ITEM_CONFIDENCE,
            friendliness=Friendliness.excellent,
            recommendations=["Fully vegetarian restaurant: every dish on the menu is meat-free"],
            total_items=len(items),
        )
        return Accepted(ClassificationOutcome(
            batches=[batch], method=AnalysisMethod.ai_analysis, fully_vegetarian=True,
        ))

    async def _ai_batches(
        self, items: list[MenuItem], restaurant_name: str, diag: DiagnosticLog
    ) -> StrategyResult:
        if self._claude is None:
            return Insufficient("AI unavailable")

        batches = [items[i:i + self._batch_size] for i in range(0, len(items), self._batch_size)]
        results: list[ClassificationBatchResult] = []

        for start in range(0, len(batches), self._parallelism):
            if start:
                await asyncio.sleep(self._group_pause)
            group = batches[start:start + self._parallelism]
            results.extend(await asyncio.gather(*(
                self._classify_batch(batch, restaurant_name, start + offset + 1, len(batches))
                for offset, batch in enumerate(group)
            )))

        failed = sum(1 for r in results if r.failed)
        diag.record("classify", "%d/%d batches failed", failed, len(results))
        if failed == len(results):
            return Failed("all classification batches failed")
        return Accepted(ClassificationOutcome(batches=results, method=AnalysisMethod.ai_analysis))

    async def _classify_batch(
        self, batch: list[MenuItem], restaurant_name: str, index: int, count: int
    ) -> ClassificationBatchResult:
        prompt = _BATCH_PROMPT.format(
            name=clean_name(restaurant_name) or "Unknown",
            index=index,
            count=count,
            items=_format_items(batch),
            size=len(batch),
        )
        for attempt in range(self._max_retries + 1):
            try:
                data = await self._claude.analyze_strict(
                    _SYSTEM_PROMPT, prompt, max_tokens=4096, temperature=0,
                )
                return self._parse_batch(data, batch)
            except AIProviderError as exc:
                logger.warning(
                    "Batch %d/%d attempt %d failed (%s)", index, count, attempt + 1, exc.kind,
                )
                if exc.kind in (AIErrorKind.payload_too_large, AIErrorKind.invalid_credentials):
                    break
                if attempt < self._max_retries:
                    await asyncio.sleep(self._retry_delay)

        return ClassificationBatchResult(
            items=[],
            confidence=None,
            friendliness=Friendliness.unknown,
            total_items=len(batch),
            failed=True,
        )

    @staticmethod
    def _parse_batch(data, batch: list[MenuItem]) -> ClassificationBatchResult:
        if isinstance(data, list):
            data = {"vegetarianItems": data}
        rows = data.get("vegetarianItems")
        if not isinstance(rows, list):
            raise AIProviderError(AIErrorKind.malformed_response, "vegetarianItems missing")

        classified: list[ClassifiedItem] = []
        for row in rows[: len(batch)]:
            if not isinstance(row, dict):
                continue
            name = clean_name(str(row.get("name") or ""))
            if not name:
                continue
            description = row.get("description") or None
            classified.append(ClassifiedItem(
                name=name,
                price=str(row["price"]) if row.get("price") not in (None, "") else None,
                category=normalize_category(name, description, row.get("category")),
                description=str(description) if description else None,
                is_vegan=bool(row.get("isVegan")),
                confidence=_confidence(row.get("confidence"), DEFAULT_ITEM_CONFIDENCE),
                explicitly_marked=bool(row.get("explicitlyMarked")),
                notes=str(row["notes"]) if row.get("notes") else None,
            ))

        recommendations = data.get("recommendations") or []
        return ClassificationBatchResult(
            items=post_filter(classified),
            confidence=_confidence(data.get("confidence"), DEFAULT_BATCH_CONFIDENCE),
            friendliness=parse_tier(data.get("restaurantVegFriendliness")),
            recommendations=[str(r) for r in recommendations if r] if isinstance(recommendations, list) else [],
            total_items=len(batch),
        )

    async def _keyword(self, items: list[MenuItem], diag: DiagnosticLog) -> StrategyResult:
        accepted = keyword_classify(items)
        diag.record("classify", "keyword fallback accepted %d/%d items", len(accepted), len(items))
        batch = ClassificationBatchResult(
            items=accepted,
            confidence=KEYWORD_CONFIDENCE,
            friendliness=compute_tier(len(accepted), len(items)),
            recommendations=[],
            total_items=len(items),
        )
        return Accepted(ClassificationOutcome(batches=[batch], method=AnalysisMethod.keyword))
