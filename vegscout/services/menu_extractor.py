import logging
import re

from vegscout.diagnostics import DiagnosticLog
from vegscout.mappers.html_reducer import html_to_text
from vegscout.mappers.menu_parser import dedupe_items, extract_traditional, is_sufficient
from vegscout.schemas.menu import ExtractionMethod, ExtractionResult, MenuItem
from vegscout.services.claude import ClaudeService
from vegscout.strategy import Accepted, Insufficient, StrategyResult, first_acceptable

logger = logging.getLogger(__name__)

AI_TEXT_CHARS = 12000

_MARKUP_RE = re.compile(r"<[a-zA-Z!/][^>]*>")

_EXTRACT_PROMPT = """Extract the food and drink items from this restaurant menu page text.
Only include real dishes or drinks, not section headings, opening hours or addresses.

Page text:
{text}

Respond with JSON only:
{{"menuItems": [{{"name": "...", "price": "... or null", "category": "...", "description": "... or null"}}]}}"""


def _to_items(data) -> list[MenuItem]:
    rows = data.get("menuItems") if isinstance(data, dict) else data
    items: list[MenuItem] = []
    for row in rows or []:
        if not isinstance(row, dict) or not str(row.get("name") or "").strip():
            continue
        price = row.get("price")
        items.append(MenuItem(
            name=str(row["name"]).strip(),
            price=str(price).strip() if price not in (None, "", "null") else None,
            category=str(row.get("category") or "General").strip() or "General",
            description=(str(row["description"]).strip() or None) if row.get("description") else None,
        ))
    return items


class MenuExtractor:
    def __init__(self, claude: ClaudeService | None = None):
        self._claude = claude

    async def extract(self, page_content: str, diagnostics: DiagnosticLog | None = None) -> ExtractionResult:
        """Traditional strategies first, AI extraction when their yield is too thin."""
        diag = diagnostics or DiagnosticLog()
        text = html_to_text(page_content) if _MARKUP_RE.search(page_content) else page_content
        traditional = extract_traditional(text)
        diag.record("extract", "traditional strategies found %d items", len(traditional))

        async def _traditional() -> StrategyResult:
            if is_sufficient(traditional):
                return Accepted(ExtractionResult(items=traditional, method=ExtractionMethod.traditional))
            return Insufficient("below quality gate", partial=traditional)

        async def _ai() -> StrategyResult:
            ai_items = await self._ai_extract(text)
            diag.record("extract", "AI extraction found %d items", len(ai_items))
            if not ai_items:
                return Insufficient("AI extraction returned nothing")
            return Accepted(ExtractionResult(
                items=dedupe_items(traditional + ai_items), method=ExtractionMethod.ai_assisted,
            ))

        accepted, _trail = await first_acceptable([("traditional", _traditional), ("ai", _ai)])
        if accepted is not None:
            return accepted.value

        logger.info("Extraction insufficient (%d partial items)", len(traditional))
        return ExtractionResult(items=traditional, method=ExtractionMethod.extraction_failed)

    async def _ai_extract(self, text: str) -> list[MenuItem]:
        if self._claude is None or not text.strip():
            return []
        data = await self._claude.analyze(
            None, _EXTRACT_PROMPT.format(text=text[:AI_TEXT_CHARS]), max_tokens=4096, temperature=0,
        )
        return _to_items(data)
