from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class ContentTag(StrEnum):
    html = "html"
    bot_blocked = "bot-blocked"
    pdf_binary = "pdf-binary"
    error_page = "error-page"
    empty = "empty"


class FetchResult(BaseModel):
    url: str
    content: str | None = None
    tag: ContentTag = ContentTag.empty
    status_code: int | None = None
    transport: str | None = None

    @property
    def ok(self) -> bool:
        return self.content is not None and self.tag == ContentTag.html


class MenuItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    price: str | None = None
    category: str = "General"
    description: str | None = None


class ClassifiedItem(MenuItem):
    is_vegan: bool = False
    confidence: float = 0.7
    explicitly_marked: bool = False
    notes: str | None = None


class ExtractionMethod(StrEnum):
    traditional = "traditional"
    ai_assisted = "ai-assisted"
    rendered = "rendered"
    extraction_failed = "extraction-failed"


class ExtractionResult(BaseModel):
    items: list[MenuItem] = []
    method: ExtractionMethod = ExtractionMethod.traditional

    @property
    def usable(self) -> bool:
        return self.method != ExtractionMethod.extraction_failed and bool(self.items)


class MenuCandidate(BaseModel):
    url: str
    confidence: int = 0  # 0-100
    reason: str | None = None
    type: str = "direct"  # "direct" | "pdf" | "orderingsystem"


class MenuSearch(BaseModel):
    has_hidden_menu: bool = False
    candidates: list[MenuCandidate] = []
    context_clues: list[str] = []


class MenuCheck(BaseModel):
    is_menu: bool = False
    confidence: int = 0  # 0-100
    reason: str | None = None
    items_found: int = 0


class LocateResult(BaseModel):
    url: str | None = None
    method: str | None = None  # "ai-search" | "homepage" | "common-path" | "keyword-link"
    page: FetchResult | None = None
    homepage_tag: ContentTag | None = None
    pdf_candidates: list[str] = []
    fetch_count: int = 0
