import re

from vegscout.schemas.menu import ContentTag

MIN_CONTENT_LENGTH = 50
NOT_FOUND_LENGTH_CEILING = 2000

_BOT_MARKERS = (
    "cf-browser-verification",
    "cf-challenge",
    "challenge-platform",
    "checking your browser",
    "just a moment...",
    "attention required! | cloudflare",
    "ddos protection by",
    "captcha-delivery",
    "are you a robot",
    "px-captcha",
    "incapsula incident",
)

# Only a wall on short pages
_JS_REQUIRED_MARKERS = (
    "enable javascript and cookies to continue",
    "please enable javascript",
    "you need to enable javascript",
    "javascript is required",
    "access denied",
)
JS_WALL_LENGTH_CEILING = 5000

_PDF_MARKERS = ("%pdf-", "endobj", "/type /page", "/filter /flatedecode", "xref")

_NOT_FOUND_RE = re.compile(
    r"\b(?:404\b|page not found|not found|no longer exists|doesn'?t exist)",
    re.IGNORECASE,
)


def classify_content(
    content: str | None,
    status_code: int | None = None,
    content_type: str | None = None,
) -> ContentTag:
    """Tag a candidate response. Only ``ContentTag.html`` is acceptable as a page."""
    if content is None or not content.strip():
        return ContentTag.empty
    if status_code is not None and status_code >= 500:
        return ContentTag.error_page

    head = content[:4000].lower()
    if content_type and "application/pdf" in content_type.lower():
        return ContentTag.pdf_binary
    if head.lstrip().startswith("%pdf-") or sum(m in head for m in _PDF_MARKERS) >= 2:
        return ContentTag.pdf_binary
    if any(marker in head for marker in _BOT_MARKERS):
        return ContentTag.bot_blocked
    if len(content) < JS_WALL_LENGTH_CEILING and any(m in head for m in _JS_REQUIRED_MARKERS):
        return ContentTag.bot_blocked

    stripped = content.strip()
    if len(stripped) < MIN_CONTENT_LENGTH:
        return ContentTag.error_page
    if len(stripped) < NOT_FOUND_LENGTH_CEILING and _NOT_FOUND_RE.search(stripped):
        return ContentTag.error_page
    return ContentTag.html


# Higher wins when reporting why every transport failed
_TAG_PRIORITY = {
    ContentTag.empty: 0,
    ContentTag.error_page: 1,
    ContentTag.bot_blocked: 2,
    ContentTag.pdf_binary: 3,
}


def most_informative(tags: list[ContentTag]) -> ContentTag:
    rejected = [t for t in tags if t != ContentTag.html]
    if not rejected:
        return ContentTag.empty
    return max(rejected, key=lambda t: _TAG_PRIORITY[t])
