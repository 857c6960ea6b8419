import re

from bs4 import BeautifulSoup

from vegscout.mappers.url_utils import normalize_url, resolve

MAX_STRUCTURE_CHARS = 25000
MAX_TEXT_CHARS = 5000

_MENU_CLASS_RE = re.compile(r"menu|food|dish|order|nav", re.IGNORECASE)
_WS_RE = re.compile(r"[ \t\r\f\v]+")
_BREAK = "\x1e"

BLOCK_TAGS = (
    "address", "article", "aside", "blockquote", "dd", "div", "dl", "dt", "footer",
    "form", "h1", "h2", "h3", "h4", "h5", "h6", "header", "hr", "li", "main", "nav",
    "ol", "option", "p", "pre", "section", "table", "tr", "ul",
)

MENU_LINK_KEYWORDS = (
    "menu", "menus", "food", "order", "dining", "eat", "kitchen", "dishes",
    "cuisine", "meals", "lunch", "dinner", "breakfast", "brunch", "takeout",
    "delivery", "drink",
)


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def html_to_text(html: str) -> str:
    """Visible text, one block element per line.

    Inline elements (spans, links, table cells) stay on their block's line,
    so a dish name and its price in separate spans read as one line.
    """
    soup = _soup(html)
    for tag in soup(["script", "style", "noscript", "svg", "template"]):
        tag.decompose()
    for tag in soup.find_all("br"):
        tag.replace_with(_BREAK)
    for tag in soup.find_all(BLOCK_TAGS):
        tag.insert_before(_BREAK)
        tag.insert_after(_BREAK)
    text = soup.get_text(separator=" ")
    lines = (" ".join(chunk.split()) for chunk in text.split(_BREAK))
    return "\n".join(line for line in lines if line)


def reduce_for_menu_search(html: str, limit: int = MAX_STRUCTURE_CHARS) -> str:
    """Navigation-relevant markup only: links, buttons, nav areas and menu-flagged blocks."""
    soup = _soup(html)
    for tag in soup(["script", "style", "noscript", "svg"]):
        tag.decompose()

    parts: list[str] = []
    seen: set[int] = set()

    def add(tag) -> None:
        if id(tag) in seen:
            return
        seen.add(id(tag))
        attrs = " ".join(
            f'{k}="{v if isinstance(v, str) else " ".join(v)}"'
            for k, v in tag.attrs.items()
            if k in ("href", "class", "id", "onclick", "data-href", "aria-label")
        )
        text = _WS_RE.sub(" ", tag.get_text(" ", strip=True))[:200]
        parts.append(f"<{tag.name} {attrs}>{text}</{tag.name}>")

    for tag in soup.find_all(["nav", "header", "footer"]):
        for link in tag.find_all(["a", "button"]):
            add(link)
    for tag in soup.find_all(["a", "button"]):
        add(tag)
    for tag in soup.find_all(["div", "section", "li"], class_=_MENU_CLASS_RE):
        add(tag)

    return "\n".join(parts)[:limit]


def page_summary_text(html: str, limit: int = MAX_TEXT_CHARS) -> str:
    return html_to_text(html)[:limit]


def find_keyword_links(html: str, base_url: str, limit: int = 5) -> list[str]:
    """Links whose anchor text or href mentions a menu keyword, deduplicated."""
    soup = _soup(html)
    base = normalize_url(base_url)
    found: list[str] = []
    seen: set[str] = set()

    for a in soup.find_all("a", href=True):
        url = resolve(base_url, a["href"])
        if url is None:
            continue
        key = normalize_url(url)
        if key == base or key in seen:
            continue
        haystack = f"{a.get_text(' ', strip=True)} {a['href']}".lower()
        if any(keyword in haystack for keyword in MENU_LINK_KEYWORDS):
            seen.add(key)
            found.append(url)
            if len(found) >= limit:
                break
    return found
