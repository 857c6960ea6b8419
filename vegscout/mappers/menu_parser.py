"""Heuristic menu-item parsing over page text.

Three strategies feed ``extract_traditional``: section headers, priced
lines, and food-keyword lines (only once priced lines were found).
"""

import re
from collections import Counter

from vegscout.schemas.menu import MenuItem

CURRENCY_SYMBOLS = "$€£¥₹₩₪₫₱₽₺฿₦₴"

_AMOUNT = r"\d{1,5}(?:[.,]\d{3})*"
_PRICE = (
    rf"(?:[{CURRENCY_SYMBOLS}]\s?{_AMOUNT}(?:[.,]\d{{1,2}})?"
    rf"|{_AMOUNT}[.,]\d{{2}}\s?[{CURRENCY_SYMBOLS}]?"
    rf"|{_AMOUNT}\s?[{CURRENCY_SYMBOLS}])"
)
# Whole numbers count as prices only at the end of an item line
_BARE_PRICE = r"\d{1,3}"
_PRICED_LINE_RE = re.compile(
    rf"^(?P<name>.+?)[\s.\-–—:·…|]+(?P<price>{_PRICE}|{_BARE_PRICE})\s*$"
)
_PRICE_RE = re.compile(_PRICE)
_DESCRIPTION_SPLIT_RE = re.compile(r"\s+[-–—]\s+|:\s+")
_NAME_TRIM = " \t.-–—:·…|,*"

_SECTION_RE = re.compile(
    r"^(?:our\s+)?(?P<section>appetizers?|starters?|small plates?|soups?|salads?"
    r"|entr[eé]es?|mains?|main courses?|main dishes|pastas?|pizzas?|burgers?"
    r"|sandwich(?:es)?|wraps?|bowls?|sides?|desserts?|sweets|drinks?|beverages?"
    r"|cocktails?|wines?|beers?|breakfast|brunch|lunch|dinner|specials?)\s*:?$",
    re.IGNORECASE,
)

_NOISE_RE = re.compile(
    r"\b(?:phone|tel|fax|address|call us|hours|open daily|copyright|reserv\w*|"
    r"privacy|cookies?|subscribe|newsletter)\b|©|@|https?://",
    re.IGNORECASE,
)

FOOD_KEYWORDS = (
    "grilled", "fried", "baked", "roasted", "steamed", "sauteed", "braised",
    "chicken", "beef", "pork", "fish", "salmon", "tuna", "tofu", "pasta",
    "pizza", "salad", "soup", "sandwich", "burger", "wrap", "tacos", "rice",
    "noodles", "cheese", "cream", "sauce", "dressing", "curry", "risotto",
)
_FOOD_RE = re.compile(rf"\b(?:{'|'.join(FOOD_KEYWORDS)})s?\b", re.IGNORECASE)

_CURRENCY_KEYWORDS = (
    (re.compile(r"\b(?:usd|dollars?)\b", re.I), "$"),
    (re.compile(r"\b(?:eur|euros?)\b", re.I), "€"),
    (re.compile(r"\b(?:gbp|pounds? sterling)\b", re.I), "£"),
    (re.compile(r"\b(?:jpy|yen)\b", re.I), "¥"),
    (re.compile(r"\b(?:inr|rupees?)\b", re.I), "₹"),
    (re.compile(r"\b(?:krw|won)\b", re.I), "₩"),
    (re.compile(r"\b(?:ils|shekels?)\b", re.I), "₪"),
    (re.compile(r"\b(?:vnd|dong)\b", re.I), "₫"),
    (re.compile(r"\bphp\b", re.I), "₱"),
    (re.compile(r"\b(?:rub|rubles?|roubles?)\b", re.I), "₽"),
)

MIN_NAME_LENGTH = 3
MAX_NAME_LENGTH = 99

_CATEGORY_KEYWORDS = (
    ("dessert", ("dessert", "cake", "pie", "ice cream", "gelato", "sorbet", "cookie",
                 "brownie", "tiramisu", "cheesecake", "pudding", "sweet", "churro")),
    ("beverage", ("drink", "beverage", "coffee", "tea", "juice", "soda", "smoothie",
                  "latte", "espresso", "wine", "beer", "cocktail", "lemonade", "shake")),
    ("appetizer", ("appetizer", "starter", "small plate", "tapas", "bruschetta", "dip",
                   "nachos", "spring roll", "edamame", "hummus", "soup")),
    ("side", ("side", "fries", "chips", "bread", "slaw", "mashed", "rice")),
)
CATEGORIES = ("appetizer", "main", "side", "dessert", "beverage")


def detect_currency(text: str) -> str:
    """Most frequent currency symbol in the text, else a keyword hint, else '$'."""
    counts = Counter(ch for ch in text if ch in CURRENCY_SYMBOLS)
    if counts:
        return counts.most_common(1)[0][0]
    for pattern, symbol in _CURRENCY_KEYWORDS:
        if pattern.search(text):
            return symbol
    return "$"


def _with_currency(price: str, currency: str) -> str:
    price = price.strip()
    if any(ch in CURRENCY_SYMBOLS for ch in price):
        return price
    return f"{currency}{price}"


def _valid_name(name: str) -> bool:
    return MIN_NAME_LENGTH <= len(name) <= MAX_NAME_LENGTH and not _NOISE_RE.search(name)


def parse_priced_line(line: str, currency: str = "$", category: str = "General") -> MenuItem | None:
    match = _PRICED_LINE_RE.match(line.strip())
    if not match:
        return None

    head = match.group("name").strip(_NAME_TRIM)
    name, description = head, None
    parts = _DESCRIPTION_SPLIT_RE.split(head, maxsplit=1)
    if len(parts) == 2:
        name, description = parts[0].strip(_NAME_TRIM), parts[1].strip(_NAME_TRIM) or None

    if not _valid_name(name) or not re.search(r"[^\W\d_]", name):
        return None
    return MenuItem(
        name=name,
        price=_with_currency(match.group("price"), currency),
        category=category,
        description=description,
    )


def _lines(text: str) -> list[str]:
    return [line.strip() for line in text.splitlines() if line.strip()]


def section_header(line: str) -> str | None:
    if len(line) > 40:
        return None
    match = _SECTION_RE.match(line.strip())
    return match.group("section").title() if match else None


def extract_section_items(text: str, currency: str | None = None) -> list[MenuItem]:
    """Items grouped under recognized category headers."""
    currency = currency or detect_currency(text)
    sections: list[tuple[str, list[str]]] = []

    for line in _lines(text):
        if header := section_header(line):
            sections.append((header, []))
        elif sections:
            sections[-1][1].append(line)

    items: list[MenuItem] = []
    for header, lines in sections:
        priced = [
            item for line in lines
            if (item := parse_priced_line(line, currency, category=header)) is not None
        ]
        if priced:
            items.extend(priced)
            continue
        for line in lines:
            name = line.strip(_NAME_TRIM)
            if _valid_name(name) and len(name.split()) <= 10 and not _PRICE_RE.fullmatch(name):
                items.append(MenuItem(name=name, category=header))
    return items


def extract_priced_items(text: str, currency: str | None = None) -> list[MenuItem]:
    currency = currency or detect_currency(text)
    return [
        item for line in _lines(text)
        if (item := parse_priced_line(line, currency)) is not None
    ]


def extract_keyword_items(text: str, known_names: set[str] | None = None) -> list[MenuItem]:
    known = known_names or set()
    items: list[MenuItem] = []
    for line in _lines(text):
        name = line.strip(_NAME_TRIM)
        if not 6 <= len(name) <= MAX_NAME_LENGTH or _NOISE_RE.search(name):
            continue
        if section_header(name) or name_key(name) in known or _PRICE_RE.search(name):
            continue
        if _PRICED_LINE_RE.match(name):
            continue
        if _FOOD_RE.search(name):
            items.append(MenuItem(name=name, category="Food"))
    return items


def name_key(name: str) -> str:
    """Case-insensitive dedup key."""
    cleaned = re.sub(r"[^\w\s]", " ", name.lower())
    return " ".join(cleaned.split())


def dedupe_items(items: list[MenuItem]) -> list[MenuItem]:
    """First occurrence wins; later duplicates only fill a missing price or description."""
    merged: dict[str, MenuItem] = {}
    for item in items:
        key = name_key(item.name)
        if not key:
            continue
        if key not in merged:
            merged[key] = item
            continue
        current = merged[key]
        updates = {}
        if current.price is None and item.price is not None:
            updates["price"] = item.price
        if current.description is None and item.description is not None:
            updates["description"] = item.description
        if updates:
            merged[key] = current.model_copy(update=updates)
    return list(merged.values())


def extract_traditional(text: str) -> list[MenuItem]:
    currency = detect_currency(text)
    sectioned = extract_section_items(text, currency)
    priced = extract_priced_items(text, currency)
    items = sectioned + priced
    if priced:
        known = {name_key(i.name) for i in items}
        items += extract_keyword_items(text, known)
    return dedupe_items(items)


def is_sufficient(items: list[MenuItem]) -> bool:
    """Quality gate for traditional extraction."""
    if len(items) < 5:
        return False
    return any(i.price for i in items) or len(items) >= 15


def has_price_indicators(text: str, minimum: int = 3) -> bool:
    """Cheap menu-page check: enough prices or currency marks in the text."""
    prices = len(_PRICE_RE.findall(text))
    if prices >= minimum:
        return True
    symbols = sum(1 for ch in text if ch in CURRENCY_SYMBOLS)
    return prices >= 1 and symbols >= minimum


def normalize_category(name: str, description: str | None = None, raw: str | None = None) -> str:
    """Map free-form categories to appetizer/main/side/dessert/beverage."""
    if raw and raw.strip().lower() in CATEGORIES:
        return raw.strip().lower()
    haystack = " ".join(filter(None, (raw, name, description))).lower()
    for category, keywords in _CATEGORY_KEYWORDS:
        if any(re.search(rf"\b{re.escape(k)}s?\b", haystack) for k in keywords):
            return category
    return "main"
