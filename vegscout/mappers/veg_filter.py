"""Deterministic vegetarian rules.

``post_filter`` is authoritative over AI output: anything mentioning a
disqualifying term or looking like a menu-section label is dropped.
"""

import re

from vegscout.mappers.menu_parser import MIN_NAME_LENGTH, normalize_category
from vegscout.schemas.menu import ClassifiedItem, MenuItem

DISQUALIFYING_TERMS = (
    # meat
    "beef", "pork", "lamb", "veal", "ham", "bacon", "sausage", "pepperoni",
    "salami", "chorizo", "prosciutto", "pancetta", "brisket", "steak",
    "meatball", "hamburger", "cheeseburger", "carnitas", "barbacoa", "venison",
    "mutton", "oxtail", "lardon", "guanciale", "jamon",
    # poultry
    "chicken", "turkey", "duck", "goose", "poultry", "wing", "drumstick", "quail",
    # fish and seafood
    "tuna", "salmon", "cod", "tilapia", "bass", "trout", "halibut", "mahi",
    "ahi", "shrimp", "prawn", "crab", "lobster", "scallop", "mussel", "clam",
    "oyster", "calamari", "squid", "octopus", "fish", "seafood", "anchovy",
    "anchovies", "sardine", "mackerel", "eel", "caviar", "roe",
    # hidden animal products
    "bone broth", "chicken broth", "beef broth", "fish stock", "fish sauce",
    "oyster sauce", "gelatin", "lard",
)

MENU_SECTION_LABELS = frozenset({
    "menu", "menus", "appetizers", "starters", "mains", "main courses", "entrees",
    "desserts", "beverages", "drinks", "sides", "salads", "soups", "specials",
    "chef specials", "daily specials", "seasonal menu", "wine list", "beer list",
    "cocktails", "bar menu", "catering", "private events",
    "no description provided", "description not available", "see menu",
    "varies", "ask server", "market price", "seasonal",
})

_MENU_PHRASE_RE = re.compile(
    r"\b(?:(?:dinner|lunch|breakfast|brunch|kids|children'?s?|party|group|banquet"
    r"|catering|seasonal|bar|drinks?|dessert|happy hour|tasting|full|our|view)\s+menu"
    r"|private events?|catering menu|wine list|beer list)\b",
    re.IGNORECASE,
)

_DISQUALIFYING_RE = re.compile(
    r"\b(?:" + "|".join(re.escape(t) for t in sorted(DISQUALIFYING_TERMS, key=len, reverse=True))
    + r")(?:s|es)?\b",
    re.IGNORECASE,
)

_NAME_CLEAN_RE = re.compile(r"[^\w\s\-.,()$€£¥₹₩¢']")

VEGETARIAN_KEYWORDS = (
    "vegetarian", "vegan", "plant-based", "plant based", "veggie", "tofu",
    "tempeh", "seitan", "quinoa", "chickpea", "lentil", "bean", "mushroom",
    "avocado", "spinach", "kale", "cauliflower", "portobello", "falafel",
    "hummus", "paneer", "halloumi", "eggplant", "aubergine", "margherita",
)
_VEGETARIAN_RE = re.compile(
    r"\b(?:" + "|".join(re.escape(k) for k in VEGETARIAN_KEYWORDS) + r")(?:s|es)?\b",
    re.IGNORECASE,
)
_VEGAN_RE = re.compile(r"\bvegan\b", re.IGNORECASE)

KEYWORD_ITEM_CONFIDENCE = 0.7


def clean_name(name: str) -> str:
    return " ".join(_NAME_CLEAN_RE.sub("", name or "").split())


def disqualifying_term(text: str | None) -> str | None:
    if not text:
        return None
    match = _DISQUALIFYING_RE.search(text)
    return match.group(0).lower() if match else None


def is_menu_section_label(name: str) -> bool:
    lowered = " ".join(name.lower().split()).strip(" :.-")
    return lowered in MENU_SECTION_LABELS or bool(_MENU_PHRASE_RE.search(lowered))


def passes_post_filter(item: MenuItem) -> bool:
    name = item.name.strip()
    if len(name) < MIN_NAME_LENGTH:
        return False
    if is_menu_section_label(name):
        return False
    return disqualifying_term(name) is None and disqualifying_term(item.description) is None


def post_filter(items: list[ClassifiedItem]) -> list[ClassifiedItem]:
    return [item for item in items if passes_post_filter(item)]


def keyword_classify(items: list[MenuItem]) -> list[ClassifiedItem]:
    """Vegetarian keyword present and no disqualifying term present."""
    accepted: list[ClassifiedItem] = []
    for item in items:
        text = f"{item.name} {item.description or ''}"
        if not _VEGETARIAN_RE.search(text) or not passes_post_filter(item):
            continue
        accepted.append(ClassifiedItem(
            name=item.name,
            price=item.price,
            category=normalize_category(item.name, item.description, item.category),
            description=item.description,
            is_vegan=bool(_VEGAN_RE.search(text)),
            confidence=KEYWORD_ITEM_CONFIDENCE,
            explicitly_marked=bool(re.search(r"\b(?:vegetarian|vegan)\b", text, re.IGNORECASE)),
            notes="Matched vegetarian keyword",
        ))
    return accepted
