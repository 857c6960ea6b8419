"""Tests for the heuristic menu parsing strategies."""

from vegscout.mappers.menu_parser import (
    dedupe_items,
    detect_currency,
    extract_priced_items,
    extract_section_items,
    extract_traditional,
    has_price_indicators,
    is_sufficient,
    normalize_category,
    parse_priced_line,
)
from vegscout.schemas.menu import MenuItem


def test_priced_line_splits_description():
    item = parse_priced_line("Veggie Burger - Tofu patty - $9.99")
    assert item.name == "Veggie Burger"
    assert item.description == "Tofu patty"
    assert item.price == "$9.99"


def test_priced_line_with_dot_leaders():
    item = parse_priced_line("Margherita Pizza ........ 12.50", currency="€")
    assert item.name == "Margherita Pizza"
    assert item.price == "€12.50"


def test_priced_line_rejects_contact_lines_and_prose():
    assert parse_priced_line("Phone 555 123.45") is None
    assert parse_priced_line("We have been open since 1998") is None
    assert parse_priced_line("$9.99") is None


def test_detect_currency():
    assert detect_currency("Pasta €12\nPizza €10\nSoda $2") == "€"
    assert detect_currency("All prices in EUR") == "€"
    assert detect_currency("Nothing to see") == "$"


def test_section_items_use_headers_and_bare_lines():
    text = "\n".join([
        "Welcome!",
        "Appetizers",
        "Garlic Bread $5.00",
        "Soup of the Day $6.50",
        "Desserts:",
        "Chocolate Cake",
        "Lemon Tart",
    ])
    items = extract_section_items(text)
    by_name = {i.name: i for i in items}

    assert set(by_name) == {"Garlic Bread", "Soup of the Day", "Chocolate Cake", "Lemon Tart"}
    assert by_name["Garlic Bread"].category == "Appetizers"
    assert by_name["Chocolate Cake"].category == "Desserts"
    assert by_name["Chocolate Cake"].price is None


def test_priced_items_across_whole_text():
    items = extract_priced_items("Falafel Wrap $8.00\nOpening hours 9-5\nMint Tea $3.00")
    assert [i.name for i in items] == ["Falafel Wrap", "Mint Tea"]


def test_keyword_lines_need_a_priced_item():
    plain = "Grilled tofu with rice and sauce\nHouse salad with dressing"
    assert extract_traditional(plain) == []

    items = extract_traditional(plain + "\nFalafel Wrap $8.00")
    names = [i.name for i in items]
    assert "Falafel Wrap" in names
    assert "Grilled tofu with rice and sauce" in names


def test_dedupe_merges_and_is_idempotent():
    items = [
        MenuItem(name="Veggie Burger"),
        MenuItem(name="veggie  burger!", price="$9.00", description="Tofu patty"),
        MenuItem(name="Fries", price="$3.00"),
    ]
    once = dedupe_items(items)
    assert len(once) == 2
    assert once[0].name == "Veggie Burger"
    assert once[0].price == "$9.00"
    assert once[0].description == "Tofu patty"
    assert dedupe_items(once) == once


def test_quality_gate():
    priced = [MenuItem(name=f"Dish {i}", price="$5.00") for i in range(5)]
    bare = [MenuItem(name=f"Dish {i}") for i in range(15)]

    assert is_sufficient(priced) is True
    assert is_sufficient(priced[:4]) is False
    assert is_sufficient(bare[:5]) is False
    assert is_sufficient(bare) is True


def test_price_indicators():
    assert has_price_indicators("Salad $8.00\nSoup $6.00\nTea $2.50") is True
    assert has_price_indicators("Welcome to our family restaurant") is False


def test_normalize_category():
    assert normalize_category("Chocolate Cake") == "dessert"
    assert normalize_category("Iced Tea") == "beverage"
    assert normalize_category("Side of Fries") == "side"
    assert normalize_category("Pad Thai") == "main"
    assert normalize_category("Bruschetta", raw="Appetizer") == "appetizer"


def test_whole_number_prices_at_line_end():
    text = (
        "Chickpea Curry 14\nMushroom Risotto 16\nMargherita Pizza 13\n"
        "Grilled Salmon 22\nBeef Lasagna 17"
    )
    items = extract_traditional(text)

    assert [i.name for i in items] == [
        "Chickpea Curry", "Mushroom Risotto", "Margherita Pizza", "Grilled Salmon", "Beef Lasagna",
    ]
    assert items[0].price == "$14"
    assert is_sufficient(items) is True


def test_years_are_not_bare_prices():
    assert parse_priced_line("Open since 1998") is None
    assert parse_priced_line("Pad Thai 12").price == "$12"
