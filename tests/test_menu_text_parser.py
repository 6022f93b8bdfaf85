"""
Free-text menu recovery.

Covers:
  - Heading/item lines keep their order (categories and items)
  - Heading followed by heading: first category dropped
  - Trailing empty category dropped
  - Non-numeric price: item dropped, not inserted with price None
  - Items before any heading are ignored
  - Emphasis markers, bullets, en-dash separator, currency symbols
  - Headings containing "-" or a currency symbol are not headings
  - currency defaults to USD, rawText is the input verbatim
  - Empty input gives an empty menu
"""

from __future__ import annotations

from menu_studio.menu_text_parser import parse_menu_text


def _shape(data):
    return [(c.category, [(i.name, i.price) for i in c.items]) for c in data.categories]


def test_order_of_categories_and_items_is_preserved():
    text = "\n".join(
        [
            "Starters",
            "Soup - 5.50",
            "Salad - 7",
            "Mains",
            "Burger - 12.99",
            "Steak - 24",
            "Fish - 18.25",
            "Desserts",
            "Pie - 6",
        ]
    )
    data = parse_menu_text(text)
    assert _shape(data) == [
        ("Starters", [("Soup", 5.5), ("Salad", 7.0)]),
        ("Mains", [("Burger", 12.99), ("Steak", 24.0), ("Fish", 18.25)]),
        ("Desserts", [("Pie", 6.0)]),
    ]


def test_heading_immediately_followed_by_heading_is_dropped():
    data = parse_menu_text("Specials\nDrinks\nCola - 2.50\n")
    assert _shape(data) == [("Drinks", [("Cola", 2.5)])]


def test_trailing_heading_without_items_is_dropped():
    data = parse_menu_text("Drinks\nCola - 2.50\nDesserts\n")
    assert [c.category for c in data.categories] == ["Drinks"]


def test_non_numeric_price_drops_the_item():
    data = parse_menu_text("Drinks\nCola - two dollars\nTea - 1.5.0\nWater - 1\n")
    assert _shape(data) == [("Drinks", [("Water", 1.0)])]


def test_items_before_first_heading_are_ignored():
    data = parse_menu_text("Welcome - 1\nBurger - 9\nMains\nSteak - 20\n")
    assert _shape(data) == [("Mains", [("Steak", 20.0)])]


def test_markdown_style_lines():
    text = "\n".join(
        [
            "**Breakfast & Brunch**",
            "- **Pancakes** - $8.50",
            "* Waffles – €9",
            "• French Toast - £7.25",
            "__Sides__",
            "Bacon-Strips - 3",
        ]
    )
    data = parse_menu_text(text)
    assert _shape(data) == [
        ("Breakfast & Brunch", [("Pancakes", 8.5), ("Waffles", 9.0), ("French Toast", 7.25)]),
        ("Sides", [("Bacon-Strips", 3.0)]),
    ]


def test_lines_with_hyphen_or_currency_are_never_headings():
    data = parse_menu_text("Lunch\nBurger - 9\nSoup-of-the-day\nPrice $\nFries - 3\n")
    assert _shape(data) == [("Lunch", [("Burger", 9.0), ("Fries", 3.0)])]


def test_item_with_only_emphasis_for_a_name_is_dropped():
    data = parse_menu_text("Lunch\n** - 4\nFries - 3\n")
    assert _shape(data) == [("Lunch", [("Fries", 3.0)])]


def test_items_have_fixed_shape():
    data = parse_menu_text("Lunch\nFries - 3\n")
    fries = data.categories[0].items[0]
    assert fries.description is None
    assert fries.addons == []
    assert fries.image is None


def test_currency_and_raw_text():
    text = "  Lunch  \n\n   Fries - 3   \n"
    data = parse_menu_text(text)
    assert data.currency == "USD"
    assert data.raw_text == text


def test_empty_and_unrecognisable_input():
    assert parse_menu_text("").categories == []
    assert parse_menu_text("Sorry, I cannot read this image.").categories == []
