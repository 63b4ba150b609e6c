import pytest

from prosupps.modules.products.catalog import (
    display_image, filter_by_category, list_categories, normalize_product, sort_by_price
)

PLACEHOLDER = "/whey_prot.jpg"


def _products():
    rows = [
        {"id": "1", "name": "Whey", "price": 49.0, "category": "protein"},
        {"id": "2", "name": "Creatine", "price": 19.5, "category": "supplements"},
        {"id": "3", "name": "Casein", "price": 39.0, "category": "protein"},
        {"id": "4", "name": "Mystery", "price": 5.0, "category": None},
        {"id": "5", "name": "Ignite", "price": 29.0, "category": "pre-workout"},
    ]
    return [normalize_product(r, PLACEHOLDER) for r in rows]


def test_display_image_prefers_first_image():
    product = {"images": ["a.jpg", "b.jpg"], "image_url": "primary.jpg"}
    assert display_image(product, PLACEHOLDER) == "a.jpg"


def test_display_image_falls_back_to_image_url():
    assert display_image({"images": [], "image_url": "primary.jpg"}, PLACEHOLDER) == "primary.jpg"


@pytest.mark.parametrize("row", [
    {"images": [], "image_url": None},
    {"images": None, "image_url": None},
    {"image_url": ""},
    {},
])
def test_display_image_uses_placeholder_when_nothing_is_set(row):
    assert display_image(row, PLACEHOLDER) == PLACEHOLDER


def test_normalize_builds_images_from_image_url():
    product = normalize_product({"id": "1", "price": 1, "image_url": "x.jpg", "images": None}, PLACEHOLDER)
    assert product["images"] == ["x.jpg"]
    assert product["display_image"] == "x.jpg"
    assert product["stock"] == 0
    assert product["category"] == "uncategorized"
    assert product["specifications"] == {}


def test_filter_all_returns_every_product():
    products = _products()
    assert filter_by_category(products, "all") == products


@pytest.mark.parametrize("category", ["protein", "supplements", "pre-workout", "uncategorized", "vitamins"])
def test_filter_returns_exactly_matching_subset(category):
    products = _products()
    shown = filter_by_category(products, category)
    assert shown == [p for p in products if p["category"] == category]


def test_sort_desc_is_reverse_of_asc_without_ties():
    products = _products()
    ascending = sort_by_price(products, "price-asc")
    descending = sort_by_price(products, "price-desc")
    assert [p["id"] for p in ascending] == ["4", "2", "5", "3", "1"]
    assert descending == list(reversed(ascending))


def test_sort_rejects_unknown_order():
    with pytest.raises(ValueError):
        sort_by_price(_products(), "name")


def test_categories_are_distinct_in_first_seen_order():
    assert list_categories(_products()) == ["protein", "supplements", "uncategorized", "pre-workout"]
