"""Client-side shaping of the product list: image fallback, filtering, sorting."""
from typing import Any, Dict, Iterable, List

from prosupps.config import settings
from prosupps.modules.products.models import SORT_PRICE_ASC, SORT_PRICE_DESC, UNCATEGORIZED


def display_image(product: Dict[str, Any], placeholder: str = None) -> str:
    """images[0], then image_url, then the static placeholder"""
    images = product.get("images")
    if isinstance(images, list) and images and images[0]:
        return images[0]
    if product.get("image_url"):
        return product["image_url"]
    return placeholder or settings.placeholder_image


def normalize_product(row: Dict[str, Any], placeholder: str = None) -> Dict[str, Any]:
    product = dict(row)
    images = row.get("images")
    if isinstance(images, list):
        product["images"] = [i for i in images if i]
    else:
        product["images"] = [row["image_url"]] if row.get("image_url") else []
    product["category"] = row.get("category") or UNCATEGORIZED
    product["stock"] = row.get("stock") or 0
    product["specifications"] = row.get("specifications") or {}
    product["display_image"] = display_image(product, placeholder)
    return product


def filter_by_category(products: Iterable[Dict[str, Any]], category: str) -> List[Dict[str, Any]]:
    if not category or category == "all":
        return list(products)
    return [p for p in products if p["category"] == category]


def sort_by_price(products: Iterable[Dict[str, Any]], order: str = SORT_PRICE_ASC) -> List[Dict[str, Any]]:
    if order not in (SORT_PRICE_ASC, SORT_PRICE_DESC):
        raise ValueError(f"Unknown sort order: {order}")
    return sorted(products, key=lambda p: float(p["price"]), reverse=order == SORT_PRICE_DESC)


def list_categories(products: Iterable[Dict[str, Any]]) -> List[str]:
    """Distinct categories in first-seen order"""
    seen = []
    for p in products:
        if p["category"] not in seen:
            seen.append(p["category"])
    return seen
