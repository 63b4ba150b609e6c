import logging

from fastapi import HTTPException

from prosupps.core.errors import BackendError, TransportError
from prosupps.database.backend import Backend
from prosupps.modules.products.catalog import (
    filter_by_category, list_categories, normalize_product, sort_by_price
)
from prosupps.modules.products.schemas import CatalogResponse, ProductDetailResponse, ProductResponse

logger = logging.getLogger(__name__)

TABLE = "products"
LOAD_FAILED = "Failed to load products. Please try again later."
NO_PRODUCTS = "No products available at the moment."


class ProductService:
    def __init__(self, backend: Backend):
        self.backend = backend

    def get_catalog(self, category: str = "all", sort: str = "price-asc") -> CatalogResponse:
        """One unfiltered query; filtering and sorting happen here, not in the database."""
        try:
            rows = self.backend.select_rows(TABLE)
        except BackendError as e:
            logger.error(f"Error fetching products: {e.message}")
            raise TransportError(LOAD_FAILED)

        products = [normalize_product(r) for r in rows]
        shown = sort_by_price(filter_by_category(products, category), sort)
        return CatalogResponse(
            products=[ProductResponse(**p) for p in shown],
            categories=list_categories(products),
            category=category,
            sort=sort,
            total=len(products),
            message=None if products else NO_PRODUCTS,
        )

    def get_product(self, product_id: str) -> ProductDetailResponse:
        try:
            rows = self.backend.select_rows(TABLE, {"id": product_id})
        except TransportError:
            raise
        except BackendError as e:
            # e.g. a malformed uuid; the page treats it like a missing product
            logger.info(f"Product lookup {product_id} rejected: {e.message}")
            rows = []
        if not rows:
            raise HTTPException(
                status_code=404,
                detail={"message": "Product not found", "back_to": "/products"}
            )
        product = normalize_product(rows[0])
        return ProductDetailResponse(**product, gallery=product["images"][1:])
