from fastapi import APIRouter, Depends, Query
from prosupps.database.backend import Backend, get_backend
from prosupps.modules.products.schemas import CatalogResponse, ProductDetailResponse
from prosupps.modules.products.service import ProductService

router = APIRouter(prefix="/products", tags=["products"])


def get_product_service(backend: Backend = Depends(get_backend)) -> ProductService:
    return ProductService(backend)


@router.get("", response_model=CatalogResponse)
async def list_products(
    category: str = "all",
    sort: str = Query("price-asc", pattern="^price-(asc|desc)$"),
    service: ProductService = Depends(get_product_service)
):
    """Product catalog filtered by category and sorted by price"""
    return service.get_catalog(category=category, sort=sort)


@router.get("/{product_id}", response_model=ProductDetailResponse)
async def get_product(
    product_id: str,
    service: ProductService = Depends(get_product_service)
):
    """Product detail with gallery and specifications"""
    return service.get_product(product_id)
