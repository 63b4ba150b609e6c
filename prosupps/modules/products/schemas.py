from pydantic import BaseModel
from typing import Optional, Dict, Any, List
from datetime import datetime


class ProductResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    price: float
    category: str
    weight: Optional[int] = None
    flavor: Optional[str] = None
    stock: int = 0
    image_url: Optional[str] = None
    images: List[str] = []
    specifications: Dict[str, Any] = {}
    display_image: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProductDetailResponse(ProductResponse):
    gallery: List[str] = []


class CatalogResponse(BaseModel):
    products: List[ProductResponse]
    categories: List[str]
    category: str
    sort: str
    total: int
    message: Optional[str] = None
