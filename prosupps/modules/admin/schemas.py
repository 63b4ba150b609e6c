from pydantic import BaseModel
from typing import Optional, Dict, Any, List

from prosupps.modules.products.schemas import ProductResponse


class ProductForm(BaseModel):
    """Raw admin form fields; numbers arrive as text and are checked in the service"""
    name: str = ""
    description: Optional[str] = None
    price: Optional[str] = None
    category: str = "protein"
    weight: Optional[str] = None
    flavor: Optional[str] = None
    stock: Optional[str] = None
    specifications: Optional[str] = None  # JSON object


class AdminWriteResponse(BaseModel):
    message: str
    product: Optional[ProductResponse] = None
    products: List[ProductResponse]
    refresh_error: Optional[str] = None


class VisibilityRequest(BaseModel):
    visible: bool


class VisibilityResponse(BaseModel):
    tab_id: str
    tab_active: bool
    operation_in_progress: bool
    refresh_scheduled: bool


class CategoriesResponse(BaseModel):
    categories: List[str]
    default: str


class DraftResponse(BaseModel):
    form: str
    draft: Optional[Dict[str, Any]] = None
    saved_at: Optional[float] = None
