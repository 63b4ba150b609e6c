from fastapi import APIRouter, Depends, File, Form, Header, UploadFile
from prosupps.core.context import SessionContext
from prosupps.core.dependencies import get_session_context, require_role
from prosupps.database.backend import Backend, get_service_backend
from prosupps.modules.admin.coordinator import DEFAULT_TAB
from prosupps.modules.admin.drafts import DraftStore
from prosupps.modules.admin.schemas import (
    AdminWriteResponse, CategoriesResponse, DraftResponse, ProductForm, VisibilityRequest, VisibilityResponse
)
from prosupps.modules.admin.service import ADD_PRODUCT_DRAFT, AdminProductService
from prosupps.modules.products.models import CATEGORIES
from prosupps.modules.products.schemas import ProductResponse
from prosupps.modules.profile.models import ROLE_ADMIN
from typing import Any, Dict, List, Optional

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(require_role(ROLE_ADMIN))],
)


def get_tab_id(x_tab_id: Optional[str] = Header(None)) -> str:
    """Each dashboard tab sends its own id; visibility is tracked per tab"""
    return x_tab_id or DEFAULT_TAB


def get_admin_service(
    backend: Backend = Depends(get_service_backend),
    context: SessionContext = Depends(get_session_context),
    tab_id: str = Depends(get_tab_id)
) -> AdminProductService:
    return AdminProductService(backend, context, tab_id)


def product_form(
    name: str = Form(""),
    description: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    category: str = Form("protein"),
    weight: Optional[str] = Form(None),
    flavor: Optional[str] = Form(None),
    stock: Optional[str] = Form(None),
    specifications: Optional[str] = Form(None),
) -> ProductForm:
    return ProductForm(
        name=name, description=description, price=price, category=category,
        weight=weight, flavor=flavor, stock=stock, specifications=specifications,
    )


@router.get("/products", response_model=List[ProductResponse])
async def list_products(service: AdminProductService = Depends(get_admin_service)):
    """All products, newest first"""
    return await service.list_products()


@router.get("/categories", response_model=CategoriesResponse)
async def list_categories():
    """Category choices for the product form"""
    return CategoriesResponse(categories=CATEGORIES, default=CATEGORIES[0])


@router.post("/products", response_model=AdminWriteResponse, status_code=201)
async def add_product(
    form: ProductForm = Depends(product_form),
    image: Optional[UploadFile] = File(None),
    service: AdminProductService = Depends(get_admin_service)
):
    """Create a product, uploading its image first when one is attached"""
    return await service.add_product(form, image)


@router.put("/products/{product_id}", response_model=AdminWriteResponse)
async def update_product(
    product_id: str,
    form: ProductForm = Depends(product_form),
    image: Optional[UploadFile] = File(None),
    service: AdminProductService = Depends(get_admin_service)
):
    """Update a product; a new image replaces the current ones"""
    return await service.update_product(product_id, form, image)


@router.delete("/products/{product_id}", response_model=AdminWriteResponse)
async def delete_product(
    product_id: str,
    service: AdminProductService = Depends(get_admin_service)
):
    return await service.delete_product(product_id)


@router.post("/session/visibility", response_model=VisibilityResponse)
async def set_visibility(
    body: VisibilityRequest,
    service: AdminProductService = Depends(get_admin_service)
):
    """Dashboard tab hidden/shown. Coming back schedules a catalog refresh."""
    coordinator = service.coordinator
    scheduled = coordinator.set_visibility(body.visible, refresh=service.refresh, tab_id=service.tab_id)
    return VisibilityResponse(
        tab_id=service.tab_id,
        tab_active=coordinator.is_tab_active(service.tab_id),
        operation_in_progress=coordinator.operation_in_progress,
        refresh_scheduled=scheduled,
    )


def _drafts(context: SessionContext = Depends(get_session_context)) -> DraftStore:
    return context.drafts


@router.get("/drafts/add-product", response_model=DraftResponse)
async def get_add_product_draft(drafts: DraftStore = Depends(_drafts)):
    entry = drafts.load(ADD_PRODUCT_DRAFT)
    if entry is None:
        return DraftResponse(form=ADD_PRODUCT_DRAFT)
    data, saved_at = entry
    return DraftResponse(form=ADD_PRODUCT_DRAFT, draft=data, saved_at=saved_at)


@router.put("/drafts/add-product", response_model=DraftResponse)
async def save_add_product_draft(
    draft: Dict[str, Any],
    drafts: DraftStore = Depends(_drafts)
):
    """Autosave of the add-product form"""
    saved_at = drafts.save(ADD_PRODUCT_DRAFT, draft)
    return DraftResponse(form=ADD_PRODUCT_DRAFT, draft=draft, saved_at=saved_at)


@router.delete("/drafts/add-product", status_code=204)
async def clear_add_product_draft(drafts: DraftStore = Depends(_drafts)):
    drafts.clear(ADD_PRODUCT_DRAFT)
    return None
