import json
import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from prosupps.config import settings
from prosupps.core.context import SessionContext
from prosupps.core.errors import (
    BackendError, NotFoundError, OperationCancelled, TransportError, ValidationError
)
from prosupps.database.backend import Backend
from prosupps.modules.admin.coordinator import DEFAULT_TAB, check_cancelled
from prosupps.modules.admin.schemas import AdminWriteResponse, ProductForm
from prosupps.modules.images.storage import ImageStorage
from prosupps.modules.products.catalog import normalize_product
from prosupps.modules.products.schemas import ProductResponse
from prosupps.modules.products.service import LOAD_FAILED, TABLE

logger = logging.getLogger(__name__)

ADD_PRODUCT_DRAFT = "add-product"


def _optional_int(value: Optional[str], message: str, field: str) -> Optional[int]:
    if value is None or not str(value).strip():
        return None
    try:
        number = int(str(value).strip())
    except ValueError:
        raise ValidationError(message, field=field)
    if number < 0:
        raise ValidationError(message, field=field)
    return number


def validate_product_form(form: ProductForm) -> Dict[str, Any]:
    """Turn the raw form into a row payload, or raise before anything is sent."""
    name = (form.name or "").strip()
    if not name:
        raise ValidationError("Product name is required", field="name")

    try:
        price = float((form.price or "").strip())
    except ValueError:
        price = 0.0
    if not math.isfinite(price) or price <= 0:
        raise ValidationError("Valid price is required", field="price")

    specifications: Dict[str, Any] = {}
    if form.specifications and form.specifications.strip():
        try:
            specifications = json.loads(form.specifications)
        except ValueError:
            specifications = None
        if not isinstance(specifications, dict):
            raise ValidationError("Specifications must be a JSON object", field="specifications")

    stock = _optional_int(form.stock, "Stock must be a whole number", "stock")
    return {
        "name": name,
        "description": (form.description or "").strip() or None,
        "price": price,
        "category": (form.category or "").strip() or "protein",
        "weight": _optional_int(form.weight, "Weight must be a whole number of grams", "weight"),
        "flavor": (form.flavor or "").strip() or None,
        "stock": stock if stock is not None else 0,
        "specifications": specifications,
    }


class AdminProductService:
    def __init__(self, backend: Backend, context: SessionContext, tab_id: str = DEFAULT_TAB):
        self.backend = backend
        self.context = context
        self.tab_id = tab_id
        self.coordinator = context.coordinator
        self.images = ImageStorage(backend, settings.product_images_bucket, settings.product_image_max_bytes)

    async def _fetch_all(self) -> List[ProductResponse]:
        rows = await run_in_threadpool(self.backend.select_rows, TABLE, None, ("created_at", True))
        products = [ProductResponse(**normalize_product(r)) for r in rows]
        self.context.products = [p.model_dump() for p in products]
        return products

    async def list_products(self) -> List[ProductResponse]:
        """All products, newest first"""
        try:
            return await self._fetch_all()
        except BackendError as e:
            logger.error(f"Error fetching products: {e.message}")
            raise TransportError(LOAD_FAILED)

    async def refresh(self) -> List[ProductResponse]:
        check_cancelled(self.context.cancelled)
        products = await self._fetch_all()
        check_cancelled(self.context.cancelled)
        return products

    async def _finish(self, message: str, row: Optional[Dict[str, Any]] = None) -> AdminWriteResponse:
        """Every successful write is followed by a full re-fetch of the list."""
        refresh_error = None
        try:
            products = await self.refresh()
        except BackendError as e:
            logger.error(f"Product list refresh failed after write: {e.message}")
            refresh_error = LOAD_FAILED
            products = [ProductResponse(**p) for p in (self.context.products or [])]
        return AdminWriteResponse(
            message=message,
            product=ProductResponse(**normalize_product(row)) if row else None,
            products=products,
            refresh_error=refresh_error,
        )

    async def _read_image(self, image: Optional[UploadFile]) -> Optional[bytes]:
        if image is None or not image.filename:
            return None
        return await self.images.read_validated(image)

    async def _upload_image(self, image: Optional[UploadFile], content: Optional[bytes]) -> Optional[str]:
        if content is None:
            return None
        key = self.images.key_for(image.filename, prefix="products")
        return await self.coordinator.run(
            "upload image",
            lambda: self.images.upload_file(content, key, image.content_type),
            self.context.cancelled,
            self.tab_id,
        )

    async def _ensure_exists(self, product_id: str) -> None:
        rows = await run_in_threadpool(self.backend.select_rows, TABLE, {"id": product_id})
        if not rows:
            raise NotFoundError(f"No row {product_id} in {TABLE}")

    async def _write(self, action: str, operation, image_url: Optional[str]) -> Dict[str, Any]:
        try:
            return await self.coordinator.run(action, operation, self.context.cancelled, self.tab_id)
        except (BackendError, OperationCancelled):
            if image_url:
                logger.warning(f"{action} failed; uploaded image {image_url} is not referenced by any product")
            raise

    async def add_product(self, form: ProductForm, image: Optional[UploadFile] = None) -> AdminWriteResponse:
        self.coordinator.ensure_writable("add a product", self.tab_id)
        payload = validate_product_form(form)
        content = await self._read_image(image)
        image_url = await self._upload_image(image, content)
        payload["image_url"] = image_url
        payload["images"] = [image_url] if image_url else []

        row = await self._write("add product", lambda: self.backend.insert_row(TABLE, payload), image_url)
        logger.info(f"Product added: {row.get('id')}")
        self.context.drafts.clear(ADD_PRODUCT_DRAFT)
        return await self._finish("Product added successfully!", row)

    async def update_product(
        self,
        product_id: str,
        form: ProductForm,
        image: Optional[UploadFile] = None,
    ) -> AdminWriteResponse:
        self.coordinator.ensure_writable("update a product", self.tab_id)
        payload = validate_product_form(form)
        content = await self._read_image(image)
        if content is not None:
            await self._ensure_exists(product_id)
        image_url = await self._upload_image(image, content)
        if image_url:
            payload["image_url"] = image_url
            payload["images"] = [image_url]
        payload["updated_at"] = datetime.now(timezone.utc).isoformat()

        row = await self._write(
            "update product",
            lambda: self.backend.update_row(TABLE, product_id, payload),
            image_url,
        )
        logger.info(f"Product updated: {product_id}")
        return await self._finish("Product updated successfully!", row)

    async def delete_product(self, product_id: str) -> AdminWriteResponse:
        self.coordinator.ensure_writable("delete a product", self.tab_id)
        await self._write("delete product", lambda: self.backend.delete_row(TABLE, product_id), None)
        logger.info(f"Product deleted: {product_id}")
        return await self._finish("Product deleted successfully!")
