"""
Admin API: product management and order overview.

Every endpoint requires a signed-in user listed in the admins table (403 otherwise).
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from db import get_session
from exceptions.product import ProductNotFoundException, InvalidProductDataException
from models.product import ProductCreateRequestDTO, ProductUpdateRequestDTO
from models.user import UserDTO
from services.admin import AdminService
from web.dependencies import get_current_admin

logger = logging.getLogger(__name__)

admin_router = APIRouter(prefix="/api/admin", tags=["admin"])


@admin_router.post("/products")
async def create_product(payload: ProductCreateRequestDTO, admin: UserDTO = Depends(get_current_admin),
                         session: AsyncSession = Depends(get_session)):
    try:
        product_id = await AdminService.create_product(payload, session)
    except InvalidProductDataException as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail={"ok": False, "error": e.reason})
    logger.info(f"Admin {admin.id} created product {product_id}")
    return {"ok": True, "id": product_id}


@admin_router.patch("/products/{product_id}")
async def update_product(product_id: str, payload: ProductUpdateRequestDTO,
                         admin: UserDTO = Depends(get_current_admin),
                         session: AsyncSession = Depends(get_session)):
    try:
        await AdminService.update_product(product_id, payload, session)
    except ProductNotFoundException:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail={"ok": False, "error": "Product not found"})
    except InvalidProductDataException as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail={"ok": False, "error": e.reason})
    return {"ok": True}


@admin_router.delete("/products/{product_id}")
async def delete_product(product_id: str, hard: str | None = Query(None), reason: str | None = Query(None),
                         admin: UserDTO = Depends(get_current_admin),
                         session: AsyncSession = Depends(get_session)):
    """Soft delete by default; `?hard=1` removes the product and its images, links and cart lines."""
    is_hard = hard == "1"
    try:
        await AdminService.delete_product(product_id, admin.id, is_hard, reason, session)
    except ProductNotFoundException:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail={"ok": False, "error": "Product not found"})
    if is_hard:
        return {"ok": True, "hard": True}
    return {"ok": True, "soft": True}


@admin_router.get("/orders")
async def list_orders(admin: UserDTO = Depends(get_current_admin), session: AsyncSession = Depends(get_session)):
    orders = await AdminService.list_orders(session)
    return {
        "ok": True,
        "orders": [{
            **order.model_dump(mode="json"),
            "items": [item.model_dump(mode="json", exclude={"order_id"}) for item in items]
        } for order, items in orders]
    }
