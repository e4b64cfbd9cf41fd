"""
Product endpoints — public catalog reads, business-owned writes.
"""

import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from deps import require_business
from domain.errors import NotFoundError
from domain.responses import list_response, success_response
from models import ProductCreateRequest, ProductResponse, ProductUpdateRequest
from services import product_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/products", tags=["products"])


@router.get("/business/{business_uid}")
async def list_business_products(
    business_uid: str,
    include_hidden: bool = Query(False, alias="includeHidden"),
    db: AsyncSession = Depends(get_db),
):
    products = await product_service.list_business_products(
        db, business_id=business_uid, include_hidden=include_hidden
    )
    return list_response(
        [ProductResponse.model_validate(p).to_api() for p in products],
        businessId=business_uid,
    )


@router.get("/{product_id}")
async def get_product(product_id: int, db: AsyncSession = Depends(get_db)):
    product = await product_service.get_product(db, product_id=product_id)
    if not product:
        raise NotFoundError("Product", product_id)
    return success_response(data=ProductResponse.model_validate(product).to_api())


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_product(
    request: ProductCreateRequest,
    business=Depends(require_business),
    db: AsyncSession = Depends(get_db),
):
    product = await product_service.create_product(
        db, business_id=business.uid, **request.model_dump(mode="json")
    )
    await db.commit()
    await db.refresh(product)
    logger.info(f"Product {product.id} added by business {business.uid}")
    return success_response(data=ProductResponse.model_validate(product).to_api())


@router.patch("/{product_id}")
async def update_product(
    product_id: int,
    request: ProductUpdateRequest,
    business=Depends(require_business),
    db: AsyncSession = Depends(get_db),
):
    product = await product_service.update_product(
        db,
        product_id=product_id,
        business_id=business.uid,
        **request.model_dump(mode="json", exclude_unset=True),
    )
    await db.commit()
    await db.refresh(product)
    return success_response(data=ProductResponse.model_validate(product).to_api())


@router.delete("/{product_id}")
async def delete_product(
    product_id: int,
    business=Depends(require_business),
    db: AsyncSession = Depends(get_db),
):
    outcome = await product_service.delete_product(db, product_id=product_id, business_id=business.uid)
    await db.commit()
    return success_response(data={"id": product_id, "result": outcome})
