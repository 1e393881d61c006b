from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import StoreFailure, WarehouseError
from core.logging import get_logger
from db.database import get_async_session
from db.warehouse import store
from schemas.warehouse import ProductCreate, ProductRead

router = APIRouter()
logger = get_logger(__name__)


@router.get("", response_model=List[ProductRead])
async def list_products(db: AsyncSession = Depends(get_async_session)):
    items = await store.list_products(db)
    return [ProductRead(**p.to_schema) for p in items]


@router.post("", response_model=ProductRead, status_code=status.HTTP_201_CREATED)
async def create_product(
    payload: ProductCreate,
    db: AsyncSession = Depends(get_async_session),
):
    try:
        product = await store.create_product(db, payload.name, sku=payload.sku, rfid_uid=payload.rfid_uid)
        await db.commit()
    except WarehouseError:
        await db.rollback()
        raise
    except Exception as e:
        await db.rollback()
        logger.error("create_product_failed", error=repr(e), exc_info=True)
        raise StoreFailure(f"Failed to create product: {e}")
    return ProductRead(**product.to_schema)
