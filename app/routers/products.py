# app/routers/products.py

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.database import get_db
from app.core.auth import get_current_user, get_admin_user
from app.models.products import Product
from app.services import ledger
from app.schemas.product import (
    ProductCreate,
    ProductUpdate,
    ProductWithStockResponse,
    StockLevelResponse,
)

router = APIRouter(
    prefix="/products",
    tags=["Products"],
)

logger = logging.getLogger("app")


def _find_by_name(db: Session, name: str):
    return (
        db.query(Product)
        .filter(func.lower(Product.name) == name.strip().lower())
        .first()
    )


def _get_product(db: Session, product_id: int) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()

    if not product:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found",
        )

    return product


def _with_stock(db: Session, product: Product) -> dict:
    level = ledger.get_stock_level(db, product.id)

    data = ProductWithStockResponse.model_validate(product).model_dump()
    data.update(
        current_stock=level["current_stock"],
        total_added=level["total_received"],
        total_distributed=level["total_distributed"],
    )
    return data


@router.post(
    "",
    response_model=ProductWithStockResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_product(
    product_data: ProductCreate,
    db: Session = Depends(get_db),
    admin=Depends(get_admin_user),
):
    # Names are unique regardless of case
    if _find_by_name(db, product_data.name):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Product with this name already exists",
        )

    product = Product(
        name=product_data.name.strip(),
        unit_type=product_data.unit_type,
        units_per_package=product_data.units_per_package,
        description=product_data.description,
    )

    db.add(product)
    db.commit()
    db.refresh(product)

    logger.info(f"Product created: {product.name} ({product.unit_type})")

    return product


@router.get("", response_model=list[ProductWithStockResponse])
def list_products(
    with_stock: bool = False,
    include_inactive: bool = False,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    query = db.query(Product)

    if not include_inactive:
        query = query.filter(Product.is_active.is_(True))

    products = query.order_by(Product.name).all()

    if with_stock:
        return [_with_stock(db, product) for product in products]

    return products


@router.get("/{product_id}", response_model=ProductWithStockResponse)
def get_product(
    product_id: int,
    with_stock: bool = False,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    product = _get_product(db, product_id)

    if with_stock:
        return _with_stock(db, product)

    return product


@router.get("/{product_id}/stock", response_model=StockLevelResponse)
def get_product_stock(
    product_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    product = _get_product(db, product_id)
    level = ledger.get_stock_level(db, product.id)

    return {
        "product_id": product.id,
        "product_name": product.name,
        "unit_type": product.unit_type,
        **level,
    }


@router.put("/{product_id}", response_model=ProductWithStockResponse)
def update_product(
    product_id: int,
    product_data: ProductUpdate,
    db: Session = Depends(get_db),
    admin=Depends(get_admin_user),
):
    product = _get_product(db, product_id)

    if product_data.name is not None and product_data.name.strip().lower() != product.name.lower():
        if _find_by_name(db, product_data.name):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Product with this name already exists",
            )
        product.name = product_data.name.strip()

    if product_data.unit_type is not None:
        product.unit_type = product_data.unit_type

    if product_data.units_per_package is not None:
        product.units_per_package = product_data.units_per_package

    if product_data.description is not None:
        product.description = product_data.description

    if product_data.is_active is not None:
        product.is_active = product_data.is_active

    db.commit()
    db.refresh(product)

    return product


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    product_id: int,
    db: Session = Depends(get_db),
    admin=Depends(get_admin_user),
):
    product = _get_product(db, product_id)

    # Soft delete: receipts and distributions keep pointing at it
    product.is_active = False
    db.commit()

    logger.info(f"Product deactivated: {product.name}")

    return None
