"""
API endpoints for product management.
"""

import logging
from datetime import date, datetime, timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_user, get_owned
from app.models.inventory import InventoryItem
from app.models.product import Product
from app.models.staple import Staple
from app.models.user import User
from app.schemas import (
    InventoryItemResponse,
    ProductCreate,
    ProductResponse,
    ProductToInventoryRequest,
    ProductToStaplesRequest,
    ProductUpdate,
    StapleResponse,
)
from app.services.inventory_service import (
    infer_category,
    infer_location,
    lookup_shelf_life,
    serialize_inventory_item,
)
from app.services.staples_service import enrich_staple

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=List[ProductResponse])
def list_products(
    search: Optional[str] = None,
    category: Optional[str] = None,
    skip: int = 0,
    limit: int = 50,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """List products with optional search and filtering."""
    query = db.query(Product).filter(
        Product.user_id == current_user.id, Product.is_active.is_(True)
    )

    if search:
        query = query.filter(
            or_(
                Product.name.ilike(f"%{search}%"),
                Product.brand.ilike(f"%{search}%"),
            )
        )

    if category:
        query = query.filter(Product.category == category)

    return query.order_by(Product.name).offset(skip).limit(limit).all()


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
def create_product(
    product_in: ProductCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    product = Product(user_id=current_user.id, **product_in.model_dump(exclude_none=True))
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


@router.get("/{product_id}", response_model=ProductResponse)
def get_product(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return get_owned(db, Product, product_id, current_user, "Product")


@router.patch("/{product_id}", response_model=ProductResponse)
def update_product(
    product_id: int,
    product_in: ProductUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    product = get_owned(db, Product, product_id, current_user, "Product")
    for field, value in product_in.model_dump(exclude_unset=True).items():
        if value is None and field in ("name", "quantity", "unit", "is_active"):
            continue
        setattr(product, field, value)
    product.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(product)
    return product


@router.delete("/{product_id}")
def delete_product(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    product = get_owned(db, Product, product_id, current_user, "Product")
    db.delete(product)
    db.commit()
    return {"success": True}


@router.post(
    "/{product_id}/add-to-inventory",
    response_model=InventoryItemResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_product_to_inventory(
    product_id: int,
    request: ProductToInventoryRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    product = get_owned(db, Product, product_id, current_user, "Product")
    category = product.category or infer_category(product.name)
    shelf_life = lookup_shelf_life(product.name)

    expiry = request.expiry_date
    estimated = False
    if expiry is None and shelf_life:
        expiry = date.today() + timedelta(days=shelf_life.days)
        estimated = True

    item = InventoryItem(
        user_id=current_user.id,
        item_name=product.name,
        quantity=request.quantity if request.quantity is not None else product.quantity,
        unit=request.unit or product.unit,
        category=category,
        location=request.location or (shelf_life.location if shelf_life else infer_location(category)),
        purchase_date=date.today(),
        expiry_date=expiry,
        expiry_is_estimated=estimated,
        added_by="product",
    )
    db.add(item)
    db.commit()
    db.refresh(item)
    logger.info(f"Added product {product_id} to inventory as item {item.id}")
    return serialize_inventory_item(item)


@router.post(
    "/{product_id}/add-to-staples",
    response_model=StapleResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_product_to_staples(
    product_id: int,
    request: ProductToStaplesRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    product = get_owned(db, Product, product_id, current_user, "Product")
    staple = Staple(
        user_id=current_user.id,
        item_name=product.name,
        quantity=request.quantity or product.quantity,
        unit=product.unit,
        category=product.category,
        frequency=request.frequency,
        notes=f"From product {product.brand}".strip() if product.brand else None,
    )
    db.add(staple)
    db.commit()
    db.refresh(staple)
    return enrich_staple(staple)
