# backend/garment_erp/services/products_service.py
"""
Product Catalog Store

Owns the `products` rows: lookups, serial-number uniqueness, inserts,
in-place patches and deletes. Nothing here commits; callers wrap writes in
services.transactions.atomic() so product and variant rows land together.
"""
from __future__ import annotations

from sqlalchemy import and_, func, or_

from ..extensions import db
from ..models import Product, ProductVariant
from garment_erp.time_utils import utcnow

PRODUCT_MUTABLE_FIELDS = {"serial_number", "price", "composition", "image_url"}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def get_product_row(product_id: int) -> Product | None:
    return db.session.get(Product, product_id)


def serial_exists(serial_number: str, *, exclude_id: int | None = None) -> bool:
    query = db.session.query(Product.id).filter(Product.serial_number == serial_number)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    return db.session.query(query.exists()).scalar()


def insert_product(*, patch: dict, image_url: str | None, created_by: int | None) -> Product:
    p = Product(image_url=image_url, created_by=created_by)
    apply_product_patch(p, patch)
    db.session.add(p)
    db.session.flush()  # ensure p.id exists before variants are attached
    return p


def touch_product(p: Product) -> None:
    # Variant-only updates leave the products row untouched, so bump explicitly
    p.updated_at = utcnow()


def delete_product_row(p: Product) -> None:
    db.session.delete(p)
    db.session.flush()


def filtered_query(
    *,
    search: str | None = None,
    color: str | None = None,
    size: str | None = None,
):
    """
    Products matching the listing filters.

    - search: substring of serial_number or composition
    - color: substring of any variant's color
    - size: exact match on that same variant's size

    Variant filters go through EXISTS, so a product with several matching
    variants still appears once.
    """
    query = db.session.query(Product)

    if search:
        like = f"%{search}%"
        query = query.filter(or_(Product.serial_number.ilike(like), Product.composition.ilike(like)))

    variant_conditions = []
    if color:
        variant_conditions.append(ProductVariant.color.ilike(f"%{color}%"))
    if size:
        variant_conditions.append(ProductVariant.size == size)
    if variant_conditions:
        query = query.filter(Product.variants.any(and_(*variant_conditions)))

    return query


def page_of_products(query, *, page: int, per_page: int) -> tuple[list[Product], int]:
    total = query.order_by(None).count()
    products = (
        query.order_by(Product.created_at.desc(), Product.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )
    return products, total


def count_products() -> int:
    return db.session.query(func.count(Product.id)).scalar() or 0
