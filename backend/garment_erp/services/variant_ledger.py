"""
Variant Ledger

One row per (product, size, color). Rows are inserted as a batch when a
product is created and replaced wholesale (delete-all, insert-new) when an
update carries a new variant list. Callers pass lists already normalized by
validation.validate_variants() and own the surrounding transaction.
"""
from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..models import Product, ProductVariant


def insert_variants(product: Product, variants: list[dict]) -> list[ProductVariant]:
    rows = [
        ProductVariant(size=v["size"], color=v["color"], quantity=v["quantity"])
        for v in variants
    ]
    product.variants.extend(rows)
    db.session.flush()
    return rows


def replace_variants(product: Product, variants: list[dict]) -> list[ProductVariant]:
    # Old rows must be gone before the new ones hit the unique constraint
    product.variants.clear()
    db.session.flush()
    return insert_variants(product, variants)


def count_for(product_id: int) -> int:
    return (
        db.session.query(func.count(ProductVariant.id))
        .filter(ProductVariant.product_id == product_id)
        .scalar()
        or 0
    )


def totals() -> dict:
    """Catalog-wide variant aggregates; every field is 0 on an empty ledger."""
    total_quantity = db.session.query(func.coalesce(func.sum(ProductVariant.quantity), 0)).scalar()
    total_value = (
        db.session.query(func.coalesce(func.sum(ProductVariant.quantity * Product.price), 0))
        .join(Product, ProductVariant.product_id == Product.id)
        .scalar()
    )
    unique_colors = db.session.query(func.count(func.distinct(ProductVariant.color))).scalar()
    unique_sizes = db.session.query(func.count(func.distinct(ProductVariant.size))).scalar()

    return {
        "quantity": int(total_quantity or 0),
        "value": round(float(total_value or 0), 2),
        "colors": int(unique_colors or 0),
        "sizes": int(unique_sizes or 0),
    }
