# backend/garment_erp/services/catalog_service.py
"""
Catalog Service

Orchestrates product + variant changes:
- validates fields, variants and the optional image before any mutation
- runs the product row and its variant rows through one atomic() scope
- maps store failures onto ConflictError (duplicate serial) or StorageError
- computes dashboard aggregates and paginated, filtered listings

Image files are written before the transaction and removed again if it
fails; files orphaned by a successful update/delete are removed after commit.
"""
from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..models import User
from ..validation import (
    ConflictError,
    ValidationError,
    decode_variants,
    validate_product_fields,
    validate_variants,
)
from . import image_storage, products_service, variant_ledger
from .transactions import atomic, is_unique_violation

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

SERIAL_CONSTRAINTS = ("products.serial_number", "uq_products_serial_number")


class NotFoundError(LookupError):
    """404-level: unknown product id."""


class StorageError(RuntimeError):
    """500-level: unexpected persistence failure. Message is safe to show."""


def _duplicate_serial(serial_number: str) -> ConflictError:
    return ConflictError(f"Serial number '{serial_number}' already exists", field="serial_number")


def _translate_store_error(exc: Exception, serial_number: str | None, action: str) -> Exception:
    if isinstance(exc, IntegrityError) and is_unique_violation(exc, *SERIAL_CONSTRAINTS):
        return _duplicate_serial(serial_number or "")
    current_app.logger.exception("Failed to %s", action)
    return StorageError(f"Failed to {action}")


def generate_variants(
    previous: list[dict] | None,
    colors: list[str],
    sizes: list[str],
) -> list[dict]:
    """
    Cross-product of the selected colors and sizes, colors outer loop.

    A pair that already existed keeps its quantity; new pairs start at 0.
    Repeated selections are collapsed, first occurrence wins.
    """
    existing = {}
    for v in previous or []:
        existing.setdefault((v["color"], v["size"]), v.get("quantity", 0))

    generated = []
    for color in dict.fromkeys(colors):
        for size in dict.fromkeys(sizes):
            generated.append({
                "color": color,
                "size": size,
                "quantity": existing.get((color, size), 0),
            })
    return generated


def create_product_with_variants(
    *,
    payload: dict,
    variants,
    image=None,
    creator: User | None = None,
) -> dict:
    """
    Create a product and its variant rows in one transaction.

    Raises:
        ValidationError: bad fields, empty/invalid variants, rejected image
        ConflictError: serial number already taken
        StorageError: any other persistence failure
    """
    patch = validate_product_fields(payload, partial=False)
    cleaned_variants = validate_variants(decode_variants(variants))
    if image is not None:
        image_storage.validate_image(image)

    serial_number = patch["serial_number"]
    if products_service.serial_exists(serial_number):
        raise _duplicate_serial(serial_number)

    image_url = image_storage.save_image(image) if image is not None else None

    try:
        with atomic():
            product = products_service.insert_product(
                patch=patch,
                image_url=image_url,
                created_by=creator.id if creator else None,
            )
            variant_ledger.insert_variants(product, cleaned_variants)
    except SQLAlchemyError as exc:
        image_storage.delete_image(image_url)
        raise _translate_store_error(exc, serial_number, "create product") from exc

    current_app.logger.info(
        "Created product %s with %d variants", product.serial_number, len(cleaned_variants)
    )
    return product.to_dict()


def get_product(product_id: int) -> dict:
    product = products_service.get_product_row(product_id)
    if product is None:
        raise NotFoundError("Product not found")
    return product.to_dict()


def list_products(
    *,
    search: str | None = None,
    color: str | None = None,
    size: str | None = None,
    page: int | None = None,
    limit: int | None = None,
) -> tuple[list[dict], int]:
    """
    One page of products, newest first, each with its full variant set.

    Returns (items, total) where total counts every matching product.
    """
    page = max(page or 1, 1)
    limit = min(max(limit or DEFAULT_PAGE_SIZE, 1), MAX_PAGE_SIZE)

    query = products_service.filtered_query(
        search=(search or "").strip() or None,
        color=(color or "").strip() or None,
        size=(size or "").strip() or None,
    )
    products, total = products_service.page_of_products(query, page=page, per_page=limit)
    return [p.to_dict() for p in products], total


def update_product(
    product_id: int,
    *,
    payload: dict,
    variants=None,
    image=None,
) -> dict:
    """
    Partial update. Omitted fields keep their values; a supplied variant
    list replaces the old set inside the same transaction as the field
    changes. On any failure the product and its variants are unchanged.

    Raises:
        NotFoundError, ValidationError, ConflictError, StorageError
    """
    patch = validate_product_fields(payload, partial=True)
    decoded = decode_variants(variants)
    cleaned_variants = validate_variants(decoded) if decoded is not None else None
    if image is not None:
        image_storage.validate_image(image)

    product = products_service.get_product_row(product_id)
    if product is None:
        raise NotFoundError("Product not found")

    serial_number = patch.get("serial_number", product.serial_number)
    if "serial_number" in patch and products_service.serial_exists(serial_number, exclude_id=product.id):
        raise _duplicate_serial(serial_number)

    old_image_url = product.image_url
    new_image_url = image_storage.save_image(image) if image is not None else None
    if new_image_url:
        patch["image_url"] = new_image_url

    try:
        with atomic():
            products_service.apply_product_patch(product, patch)
            products_service.touch_product(product)
            if cleaned_variants is not None:
                variant_ledger.replace_variants(product, cleaned_variants)
    except SQLAlchemyError as exc:
        image_storage.delete_image(new_image_url)
        raise _translate_store_error(exc, serial_number, "update product") from exc

    if new_image_url and old_image_url:
        image_storage.delete_image(old_image_url)

    return product.to_dict()


def delete_product(product_id: int) -> None:
    """Delete a product; its variants go with it, its image is cleaned up after commit."""
    product = products_service.get_product_row(product_id)
    if product is None:
        raise NotFoundError("Product not found")

    image_url = product.image_url
    serial_number = product.serial_number

    try:
        with atomic():
            products_service.delete_product_row(product)
    except SQLAlchemyError as exc:
        raise _translate_store_error(exc, serial_number, "delete product") from exc

    image_storage.delete_image(image_url)
    current_app.logger.info("Deleted product %s", serial_number)


def compute_stats() -> dict:
    variant_totals = variant_ledger.totals()
    return {
        "totalProducts": products_service.count_products(),
        "totalQuantity": variant_totals["quantity"],
        "totalValue": variant_totals["value"],
        "uniqueColors": variant_totals["colors"],
        "uniqueSizes": variant_totals["sizes"],
    }


def _selection(raw, name: str) -> list[str]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValidationError(f"{name} must be a list")
    selected = []
    for value in raw:
        if not isinstance(value, str):
            raise ValidationError(f"{name} must contain strings")
        if value.strip():
            selected.append(value.strip())
    return selected


def generate_variants_from_request(payload: dict) -> list[dict]:
    """HTTP entry point for generate_variants(): validates the selections."""
    previous = decode_variants(payload.get("variants")) or []
    previous = [
        v for v in previous
        if isinstance(v, dict) and "color" in v and "size" in v
    ]
    return generate_variants(
        previous,
        _selection(payload.get("colors"), "colors"),
        _selection(payload.get("sizes"), "sizes"),
    )
