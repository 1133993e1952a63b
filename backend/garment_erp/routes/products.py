# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/garment_erp/routes/products.py
"""
Product management routes.

Create and update accept either multipart/form-data (fields, an optional
`image` file and `variants` as a JSON string) or a JSON body (`variants` as
a list). All routes require authentication.
"""
from flask import Blueprint, request, jsonify, g, current_app

from ..services import catalog_service
from ..services.catalog_service import NotFoundError, StorageError
from ..validation import ValidationError, ConflictError
from ..decorators import require_auth

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def _read_product_request() -> tuple[dict, object, object]:
    """Split a create/update request into (fields, raw variants, image file)."""
    if request.is_json:
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            raise ValidationError("Invalid JSON payload")
        payload = dict(payload)
    else:
        payload = request.form.to_dict()

    variants = payload.pop("variants", None)

    image = request.files.get("image")
    if image is not None and not image.filename:
        # Browsers send an empty part when no file was picked
        image = None

    return payload, variants, image


def _error_response(e: Exception):
    if isinstance(e, ConflictError):
        return jsonify({"error": str(e), "field": e.field}), 400
    if isinstance(e, ValidationError):
        return jsonify({"error": str(e)}), 400
    if isinstance(e, NotFoundError):
        return jsonify({"error": str(e)}), 404
    if isinstance(e, StorageError):
        return jsonify({"error": "Database error"}), 500
    raise e


@products_bp.get("")
@require_auth
def list_products():
    """
    Query params:
    - page: int (default 1)
    - limit: int (default 20, max 100)
    - search: substring of serial number or composition
    - color: substring of a variant color
    - size: exact variant size
    """
    page = max(request.args.get("page", 1, type=int) or 1, 1)
    limit = min(max(request.args.get("limit", catalog_service.DEFAULT_PAGE_SIZE, type=int) or 1, 1),
                catalog_service.MAX_PAGE_SIZE)

    items, total = catalog_service.list_products(
        search=request.args.get("search"),
        color=request.args.get("color"),
        size=request.args.get("size"),
        page=page,
        limit=limit,
    )

    return jsonify({
        "items": items,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": (total + limit - 1) // limit,
        },
    })


@products_bp.post("")
@require_auth
def create_product_route():
    try:
        payload, variants, image = _read_product_request()
        product = catalog_service.create_product_with_variants(
            payload=payload,
            variants=variants,
            image=image,
            creator=g.current_user,
        )
    except (ValidationError, ConflictError, StorageError) as e:
        return _error_response(e)

    return jsonify({"product": product}), 201


@products_bp.get("/stats/summary")
@require_auth
def stats_summary():
    return jsonify(catalog_service.compute_stats())


@products_bp.post("/variants/generate")
@require_auth
def generate_variants_route():
    """
    Body: {"colors": [...], "sizes": [...], "variants": [previous rows]}.
    Returns the colors x sizes grid, keeping quantities of existing pairs.
    """
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return jsonify({"error": "Invalid JSON payload"}), 400

    try:
        variants = catalog_service.generate_variants_from_request(payload)
    except ValidationError as e:
        return _error_response(e)

    return jsonify({"variants": variants})


@products_bp.get("/<int:product_id>")
@require_auth
def get_product_route(product_id: int):
    try:
        product = catalog_service.get_product(product_id)
    except NotFoundError as e:
        return _error_response(e)
    return jsonify({"product": product})


@products_bp.put("/<int:product_id>")
@require_auth
def update_product_route(product_id: int):
    """Partial update; `variants`, when sent, replaces the whole variant set."""
    try:
        payload, variants, image = _read_product_request()
        product = catalog_service.update_product(
            product_id,
            payload=payload,
            variants=variants,
            image=image,
        )
    except (ValidationError, ConflictError, NotFoundError, StorageError) as e:
        return _error_response(e)

    return jsonify({"product": product})


@products_bp.delete("/<int:product_id>")
@require_auth
def delete_product_route(product_id: int):
    try:
        catalog_service.delete_product(product_id)
    except (NotFoundError, StorageError) as e:
        return _error_response(e)

    current_app.logger.info("Product %s deleted by %s", product_id, g.current_user.username)
    return jsonify({"message": "Product deleted"}), 200
