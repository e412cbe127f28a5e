from flask import request, jsonify
from app.schemas.catalog import ProductBulkRequest, ProductCreateRequest, ProductUpdateRequest
from app.services import catalog
from app.utils import transactional, validate_schema
from . import admin_bp


@admin_bp.route("/products", methods=["POST"])
@validate_schema(ProductCreateRequest)
def create_product():
    data: ProductCreateRequest = request.validated_data
    with transactional("Failed to create product"):
        product = catalog.create_product(data.model_dump())
    return jsonify({"status": "success", "product": product.to_dict()}), 201


@admin_bp.route("/products/bulk", methods=["POST"])
@validate_schema(ProductBulkRequest)
def bulk_import_products():
    rows = [row.model_dump() for row in request.validated_data.root]
    with transactional("Failed to bulk import products"):
        products = catalog.bulk_create_products(rows)
    return jsonify({
        "status": "success",
        "count": len(products),
        "items": [p.to_dict() for p in products],
    }), 201


@admin_bp.route("/products/<string:product_id>", methods=["PUT"])
@validate_schema(ProductUpdateRequest)
def update_product(product_id):
    changes = request.validated_data.model_dump(exclude_unset=True)
    with transactional("Failed to update product"):
        product = catalog.update_product(product_id, changes)
    return jsonify({"status": "success", "product": product.to_dict()}), 200


@admin_bp.route("/products/<string:product_id>", methods=["DELETE"])
def delete_product(product_id):
    with transactional("Failed to delete product"):
        catalog.delete_product(product_id)
    return jsonify({"status": "success", "message": "Product deleted"}), 200
