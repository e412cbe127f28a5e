from flask import Blueprint, request, jsonify
from app.version import API_PREFIX
from app.services import catalog
from app.utils import page_payload

catalog_bp = Blueprint("catalog", __name__, url_prefix=API_PREFIX)


def _int_arg(name):
    raw = request.args.get(name)
    if raw in (None, ""):
        return None
    try:
        return int(raw)
    except ValueError:
        return None


@catalog_bp.route("/products", methods=["GET"])
def list_products():
    """
    List products
    ---
    tags: [Catalog]
    parameters:
      - {name: q, in: query, type: string}
      - {name: min_price, in: query, type: integer}
      - {name: max_price, in: query, type: integer}
      - {name: sort, in: query, type: string, enum: [price_asc, price_desc, name_asc, name_desc, created_desc]}
      - {name: page, in: query, type: integer, default: 1}
      - {name: size, in: query, type: integer, default: 20}
    responses:
      200: {description: Paginated products}
    """
    products, total, page, size = catalog.list_products(
        q=request.args.get("q"),
        min_price=_int_arg("min_price"),
        max_price=_int_arg("max_price"),
        sort=request.args.get("sort"),
        page=request.args.get("page", 1),
        size=request.args.get("size", 20),
    )
    payload = page_payload([p.to_dict() for p in products], page, size, total)
    return jsonify({"status": "success", **payload}), 200


@catalog_bp.route("/products/<string:product_id>", methods=["GET"])
def get_product(product_id):
    product = catalog.get_product(product_id)
    return jsonify({"status": "success", "product": product.to_dict()}), 200
