from flask import request, jsonify
from app.schemas.cart import AddToCartRequest
from app.services import cart as cart_service
from app.utils import role_required, transactional, validate_schema
from . import shopper_bp

CART_ACCESS = ["user:manage_cart", "admin"]


@shopper_bp.route("/cart", methods=["POST"])
@role_required(CART_ACCESS)
@validate_schema(AddToCartRequest)
def add_to_cart():
    data: AddToCartRequest = request.validated_data
    user_id = request.user.id
    with transactional("Failed to add to cart"):
        cart_service.add_to_cart(user_id, data.product_id, data.quantity)
    return jsonify({"status": "success", "cart": cart_service.cart_view(user_id)}), 200


@shopper_bp.route("/cart", methods=["GET"])
@role_required(CART_ACCESS)
def view_cart():
    return jsonify({"status": "success", "cart": cart_service.cart_view(request.user.id)}), 200


@shopper_bp.route("/cart/<string:item_id>", methods=["DELETE"])
@role_required(CART_ACCESS)
def remove_item(item_id):
    with transactional("Failed to remove cart item"):
        cart_service.remove_from_cart(request.user.id, item_id)
    return jsonify({"status": "success", "message": "Item removed"}), 200


@shopper_bp.route("/cart", methods=["DELETE"])
@role_required(CART_ACCESS)
def clear_cart():
    with transactional("Failed to clear cart"):
        cart_service.clear_cart(request.user.id)
    return jsonify({"status": "success", "message": "Cart cleared"}), 200
