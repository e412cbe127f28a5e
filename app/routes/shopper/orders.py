from flask import request, jsonify, current_app
from flask_limiter.util import get_remote_address
from extensions import limiter
from app.schemas.orders import PlaceOrderRequest
from app.services import order_service
from app.tasks.notifications import notify_order_placed
from app.utils import page_payload, role_required, validate_schema
from . import shopper_bp

ORDER_READ = ["user:view_order", "admin"]


@shopper_bp.route("/orders", methods=["POST"])
@limiter.limit(
    lambda: current_app.config["ORDER_LIMIT_PER_IP"],
    key_func=get_remote_address,
    error_message="Too many orders from this IP",
)
@role_required(["user:place_order", "admin"])
@validate_schema(PlaceOrderRequest)
def place_order():
    """
    Place an order from the caller's cart
    ---
    tags: [Orders]
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required: [shipping_address]
          properties:
            shipping_address: {type: object}
    responses:
      201: {description: Order created with its line items}
      400: {description: Empty cart, insufficient stock or mixed currency}
    """
    data: PlaceOrderRequest = request.validated_data
    user_id = request.user.id
    order = order_service.place_order(user_id, data.shipping_address)

    args = (user_id, order.id, order.total_cents, order.currency)
    if current_app.config.get("TESTING"):
        notify_order_placed(*args)
    else:
        notify_order_placed.delay(*args)

    return jsonify({"status": "success", "message": "Order placed successfully", "order": order.to_dict()}), 201


@shopper_bp.route("/orders", methods=["GET"])
@role_required(ORDER_READ)
def list_orders():
    orders, total, page, size = order_service.list_orders_for_user(
        request.user.id,
        page=request.args.get("page", 1),
        size=request.args.get("size", 20),
    )
    payload = page_payload([o.to_dict() for o in orders], page, size, total)
    return jsonify({"status": "success", **payload}), 200


@shopper_bp.route("/orders/<string:order_id>", methods=["GET"])
@role_required(ORDER_READ)
def get_order(order_id):
    order = order_service.get_order(order_id, request.user.id)
    return jsonify({"status": "success", "order": order.to_dict()}), 200
