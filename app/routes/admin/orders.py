from flask import request, jsonify, current_app
from app.schemas.orders import UpdateOrderStatusRequest
from app.services import order_service
from app.tasks.notifications import notify_order_status
from app.utils import page_payload, transactional, validate_schema
from . import admin_bp


@admin_bp.route("/orders", methods=["GET"])
def list_orders():
    orders, total, page, size = order_service.list_all_orders(
        page=request.args.get("page", 1),
        size=request.args.get("size", 20),
    )
    payload = page_payload([o.to_dict() for o in orders], page, size, total)
    return jsonify({"status": "success", **payload}), 200


@admin_bp.route("/orders/<string:order_id>", methods=["PATCH"])
@validate_schema(UpdateOrderStatusRequest)
def update_order_status(order_id):
    new_status = request.validated_data.status
    with transactional("Failed to update order status"):
        order = order_service.update_order_status(order_id, new_status)
        args = (order.user_id, order.id, order.status)
    if current_app.config.get("TESTING"):
        notify_order_status(*args)
    else:
        notify_order_status.delay(*args)
    return jsonify({"status": "success", "order": order.to_dict()}), 200
