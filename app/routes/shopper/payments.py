from flask import request, jsonify
from app.schemas.payments import ChargeRequest
from app.services.payment_service import process_charge
from app.utils import role_required, transactional, validate_schema
from . import shopper_bp


@shopper_bp.route("/payments/charge", methods=["POST"])
@role_required(["user:charge_order", "admin"])
@validate_schema(ChargeRequest)
def charge():
    data: ChargeRequest = request.validated_data
    with transactional("Payment processing failed"):
        result = process_charge(
            request.user.id,
            data.order_id,
            data.payment_method,
            data.payment_details,
        )
    return jsonify(result), 200
