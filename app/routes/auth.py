from flask import Blueprint, request, jsonify, current_app
from flask_limiter.util import get_remote_address
from extensions import limiter
from models import db
from models.user import User
from app.version import API_PREFIX
from app.schemas.auth import LoginRequest, RefreshRequest, RegisterRequest
from app.services.auth import authenticate, register_user
from app.utils import (
    auth_required,
    create_access_token,
    create_refresh_token,
    decode_token,
    error,
    transactional,
    validate_schema,
    TokenError,
)

auth_bp = Blueprint("auth", __name__, url_prefix=API_PREFIX)


def _token_pair(user):
    return {
        "access_token": create_access_token(user.id, user.role),
        "refresh_token": create_refresh_token(user.id),
        "token_type": "bearer",
        "expires_in": current_app.config["ACCESS_TOKEN_LIFETIME_MIN"] * 60,
    }


@auth_bp.route("/auth/register", methods=["POST"])
@validate_schema(RegisterRequest)
def register():
    data: RegisterRequest = request.validated_data
    with transactional("Registration failed"):
        user = register_user(data.email, data.password, data.full_name)
    return jsonify({"status": "success", "user": user.to_dict()}), 201


@auth_bp.route("/auth/login", methods=["POST"])
@limiter.limit(
    lambda: current_app.config["LOGIN_LIMIT_PER_IP"],
    key_func=get_remote_address,
    error_message="Too many logins from this IP",
)
@validate_schema(LoginRequest)
def login():
    data: LoginRequest = request.validated_data
    user = authenticate(data.email, data.password)
    return jsonify(_token_pair(user)), 200


@auth_bp.route("/auth/refresh", methods=["POST"])
@validate_schema(RefreshRequest)
def refresh_tokens():
    token = request.validated_data.refresh_token or ""
    try:
        payload = decode_token(token, expected_type="refresh")
    except TokenError as e:
        return error(str(e), status=401)

    user = db.session.get(User, payload.get("sub"))
    if not user:
        return error("user not found", status=401)
    return jsonify(_token_pair(user)), 200


@auth_bp.route("/me", methods=["GET"])
@auth_required
def me():
    return jsonify({"status": "success", "user": request.user.to_dict()}), 200
