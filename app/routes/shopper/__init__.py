from flask import Blueprint
from app.version import API_PREFIX
from app.utils import auth_required

shopper_bp = Blueprint("shopper", __name__, url_prefix=API_PREFIX)


@shopper_bp.before_request
@auth_required
def _enforce_authenticated_user():
    """Ensure the requester is an authenticated user."""
    return None

from . import cart  # noqa: E402
from . import orders  # noqa: E402
from . import payments  # noqa: E402
