from flask_sqlalchemy import SQLAlchemy
import uuid

db = SQLAlchemy()


def new_id() -> str:
    """Opaque primary key shared by every table."""
    return str(uuid.uuid4())


# Re-export common models for convenience
from .user import User  # noqa: F401,E402
from .product import Product  # noqa: F401,E402
from .cart import CartItem  # noqa: F401,E402
from .order import Order, OrderItem  # noqa: F401,E402
