from app.routes import (
    auth_bp,
    catalog_bp,
    shopper_bp,
    admin_bp,
)
import logging


def register_api_v1(app):
    """Register blueprint routes under the API version prefix."""
    app.register_blueprint(auth_bp)
    app.register_blueprint(catalog_bp)
    app.register_blueprint(shopper_bp)
    app.register_blueprint(admin_bp)
    logging.getLogger(__name__).debug("API v1 blueprints registered")
