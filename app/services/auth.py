import logging

from werkzeug.security import check_password_hash, generate_password_hash

from models import db
from models.user import User
from app.services.exceptions import ConflictError, InvalidCredentialsError

logger = logging.getLogger(__name__)


def register_user(email: str, password: str, full_name: str) -> User:
    email = email.strip().lower()
    if User.query.filter_by(email=email).first():
        raise ConflictError("user already exists with this email")
    user = User(
        email=email,
        password_hash=generate_password_hash(password),
        full_name=full_name,
        role="user",
    )
    db.session.add(user)
    db.session.flush()
    logger.info("user %s registered", user.id)
    return user


def authenticate(email: str, password: str) -> User:
    user = User.query.filter_by(email=email.strip().lower()).first()
    if not user or not check_password_hash(user.password_hash, password):
        raise InvalidCredentialsError()
    return user


__all__ = ["register_user", "authenticate"]
