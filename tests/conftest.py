import os
import sys
import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from models import db
from models.product import Product


@pytest.fixture(scope='session')
def app_instance():
    os.environ.setdefault('APP_ENV', 'testing')
    os.environ.setdefault('DATABASE_URL', 'sqlite:///:memory:')
    from app import create_app
    app = create_app()
    app.config.update(
        TESTING=True,
        SQLALCHEMY_TRACK_MODIFICATIONS=False,
    )
    return app


@pytest.fixture(scope='function')
def app(app_instance):
    import extensions
    with app_instance.app_context():
        db.drop_all()
        db.create_all()
        extensions.limiter.reset()
        yield app_instance
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    return app.test_client()


def obtain_token(client, email, role="user"):
    resp = client.post("/__auth/login_stub", json={"email": email, "role": role})
    data = resp.get_json()["data"]
    return data["access"], data["user_id"]


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}


def create_product(sku="SKU-1", name="Widget", price_cents=1000, stock=10, currency="USD", description=""):
    product = Product(
        sku=sku,
        name=name,
        description=description,
        price_cents=price_cents,
        currency=currency,
        stock=stock,
        images=[],
    )
    db.session.add(product)
    db.session.commit()
    return product.id


@pytest.fixture()
def shopper(client):
    token, user_id = obtain_token(client, "shopper@example.com")
    return {"token": token, "user_id": user_id, "headers": auth_header(token)}


@pytest.fixture()
def admin(client):
    token, user_id = obtain_token(client, "admin@example.com", role="admin")
    return {"token": token, "user_id": user_id, "headers": auth_header(token)}
