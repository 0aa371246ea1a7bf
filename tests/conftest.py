import os

os.environ["ENVIRONMENT"] = "test"
os.environ.pop("DATABASE_URL", None)
os.environ.pop("DATABASE_NAME", None)

import mongomock  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

import auth  # noqa: E402
from database import create_document, get_db  # noqa: E402
from main import app  # noqa: E402
from schemas import Collection, OrderIn, Product  # noqa: E402
from shipping import Governorate  # noqa: E402

PASSWORD = "secret123"


@pytest.fixture()
def db():
    return mongomock.MongoClient()["rahhalah_test"]


@pytest.fixture()
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def super_admin(db):
    return auth.create_admin(db, "owner@rahhalah.com", PASSWORD, role="super_admin")


@pytest.fixture()
def staff_admin(db):
    return auth.create_admin(db, "staff@rahhalah.com", PASSWORD, role="admin")


@pytest.fixture()
def admin_headers(super_admin):
    return {"Authorization": f"Bearer {auth.issue_token(super_admin)}"}


@pytest.fixture()
def staff_headers(staff_admin):
    return {"Authorization": f"Bearer {auth.issue_token(staff_admin)}"}


@pytest.fixture()
def collection_id(db):
    return create_document(db, "collection", Collection(name="Summer Drop", description="Light fabrics"))


@pytest.fixture()
def make_product(db, collection_id):
    def make(title="Oversized Tee", price=100.0, stock=10, **fields):
        product = Product(title=title, description=f"{title} in cotton", collection=collection_id,
                          price=price, stock=stock, sizes=["m", "l"], **fields)
        return create_document(db, "product", product)

    return make


@pytest.fixture()
def order_body():
    """Checkout request body for ``(product_id, quantity)`` pairs."""

    def build(*items, governorate=Governorate.CAIRO.value, **overrides):
        body = {
            "customerName": "Omar Khaled",
            "phone": "01012345678",
            "address": "12 Nile Street, Zamalek",
            "governorate": governorate,
            "items": [{"productId": str(pid), "quantity": qty, "size": "M"} for pid, qty in items],
            "paymentMethod": "cash-on-delivery",
        }
        body.update(overrides)
        return body

    return build


@pytest.fixture()
def order_in(order_body):
    def build(*items, **overrides):
        return OrderIn.model_validate(order_body(*items, **overrides))

    return build
