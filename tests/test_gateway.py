"""ProductGateway against a real in-memory SQLite database."""

import pytest

from products_api.db import Database
from products_api.errors import DatabaseError
from products_api.gateway import ProductGateway


@pytest.fixture
def database(tmp_path):
    db = Database(f"sqlite:///{tmp_path / 'products.db'}")
    db.init()
    yield db
    db.dispose()


@pytest.fixture
def products(database):
    with database.session() as s:
        yield ProductGateway(s)


def test_create_defaults_availability(products):
    p = products.create({"name": "Mouse", "price": 50.0})
    assert p.id is not None
    assert p.availability is True


def test_find_by_pk(products):
    p = products.create({"name": "Mouse", "price": 50.0})
    assert products.find_by_pk(p.id).name == "Mouse"
    assert products.find_by_pk(p.id + 1) is None


def test_find_all_orders_by_id(products):
    ids = [products.create({"name": n, "price": 1.0}).id for n in ("a", "b", "c")]
    assert [p.id for p in products.find_all()] == ids


def test_update_persists_across_sessions(database, products):
    p = products.create({"name": "Mouse", "price": 50.0})
    products.update(p, {"price": 75.0, "availability": False})

    with database.session() as other:
        stored = ProductGateway(other).find_by_pk(p.id)
        assert stored.price == 75.0
        assert stored.availability is False
        assert stored.name == "Mouse"


def test_destroy(products):
    p = products.create({"name": "Mouse", "price": 50.0})
    products.destroy(p)
    assert products.find_by_pk(p.id) is None


def test_non_positive_price_is_refused_by_the_table(products):
    with pytest.raises(DatabaseError) as exc:
        products.create({"name": "Mouse", "price": -1.0})
    assert exc.value.operation == "create"
    # the session is usable again after the rollback
    assert products.find_all() == []


def test_init_is_idempotent(database):
    database.init()
    assert database.ping() is True
