# conftest.py

import os

import pytest
from werkzeug.security import generate_password_hash

# app.py picks its config classes from FLASK_ENV at import time
os.environ["FLASK_ENV"] = "testing"

from app import app as flask_app  # noqa: E402
from flask_app.importer import init_importer  # noqa: E402
from flask_app.models import Category, Client, Lab, Product, db  # noqa: E402


@pytest.fixture(scope="function")
def app():
    """Test application with a fresh schema for every test"""
    flask_app.config.update(
        {
            "TESTING": True,
            "SECRET_KEY": "test-secret-key-for-testing-only",
            "ENABLE_FILE_LOGGING": False,
            "ENABLE_CONSOLE_LOGGING": False,
            "IMPORTER_ENABLED": True,
            "IMPORTER_COMMIT_CHUNK_SIZE": 500,
            "IMPORTER_MAX_BATCH_ROWS": 20000,
            "CLIENT_PASSWORD_HASH_METHOD": "pbkdf2:sha256:1000",
            "PRODUCT_FILTERED_LAB": "BAJA",
            "MONITORING_ENABLED": False,
        }
    )
    init_importer(flask_app)

    with flask_app.app_context():
        db.drop_all()
        db.create_all()
        yield flask_app
        db.session.remove()
        db.drop_all()


@pytest.fixture(autouse=True)
def app_context(app):
    """Every test runs inside an app context"""
    with app.app_context():
        yield


@pytest.fixture
def client(app):
    """HTTP client against the test app"""
    return app.test_client()


@pytest.fixture
def runner(app):
    """Click runner for the `flask importer` commands"""
    return app.test_cli_runner()


@pytest.fixture
def client_factory(app):
    """Persist a client account with sensible defaults"""

    def _factory(cod_client="ABC123", identiftri="20123456783", razon_soci="ACME SA", **overrides):
        values = {
            "cod_client": cod_client,
            "identiftri": identiftri,
            "razon_soci": razon_soci,
            "username": identiftri,
            "password_hash": generate_password_hash(identiftri, method="pbkdf2:sha256:1000"),
        }
        values.update(overrides)
        record = Client(**values)
        db.session.add(record)
        db.session.commit()
        return record

    return _factory


@pytest.fixture
def lab_factory(app):
    def _factory(name="BAGO"):
        lab = Lab(name=name)
        db.session.add(lab)
        db.session.commit()
        return lab

    return _factory


@pytest.fixture
def category_factory(app):
    def _factory(name="ANALGESICOS"):
        category = Category(name=name)
        db.session.add(category)
        db.session.commit()
        return category

    return _factory


@pytest.fixture
def product_factory(app, lab_factory):
    """Persist a product; creates its laboratory when none is given"""

    def _factory(code="P001", desc="IBUPROFENO 400MG", lab=None, **overrides):
        lab = lab or Lab.query.filter_by(name="BAGO").first() or lab_factory()
        values = {
            "code": code,
            "desc": desc,
            "lab_id": lab.id,
            "medinor_price": 80.0,
            "public_price": 100.0,
            "price": 90.0,
        }
        values.update(overrides)
        product = Product(**values)
        db.session.add(product)
        db.session.commit()
        return product

    return _factory
