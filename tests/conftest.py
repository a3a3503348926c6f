import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from app.core.config import settings
from app.database.connection import Database
from app.main import create_app

TEST_DB_URL = "sqlite:///:memory:"


@pytest.fixture()
def database():
    database = Database(TEST_DB_URL, poolclass=StaticPool)
    database.create_all()
    yield database
    database.drop_all()
    database.dispose()


@pytest.fixture()
def db(database):
    session = database.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def upload_dir(tmp_path):
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture()
def application(database, upload_dir):
    test_settings = settings.model_copy(update={"UPLOAD_DIR": str(upload_dir)})
    return create_app(test_settings, database)


@pytest.fixture()
def client(application):
    return TestClient(application, raise_server_exceptions=False)


@pytest.fixture()
def product_payload():
    def build(item_code="P-100", **overrides):
        payload = {
            "itemCode": item_code,
            "itemDescription": "LED bulb 9W",
            "unit": "Nos",
            "mrp": 120.0,
            "dp": 95.5,
            "nlc": 90.0,
            "percentage": 12.5,
        }
        payload.update(overrides)
        return payload

    return build
