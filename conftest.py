import pytest
from fastapi.testclient import TestClient

from api import create_app
from catalog import Catalog


@pytest.fixture
def db_url(tmp_path, request):
    # A separate database file for every test
    return f"sqlite:///{tmp_path / f'test_{request.node.name}.db'}"


@pytest.fixture
def catalog(db_url):
    catalog = Catalog(db_url)
    yield catalog
    catalog.close()


@pytest.fixture
def client(catalog):
    with TestClient(create_app(catalog)) as test_client:
        yield test_client
