"""
Pytest configuration and shared fixtures.
"""

import datetime
import os
import tempfile
from pathlib import Path

# Set environment variables BEFORE any imports that might use them
TEST_DATA_DIR = tempfile.mkdtemp()

os.environ["DATA_DIR"] = TEST_DATA_DIR
os.environ["UPLOADS_DIR"] = str(Path(TEST_DATA_DIR) / "uploads")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{Path(TEST_DATA_DIR) / 'test.db'}"
os.environ["WORKBOOK_PATH"] = str(Path(TEST_DATA_DIR) / "fleet.xlsx")
os.environ["WORKBOOK_BACKUPS"] = "false"
os.environ["STORE_BACKEND"] = "workbook"
os.environ["FILE_STORAGE"] = "local"
os.environ["AUTH_USERS"] = "admin:secret,clerk:clerk-pass"
os.environ["PARTNER_NAMES"] = "Partner A,Partner B,Partner C"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest

TODAY = datetime.date(2024, 1, 5)
PARTNERS = ["Partner A", "Partner B", "Partner C"]


@pytest.fixture
def store(tmp_path):
    """Fresh workbook store with the partner set and a fixed clock."""
    from carfleet.sheets.workbook import WorkbookStore

    workbook = WorkbookStore(tmp_path / "fleet.xlsx", today=lambda: TODAY, backup=False)
    workbook.create_workbook(partners=PARTNERS)
    return workbook


@pytest.fixture
def client(store):
    """Test client whose record store is the temporary workbook."""
    from fastapi.testclient import TestClient

    from carfleet.dependencies import get_store
    from carfleet.main import app

    app.dependency_overrides[get_store] = lambda: store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def car_payload():
    return {
        "make": "Toyota",
        "model": "Corolla",
        "year": 2018,
        "color": "White",
        "registrationNumber": "KA-123",
        "purchasePrice": 50000,
        "purchaseDate": "2024-01-01",
        "condition": "Good",
        "sellerName": "Jane Seller",
        "sellerContact": "0700 000 000",
        "additionalCosts": {"transport": 0, "inspection": 0, "other": 0},
        "location": "Main yard",
        "investmentSplit": "0.3,0.4,0.3",
    }


@pytest.fixture
def create_car(client, car_payload):
    """Factory posting a car; keyword arguments override payload fields."""

    def _create(**overrides):
        response = client.post("/api/cars", json={**car_payload, **overrides})
        assert response.status_code == 201, response.text
        return response.json()

    return _create
