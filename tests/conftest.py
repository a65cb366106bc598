"""
Pytest configuration and fixtures
"""
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Add project root to Python path
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

import main  # noqa: E402
from database import JSONStore  # noqa: E402


@pytest.fixture
def store(tmp_path):
    """A record store writing into a fresh temporary directory"""
    return JSONStore(str(tmp_path / "data"))


@pytest.fixture
def client(store, monkeypatch):
    """Test client whose routes read and write the temporary store"""
    monkeypatch.setattr(main, "db", store)
    return TestClient(main.app)


@pytest.fixture
def register(client):
    """Register a teacher and return (token, teacher)"""
    def _register(email="a@x.com", password="secret-pass", name="Teacher A", department="Maths"):
        response = client.post(
            "/auth/register",
            json={"name": name, "email": email, "password": password, "department": department},
        )
        assert response.status_code == 201, response.text
        data = response.json()
        return data["token"], data["teacher"]
    return _register


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}
