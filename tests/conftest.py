from pathlib import Path
import sys

import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from daycare.main import create_app
from daycare.settings import Settings
from daycare.store import memory_store


@pytest.fixture
def store():
    return memory_store()


@pytest.fixture
def client(store):
    settings = Settings(_env_file=None, DATABASE_URL=None)
    with TestClient(create_app(settings=settings, store=store)) as c:
        yield c


@pytest.fixture
def owner(client):
    resp = client.post("/owner", json={"name": "Ada Owner", "email": "ada@daycare.com", "phoneNumber": "5551234567"})
    assert resp.status_code == 201
    return resp.json()


@pytest.fixture
def guardian(client):
    resp = client.post("/guardians", json={"name": "Grace Parent", "email": "grace@mail.com", "phoneNumber": "5559876543"})
    assert resp.status_code == 201
    return resp.json()


@pytest.fixture
def fee_structure(client, owner):
    resp = client.post("/fee-structure", json={"name": "Monthly", "amount": 100, "ownerId": owner["id"]})
    assert resp.status_code == 201
    return resp.json()


@pytest.fixture
def make_child(client, guardian):
    def _make(name="Kid", birthdate="2021-03-04"):
        resp = client.post("/children", json={"name": name, "birthdate": birthdate, "guardianId": guardian["id"]})
        assert resp.status_code == 201
        return resp.json()

    return _make
