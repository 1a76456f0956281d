import copy

import pytest

from roadmaster.db.session import reset_engine
from roadmaster.repositories.project_store import InMemoryProjectStore
from roadmaster.services.construction_service import ConstructionService
from roadmaster.services.project_service import ProjectService
from roadmaster.services.resource_service import ResourceService

SAMPLE_PROJECT = {
    "id": "proj-1",
    "name": "NH-44 Widening",
    "code": "NH44",
    "startDate": "2024-01-01",
    "endDate": "2024-12-31",
    "boq": [
        {"id": "b1", "itemNo": "ITEM-1", "description": "Box culvert concrete", "unit": "cum",
         "quantity": 10, "rate": 100, "completedQuantity": 0},
    ],
    "structures": [
        {
            "id": "s1",
            "name": "Culvert CH 12+400",
            "status": "Not Started",
            "components": [
                {"id": "c1", "name": "Raft", "unit": "cum", "totalQuantity": 10,
                 "completedQuantity": 0, "workLogs": []},
                {"id": "c2", "name": "Walls", "unit": "cum", "totalQuantity": 6,
                 "completedQuantity": 0, "workLogs": []},
            ],
        },
    ],
    "materials": [],
    "inventory": [],
    "agencyMaterials": [],
}


@pytest.fixture
def project():
    return copy.deepcopy(SAMPLE_PROJECT)


@pytest.fixture
def store(project):
    return InMemoryProjectStore([project])


@pytest.fixture
def project_service(store):
    return ProjectService(store)


@pytest.fixture
def construction_service(project_service):
    return ConstructionService(project_service)


@pytest.fixture
def resource_service(project_service):
    return ResourceService(project_service)


@pytest.fixture
def db_url(tmp_path, monkeypatch):
    url = f"sqlite:///{tmp_path / 'roadmaster_test.db'}"
    monkeypatch.setenv("DATABASE_URL", url)
    reset_engine()

    from roadmaster.db.init_db import init_db
    init_db()
    yield url
    reset_engine()


@pytest.fixture
def client(db_url):
    from roadmaster.app_factory import create_app

    app = create_app("testing")
    return app.test_client()
