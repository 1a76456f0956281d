BASE = "/api/projects/"


def _create_project(client, **fields):
    payload = {"name": "NH-44 Widening", "code": "NH44", **fields}
    response = client.post(BASE, json=payload)
    assert response.status_code == 201
    return response.get_json()


def _seed_structure_and_boq(client, project_id):
    boq = client.post(f"{BASE}{project_id}/boq", json={
        "description": "Box culvert concrete", "unit": "cum", "quantity": 10, "rate": 100,
    })
    assert boq.status_code == 201

    structure = client.post(f"{BASE}{project_id}/structures", json={
        "name": "Culvert CH 12+400",
        "location": "CH 12+400",
        "type": "Box Culvert",
        "components": [{"id": "c1", "name": "Raft", "unit": "cum", "totalQuantity": 10}],
    })
    assert structure.status_code == 201
    return structure.get_json()["id"], boq.get_json()["id"]


def test_project_crud(client):
    project = _create_project(client)
    project_id = project["id"]

    listing = client.get(BASE).get_json()
    assert [p["id"] for p in listing] == [project_id]
    assert client.get(BASE, query_string={"search": "NH44"}).get_json()[0]["id"] == project_id
    assert client.get(BASE, query_string={"search": "nothing"}).get_json() == []

    updated = client.put(f"{BASE}{project_id}", json={"client": "NHAI"})
    assert updated.status_code == 200
    assert client.get(f"{BASE}{project_id}").get_json()["client"] == "NHAI"

    assert client.delete(f"{BASE}{project_id}").status_code == 200
    assert client.get(f"{BASE}{project_id}").status_code == 404


def test_create_project_validation(client):
    assert client.post(BASE, json={"code": "X"}).status_code == 400
    assert client.post(BASE, data="not json", content_type="text/plain").status_code == 400


def test_unknown_project_is_404(client):
    response = client.get(f"{BASE}proj-missing")
    assert response.status_code == 404
    assert "error" in response.get_json()


def test_work_log_flow(client):
    project_id = _create_project(client)["id"]
    structure_id, boq_id = _seed_structure_and_boq(client, project_id)

    response = client.post(f"{BASE}{project_id}/work-logs", json={
        "structureId": structure_id, "componentId": "c1", "quantity": 5, "boqItemId": boq_id,
    })
    assert response.status_code == 201
    log_id = response.get_json()["structures"][0]["components"][0]["workLogs"][0]["id"]

    progress = client.get(f"{BASE}{project_id}/progress").get_json()
    assert progress["physical_progress"] == 50
    assert progress["structures"][0]["progress"] == 50
    assert progress["structures"][0]["status"] == "In Progress"

    log_url = f"{BASE}{project_id}/structures/{structure_id}/components/c1/work-logs/{log_id}"
    denied = client.delete(log_url, headers={"X-User-Role": "Site Engineer"})
    assert denied.status_code == 403
    assert client.get(f"{BASE}{project_id}/progress").get_json()["physical_progress"] == 50

    allowed = client.delete(log_url, headers={"X-User-Role": "Admin"})
    assert allowed.status_code == 200
    progress = client.get(f"{BASE}{project_id}/progress").get_json()
    assert progress["physical_progress"] == 0
    assert progress["structures"][0]["progress"] == 0

    assert client.delete(log_url, headers={"X-User-Role": "Admin"}).status_code == 404


def test_work_log_validation(client):
    project_id = _create_project(client)["id"]
    structure_id, _ = _seed_structure_and_boq(client, project_id)

    zero = client.post(f"{BASE}{project_id}/work-logs", json={
        "structureId": structure_id, "componentId": "c1", "quantity": 0,
    })
    assert zero.status_code == 400

    unknown = client.post(f"{BASE}{project_id}/work-logs", json={
        "structureId": structure_id, "componentId": "nope", "quantity": 2,
    })
    assert unknown.status_code == 404


def test_structure_delete_requires_role(client):
    project_id = _create_project(client)["id"]
    structure_id, _ = _seed_structure_and_boq(client, project_id)
    url = f"{BASE}{project_id}/structures/{structure_id}"

    assert client.delete(url).status_code == 403
    assert client.delete(url, headers={"X-User-Role": "Project Manager"}).status_code == 200
    assert client.get(f"{BASE}{project_id}").get_json()["structures"] == []


def test_materials_endpoints(client):
    project_id = _create_project(client)["id"]

    created = client.post(f"{BASE}{project_id}/materials", json={
        "name": "Cement", "unit": "bag", "quantity": 40, "unitCost": 350, "reorderLevel": 50,
        "transportMode": "Road",
    })
    assert created.status_code == 201
    material = created.get_json()
    assert material["status"] == "Low Stock"
    assert material["totalValue"] == 14000
    assert material["transportMode"] == "Road"

    rate = client.post(f"{BASE}{project_id}/materials/{material['id']}/rates", json={
        "supplierId": "ag1", "rate": 340,
    })
    assert rate.status_code == 201
    assert rate.get_json()["supplierRate"] == 340

    assert client.post(f"{BASE}{project_id}/materials", json={"name": "Sand"}).status_code == 400

    progress = client.get(f"{BASE}{project_id}/progress").get_json()
    assert progress["materials"]["total_materials"] == 1
    assert progress["materials"]["low_stock"] == 1


def test_legacy_materials_are_migrated_on_load(client):
    project_id = _create_project(client, inventory=[
        {"id": "i1", "itemName": "Bitumen", "unit": "drum", "quantity": 5, "reorderLevel": 10},
    ])["id"]

    loaded = client.get(f"{BASE}{project_id}").get_json()
    assert [m["name"] for m in loaded["materials"]] == ["Bitumen"]
    assert loaded["materials"][0]["tags"] == ["migrated-from-inventory"]


def test_report_export(client):
    project_id = _create_project(client)["id"]
    _seed_structure_and_boq(client, project_id)

    response = client.get(f"{BASE}{project_id}/report")
    assert response.status_code == 200
    assert response.mimetype == "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    assert response.data[:2] == b"PK"


def test_portfolio(client):
    _create_project(client)
    response = client.get(f"{BASE}portfolio")
    assert response.status_code == 200
    assert set(response.get_json()) == {"physical_progress", "time_progress"}


def test_work_log_on_linked_component_credits_boq(client):
    project_id = _create_project(client)["id"]
    boq_id = client.post(f"{BASE}{project_id}/boq", json={
        "description": "Box culvert concrete", "unit": "cum", "quantity": 10, "rate": 100,
    }).get_json()["id"]
    structure_id = client.post(f"{BASE}{project_id}/structures", json={
        "name": "Culvert CH 12+400",
        "location": "CH 12+400",
        "components": [{"id": "c1", "name": "Raft", "unit": "cum", "totalQuantity": 10, "boqItemId": boq_id}],
    }).get_json()["id"]

    response = client.post(f"{BASE}{project_id}/work-logs", json={
        "structureId": structure_id, "componentId": "c1", "quantity": 5,
    })
    assert response.status_code == 201

    project = client.get(f"{BASE}{project_id}").get_json()
    assert project["structures"][0]["components"][0]["workLogs"][0]["boqItemId"] == boq_id
    assert project["boq"][0]["completedQuantity"] == 5
    assert client.get(f"{BASE}{project_id}/progress").get_json()["physical_progress"] == 50


def test_boq_edit_cannot_overwrite_completed_quantity(client):
    project_id = _create_project(client)["id"]
    structure_id, boq_id = _seed_structure_and_boq(client, project_id)
    client.post(f"{BASE}{project_id}/work-logs", json={
        "structureId": structure_id, "componentId": "c1", "quantity": 5, "boqItemId": boq_id,
    })

    edited = client.put(f"{BASE}{project_id}/boq/{boq_id}", json={"completedQuantity": 9, "rate": 120})
    assert edited.status_code == 200
    assert edited.get_json()["completedQuantity"] == 5
    assert edited.get_json()["amount"] == 1200
