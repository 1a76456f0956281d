import pytest

from roadmaster.db.enums import UserRole
from roadmaster.repositories.project_store import InMemoryProjectStore
from roadmaster.services.permissions import can_delete, parse_role
from roadmaster.services.project_service import ProjectService
from roadmaster.services.report_service import ReportService
from roadmaster.services.resource_service import material_status


# =========
# Permissions
# =========
@pytest.mark.parametrize("role,allowed", [
    ("Admin", True),
    ("Project Manager", True),
    (UserRole.PROJECT_MANAGER, True),
    ("ADMIN", True),
    ("Site Engineer", False),
    ("Contractor", False),
    ("", False),
    (None, False),
])
def test_can_delete(role, allowed):
    assert can_delete(role) is allowed


def test_parse_role_unknown():
    assert parse_role("Janitor") is None


# =========
# Projects
# =========
def test_create_project_fills_defaults():
    service = ProjectService(InMemoryProjectStore())
    project = service.create_project({"name": "Ring Road", "code": "RR-1"})

    assert project["id"].startswith("proj-")
    assert project["boq"] == []
    assert project["structures"] == []
    assert project["materials"] == []
    assert project["startDate"] == ""
    assert service.get_project(project["id"])["name"] == "Ring Road"


def test_create_project_requires_name():
    with pytest.raises(ValueError):
        ProjectService(InMemoryProjectStore()).create_project({"code": "X"})


def test_load_project_migrates_once(store, project_service):
    store.save_project({
        "id": "legacy",
        "name": "Old project",
        "inventory": [{"itemName": "Bitumen", "unit": "drum", "quantity": 5, "reorderLevel": 10}],
    })

    loaded = project_service.load_project("legacy")
    assert [m["name"] for m in loaded["materials"]] == ["Bitumen"]
    assert store.get_project("legacy")["materials"] == loaded["materials"]

    again = project_service.load_project("legacy")
    assert again["materials"] == loaded["materials"]


def test_missing_project_raises(project_service):
    with pytest.raises(ValueError):
        project_service.load_project("nope")
    with pytest.raises(ValueError):
        project_service.delete_project("nope")


def test_update_project_keeps_id(project_service):
    updated = project_service.update_project("proj-1", {"id": "other", "client": "NHAI"})

    assert updated["id"] == "proj-1"
    assert updated["client"] == "NHAI"
    assert project_service.get_project("proj-1")["client"] == "NHAI"


def test_store_returns_copies(store):
    stored = store.get_project("proj-1")
    stored["name"] = "changed"
    assert store.get_project("proj-1")["name"] == "NH-44 Widening"


def test_list_projects_search(project_service):
    project_service.create_project({"name": "Ring Road", "code": "RR-1"})

    assert len(project_service.list_projects()) == 2
    assert [p["code"] for p in project_service.list_projects("rr-")] == ["RR-1"]


# =========
# Construction
# =========
def test_log_work_persists_both_counters(construction_service, project_service):
    construction_service.log_work(project_id="proj-1", structure_id="s1", component_id="c1",
                                  quantity=5, boq_item_id="b1", remarks="raft pour")
    stored = project_service.get_project("proj-1")

    assert stored["structures"][0]["components"][0]["completedQuantity"] == 5
    assert stored["boq"][0]["completedQuantity"] == 5
    assert stored["structures"][0]["components"][0]["workLogs"][0]["remarks"] == "raft pour"


def test_log_work_rejects_no_op(construction_service):
    with pytest.raises(ValueError):
        construction_service.log_work(project_id="proj-1", structure_id="s1", component_id="zz", quantity=5)


def test_delete_work_log_requires_role(construction_service, project_service):
    project = construction_service.log_work(project_id="proj-1", structure_id="s1", component_id="c1",
                                            quantity=5, boq_item_id="b1")
    log_id = project["structures"][0]["components"][0]["workLogs"][0]["id"]

    with pytest.raises(PermissionError):
        construction_service.delete_work_log(project_id="proj-1", structure_id="s1", component_id="c1",
                                             log_id=log_id, role="Site Engineer")
    assert project_service.get_project("proj-1")["boq"][0]["completedQuantity"] == 5

    construction_service.delete_work_log(project_id="proj-1", structure_id="s1", component_id="c1",
                                         log_id=log_id, role="Admin")
    stored = project_service.get_project("proj-1")
    assert stored["boq"][0]["completedQuantity"] == 0
    assert stored["structures"][0]["components"][0]["workLogs"] == []


def test_create_structure_defaults_and_coercion(construction_service, project_service):
    structure = construction_service.create_structure("proj-1", {
        "name": "Minor bridge",
        "location": "CH 14+200",
        "type": "Minor Bridge",
        "components": [{"name": "Pier", "unit": "cum", "totalQuantity": "12", "completedQuantity": None}],
    })

    assert structure["id"].startswith("str-")
    assert structure["status"] == "Not Started"
    component = structure["components"][0]
    assert component["totalQuantity"] == 12
    assert component["completedQuantity"] == 0
    assert component["workLogs"] == []
    assert component["id"].startswith("comp-")
    assert len(project_service.get_project("proj-1")["structures"]) == 2


def test_create_structure_validation(construction_service):
    with pytest.raises(ValueError):
        construction_service.create_structure("proj-1", {"name": "X", "location": "", "components": [{}]})
    with pytest.raises(ValueError):
        construction_service.create_structure("proj-1", {"name": "X", "location": "Y", "components": []})


def test_update_and_delete_structure(construction_service, project_service):
    updated = construction_service.update_structure("proj-1", "s1", {
        "name": "Culvert renamed",
        "location": "CH 12+400",
        "status": "Completed",
        "components": [{"id": "c1", "name": "Raft", "totalQuantity": 10, "completedQuantity": 10}],
    })
    assert updated["id"] == "s1"
    assert project_service.get_project("proj-1")["structures"][0]["name"] == "Culvert renamed"

    with pytest.raises(PermissionError):
        construction_service.delete_structure("proj-1", "s1", "Contractor")
    construction_service.delete_structure("proj-1", "s1", "Project Manager")
    assert project_service.get_project("proj-1")["structures"] == []

    with pytest.raises(ValueError):
        construction_service.delete_structure("proj-1", "s1", "Admin")


def test_save_and_delete_template(construction_service, project_service):
    template = construction_service.save_template(
        "proj-1", name="Box culvert 2x2", structure_type="Box Culvert",
        components=[{"name": "Raft", "unit": "cum", "totalQuantity": 8}],
    )
    assert template["id"].startswith("tmpl-")
    assert project_service.get_project("proj-1")["structureTemplates"][0]["name"] == "Box culvert 2x2"

    with pytest.raises(ValueError):
        construction_service.save_template("proj-1", name="", structure_type="Box Culvert", components=[{}])

    construction_service.delete_template("proj-1", template["id"], UserRole.ADMIN)
    assert project_service.get_project("proj-1")["structureTemplates"] == []


# =========
# Resources
# =========
def test_add_boq_item_numbering(resource_service):
    first = resource_service.add_boq_item("proj-1", {"description": "Earthwork", "quantity": 100, "rate": 2.5})
    second = resource_service.add_boq_item("proj-1", {"description": "GSB", "quantity": 10, "rate": 4, "itemNo": "2.01"})

    assert first["id"].startswith("boq-")
    assert first["itemNo"] == "ITEM-2"
    assert first["amount"] == 250
    assert first["completedQuantity"] == 0
    assert first["unit"] == "unit"
    assert second["itemNo"] == "2.01"
    assert first["id"] != second["id"]


def test_add_boq_item_validation(resource_service):
    with pytest.raises(ValueError):
        resource_service.add_boq_item("proj-1", {"description": "", "quantity": 1, "rate": 1})


def test_edit_and_delete_boq_item(resource_service, project_service):
    item = resource_service.edit_boq_item("proj-1", "b1", {"rate": "120"})
    assert item["rate"] == 120
    assert item["amount"] == 1200

    resource_service.delete_boq_item("proj-1", "b1")
    assert project_service.get_project("proj-1")["boq"] == []
    with pytest.raises(ValueError):
        resource_service.delete_boq_item("proj-1", "b1")


def test_edit_boq_item_keeps_ledger_total(construction_service, resource_service, project_service):
    construction_service.log_work(project_id="proj-1", structure_id="s1", component_id="c1",
                                  quantity=5, boq_item_id="b1")

    item = resource_service.edit_boq_item("proj-1", "b1", {"completedQuantity": 9, "quantity": 12})

    assert item["completedQuantity"] == 5
    assert item["quantity"] == 12
    assert project_service.get_project("proj-1")["boq"][0]["completedQuantity"] == 5


def test_log_work_uses_component_boq_link(store, construction_service, project_service):
    project = store.get_project("proj-1")
    project["structures"][0]["components"][0]["boqItemId"] = "b1"
    store.save_project(project)

    stored = construction_service.log_work(project_id="proj-1", structure_id="s1", component_id="c1", quantity=5)

    assert stored["boq"][0]["completedQuantity"] == 5
    assert stored["structures"][0]["components"][0]["workLogs"][0]["boqItemId"] == "b1"


@pytest.mark.parametrize("available,reorder_level,expected", [
    (0, 10, "Out of Stock"),
    (10, 10, "Low Stock"),
    (11, 10, "Available"),
    (5, None, "Low Stock"),
])
def test_material_status(available, reorder_level, expected):
    assert material_status(available, reorder_level) == expected


def test_save_material_derives_fields(resource_service, project_service):
    material = resource_service.save_material("proj-1", {
        "name": "Cement", "unit": "bag", "quantity": 40, "unitCost": 350, "reorderLevel": 50,
    })
    assert material["totalValue"] == 14000
    assert material["availableQuantity"] == 40
    assert material["status"] == "Low Stock"
    assert material["supplierId"] is None

    updated = resource_service.save_material("proj-1", {
        "name": "Cement", "unit": "bag", "quantity": 100, "availableQuantity": 0,
    }, material["id"])
    assert updated["id"] == material["id"]
    assert updated["unitCost"] == 350
    assert updated["totalValue"] == 35000
    assert updated["status"] == "Out of Stock"
    assert len(project_service.get_project("proj-1")["materials"]) == 1


def test_save_material_validation(resource_service):
    with pytest.raises(ValueError):
        resource_service.save_material("proj-1", {"name": "Cement", "unit": ""})
    with pytest.raises(ValueError):
        resource_service.save_material("proj-1", {"name": "Cement", "unit": "bag"}, "mat-missing")


def test_supplier_rate_history(resource_service):
    material = resource_service.save_material("proj-1", {"name": "Steel", "unit": "t", "quantity": 5})
    resource_service.record_supplier_rate("proj-1", material["id"], supplier_id="ag1", rate=61000)
    updated = resource_service.record_supplier_rate("proj-1", material["id"], supplier_id="ag2", rate=60500)

    assert [r["rate"] for r in updated["rateHistory"]] == [61000, 60500]
    assert updated["supplierId"] == "ag2"
    assert updated["supplierRate"] == 60500

    with pytest.raises(ValueError):
        resource_service.record_supplier_rate("proj-1", material["id"], supplier_id="ag1", rate=0)


def test_delete_material(resource_service, project_service):
    material = resource_service.save_material("proj-1", {"name": "Steel", "unit": "t"})
    resource_service.delete_material("proj-1", material["id"])
    assert project_service.get_project("proj-1")["materials"] == []


# =========
# Report
# =========
def test_progress_report_rows(project):
    project["structures"][0]["components"][0]["completedQuantity"] = 5
    project["boq"][0]["completedQuantity"] = 5

    df = ReportService().generate_df_report(project, now="2024-07-01")
    cells = df.fillna("").values.tolist()

    assert ["Project", "NH-44 Widening"] == cells[1][:2]
    assert ["Physical progress (%)", 50] == cells[4][:2]
    assert any(row[0] == "Culvert CH 12+400" and row[5] == 31 for row in cells)
    assert any(row[1] == "Raft" and row[5] == 50.0 for row in cells)
    assert cells[-1][0] == "Total"
    assert cells[-1][6] == 1000
    assert cells[-1][7] == 500


def test_export_xlsx(project):
    service = ReportService()
    output = service.export_xlsx(service.generate_df_report(project))
    assert output.read(2) == b"PK"
