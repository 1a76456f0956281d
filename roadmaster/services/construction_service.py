# roadmaster/services/construction_service.py
from typing import Any, Dict, List, Mapping, Optional

from roadmaster.db.enums import StructureStatus
from roadmaster.logger import get_logger
from roadmaster.services import work_log_ledger
from roadmaster.services.permissions import require_delete
from roadmaster.services.project_service import ProjectService
from roadmaster.utils.values import generate_id, num, today_iso

logger = get_logger(__name__)

COMPONENT_QUANTITIES = ("totalQuantity", "completedQuantity", "verifiedQuantity")


def build_components(components: Any) -> List[Dict[str, Any]]:
    '''Components with numeric quantities, an id and a workLogs list.'''
    built = []
    for component in components or []:
        if not isinstance(component, Mapping):
            continue
        item = dict(component)
        item["id"] = item.get("id") or generate_id("comp", unique_suffix=True)
        for field in COMPONENT_QUANTITIES:
            item[field] = num(item.get(field))
        item["workLogs"] = list(item.get("workLogs") or [])
        built.append(item)
    return built


def _check_structure(data: Mapping[str, Any]) -> None:
    if not str(data.get("name") or "").strip() or not str(data.get("location") or "").strip():
        raise ValueError("Structure name and location are required")
    if not build_components(data.get("components")):
        raise ValueError("Structure needs at least one component")


class ConstructionService:
    """
    Structures, their components and the work logs recorded against them.

    Each call loads the project, derives a new document and hands it to
    ProjectService.on_project_update().
    """

    def __init__(self, project_service: ProjectService):
        self.project_service = project_service

    # =========
    # Work logs
    # =========
    def log_work(
        self,
        *,
        project_id: str,
        structure_id: str,
        component_id: str,
        quantity: Any,
        boq_item_id: Optional[str] = None,
        **details: Any,
    ) -> Dict[str, Any]:
        '''
        Record executed quantity on a component (and its linked BOQ line).

        :param project_id: project id
        :type project_id: str
        :param structure_id: structure id
        :type structure_id: str
        :param component_id: component id
        :type component_id: str
        :param quantity: executed quantity
        :param boq_item_id: BOQ item to credit
        :type boq_item_id: Optional[str]
        :param details: date / rate / subcontractor_id / remarks / rfi_id / lab_test_id
        :return: stored project document
        :rtype: Dict[str, Any]
        '''
        project = self.project_service.load_project(project_id)
        updated = work_log_ledger.add_work_log(
            project, structure_id, component_id, quantity, boq_item_id, **details
        )
        if updated is project:
            raise ValueError("Work log not recorded: component not found or quantity not positive")
        return self.project_service.on_project_update(updated)

    def delete_work_log(
        self,
        *,
        project_id: str,
        structure_id: str,
        component_id: str,
        log_id: str,
        role: Any,
    ) -> Dict[str, Any]:
        require_delete(role, "work logs")
        project = self.project_service.load_project(project_id)
        updated = work_log_ledger.delete_work_log(project, structure_id, component_id, log_id)
        if updated is project:
            raise ValueError("Work log not found")
        return self.project_service.on_project_update(updated)

    # =========
    # Structures
    # =========
    def create_structure(self, project_id: str, data: Mapping[str, Any]) -> Dict[str, Any]:
        '''
        Add a structure asset. Status defaults to "Not Started" and component
        quantities are coerced to numbers.

        :return: the new structure
        :rtype: Dict[str, Any]
        '''
        _check_structure(data)
        project = self.project_service.load_project(project_id)

        structure = {
            **dict(data),
            "id": generate_id("str", unique_suffix=True),
            "status": data.get("status") or StructureStatus.NOT_STARTED.value,
            "components": build_components(data.get("components")),
        }
        self.project_service.on_project_update({
            **project,
            "structures": list(project.get("structures") or []) + [structure],
        })
        logger.info("Project %s: structure %s created", project_id, structure["id"])
        return structure

    def update_structure(self, project_id: str, structure_id: str, data: Mapping[str, Any]) -> Dict[str, Any]:
        '''Replace a structure's fields, keeping its id.'''
        _check_structure(data)
        project = self.project_service.load_project(project_id)
        structures = list(project.get("structures") or [])

        for index, existing in enumerate(structures):
            if isinstance(existing, Mapping) and existing.get("id") == structure_id:
                break
        else:
            raise ValueError("Structure not found")

        structure = {
            **dict(data),
            "id": structure_id,
            "status": data.get("status") or StructureStatus.NOT_STARTED.value,
            "components": build_components(data.get("components")),
        }
        structures[index] = structure
        self.project_service.on_project_update({**project, "structures": structures})
        logger.info("Project %s: structure %s updated", project_id, structure_id)
        return structure

    def delete_structure(self, project_id: str, structure_id: str, role: Any) -> Dict[str, Any]:
        '''Remove a structure with all its components and work logs.'''
        require_delete(role, "structural assets")
        project = self.project_service.load_project(project_id)
        structures = project.get("structures") or []
        remaining = [s for s in structures if not (isinstance(s, Mapping) and s.get("id") == structure_id)]
        if len(remaining) == len(structures):
            raise ValueError("Structure not found")
        logger.info("Project %s: structure %s deleted", project_id, structure_id)
        return self.project_service.on_project_update({**project, "structures": remaining})

    # =========
    # Templates
    # =========
    def save_template(
        self,
        project_id: str,
        *,
        name: str,
        structure_type: str,
        components: Any,
        description: str = "",
    ) -> Dict[str, Any]:
        if not (name or "").strip():
            raise ValueError("Template name is required")
        if not structure_type:
            raise ValueError("Structure type is required")
        built = build_components(components)
        if not built:
            raise ValueError("Template needs at least one component")

        project = self.project_service.load_project(project_id)
        today = today_iso()
        template = {
            "id": generate_id("tmpl", unique_suffix=True),
            "name": name,
            "type": structure_type,
            "description": description or "",
            "components": built,
            "createdDate": today,
            "updatedDate": today,
        }
        self.project_service.on_project_update({
            **project,
            "structureTemplates": list(project.get("structureTemplates") or []) + [template],
        })
        return template

    def delete_template(self, project_id: str, template_id: str, role: Any) -> Dict[str, Any]:
        require_delete(role, "templates")
        project = self.project_service.load_project(project_id)
        templates = project.get("structureTemplates") or []
        remaining = [t for t in templates if not (isinstance(t, Mapping) and t.get("id") == template_id)]
        if len(remaining) == len(templates):
            raise ValueError("Template not found")
        return self.project_service.on_project_update({**project, "structureTemplates": remaining})
