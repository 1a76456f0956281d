# roadmaster/services/project_service.py
from typing import Any, Dict, List, Mapping, Optional

from roadmaster.logger import get_logger
from roadmaster.repositories.project_store import ProjectStore
from roadmaster.services.material_migration import prepare_project_with_materials
from roadmaster.utils.values import generate_id

logger = get_logger(__name__)

# collections every project document starts with
PROJECT_COLLECTIONS = (
    "boq", "rfis", "labTests", "schedule", "inventory", "inventoryTransactions",
    "vehicles", "vehicleLogs", "documents", "dailyReports", "ncrs",
    "contractBills", "measurementSheets", "structures", "structureTemplates",
    "agencies", "agencyPayments", "agencyMaterials", "agencyBills",
    "subcontractorBills", "subcontractorPayments", "purchaseOrders",
    "materials", "milestones", "comments",
)

PROJECT_TEXT_FIELDS = ("name", "code", "location", "contractor", "client", "startDate", "endDate")


class ProjectService:
    """
    Project document lifecycle.

    Every write goes through on_project_update(), which replaces the stored
    document as a whole. Loading runs the one-time material migration.
    ProjectService never edits structures / BOQ / materials itself.
    """

    def __init__(self, store: ProjectStore):
        self.store = store

    def create_project(self, data: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        '''
        Create a project, filling every missing field with its default.

        :param data: partial project document (id optional)
        :type data: Optional[Mapping[str, Any]]
        :return: the stored project document
        :rtype: Dict[str, Any]
        '''
        data = dict(data or {})
        project: Dict[str, Any] = {"id": data.get("id") or generate_id("proj", unique_suffix=True)}
        for field in PROJECT_TEXT_FIELDS:
            project[field] = data.get(field) or ""
        for collection in PROJECT_COLLECTIONS:
            value = data.get(collection)
            project[collection] = list(value) if isinstance(value, list) else []

        # keep anything else the caller sent
        for key, value in data.items():
            project.setdefault(key, value)

        if not str(project["name"]).strip():
            raise ValueError("Project name is required")

        saved = self.store.save_project(project)
        logger.info("Project %s created (%s)", saved["id"], saved["name"])
        return saved

    def get_project(self, project_id: str) -> Dict[str, Any]:
        '''Stored document without migration; raises ValueError if missing.'''
        project = self.store.get_project(project_id)
        if project is None:
            raise ValueError("Project not found")
        return project

    def load_project(self, project_id: str) -> Dict[str, Any]:
        '''
        Load a project for use, folding legacy material collections into
        `materials` the first time. A migrated document is written back so
        the migration runs once.

        :param project_id: project id
        :type project_id: str
        :return: project document ready for the construction / resource services
        :rtype: Dict[str, Any]
        '''
        project = self.get_project(project_id)
        prepared = prepare_project_with_materials(project)
        if prepared is not project and prepared.get("materials"):
            logger.info("Project %s: legacy materials migrated on load", project_id)
            return self.on_project_update(prepared)
        return dict(prepared)

    def list_projects(self, search: Optional[str] = None) -> List[Dict[str, Any]]:
        return self.store.list_projects(search)

    def on_project_update(self, project: Mapping[str, Any]) -> Dict[str, Any]:
        '''
        Persist a whole new project document (last write wins).

        :param project: complete project document produced by a service
        :type project: Mapping[str, Any]
        :return: stored copy
        :rtype: Dict[str, Any]
        '''
        if not project.get("id"):
            raise ValueError("Project document has no id")
        saved = self.store.save_project(project)
        logger.info("Project %s saved", saved["id"])
        return saved

    def update_project(self, project_id: str, changes: Mapping[str, Any]) -> Dict[str, Any]:
        '''
        Merge top-level fields into a project. The id cannot be changed.

        :param project_id: project to update
        :param changes: top-level fields to overwrite
        :return: the stored project document
        '''
        project = self.get_project(project_id)
        if not changes:
            return project  # nothing to update

        updated = {**project, **dict(changes), "id": project_id}
        if not str(updated.get("name") or "").strip():
            raise ValueError("Project name is required")
        return self.on_project_update(updated)

    def delete_project(self, project_id: str) -> None:
        if not self.store.delete_project(project_id):
            raise ValueError("Project not found")
        logger.info("Project %s deleted", project_id)
