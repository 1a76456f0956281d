# roadmaster/repositories/project_store.py
import copy
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import desc, or_
from sqlalchemy.orm import Session

from roadmaster.models.project import ProjectRecord


class ProjectStore(ABC):
    """
    Persistence port for project documents.

    Documents go in and come out as plain dicts; stores never share a dict
    with their caller. Saving is replace-on-write (last write wins).
    """

    @abstractmethod
    def list_projects(self, search: Optional[str] = None) -> List[Dict[str, Any]]:
        ...

    @abstractmethod
    def get_project(self, project_id: str) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    def save_project(self, project: Mapping[str, Any]) -> Dict[str, Any]:
        ...

    @abstractmethod
    def delete_project(self, project_id: str) -> bool:
        ...


class SqlAlchemyProjectStore(ProjectStore):
    '''
    One ProjectRecord row per project. The caller owns the transaction
    (commit / rollback), same as every other service on a Session.
    '''

    def __init__(self, db: Session):
        self.db = db

    def list_projects(self, search: Optional[str] = None) -> List[Dict[str, Any]]:
        query = self.db.query(ProjectRecord)
        search_str = (search or "").strip()
        if search_str:
            query = query.filter(
                or_(
                    ProjectRecord.name.contains(search_str),
                    (ProjectRecord.code.isnot(None)) & (ProjectRecord.code.contains(search_str)),
                )
            )
        return [copy.deepcopy(row.document) for row in query.order_by(desc(ProjectRecord.updated_at)).all()]

    def get_project(self, project_id: str) -> Optional[Dict[str, Any]]:
        row = self.db.get(ProjectRecord, project_id)
        return copy.deepcopy(row.document) if row else None

    def save_project(self, project: Mapping[str, Any]) -> Dict[str, Any]:
        project_id = project.get("id")
        if not project_id:
            raise ValueError("Project document has no id")

        document = copy.deepcopy(dict(project))
        row = self.db.get(ProjectRecord, project_id)
        if row is None:
            row = ProjectRecord(id=project_id, document=document)
            self.db.add(row)
        else:
            # new object so the JSON column is flagged dirty
            row.document = document
        row.name = document.get("name") or ""
        row.code = document.get("code")
        self.db.flush()
        return copy.deepcopy(document)

    def delete_project(self, project_id: str) -> bool:
        row = self.db.get(ProjectRecord, project_id)
        if row is None:
            return False
        self.db.delete(row)
        self.db.flush()
        return True


class InMemoryProjectStore(ProjectStore):
    '''Dict-backed store; each instance holds its own projects.'''

    def __init__(self, projects: Optional[List[Mapping[str, Any]]] = None):
        self._projects: Dict[str, Dict[str, Any]] = {}
        for project in projects or []:
            self.save_project(project)

    def list_projects(self, search: Optional[str] = None) -> List[Dict[str, Any]]:
        search_str = (search or "").strip().lower()
        projects = list(self._projects.values())
        if search_str:
            projects = [
                p for p in projects
                if search_str in str(p.get("name") or "").lower()
                or search_str in str(p.get("code") or "").lower()
            ]
        return [copy.deepcopy(p) for p in projects]

    def get_project(self, project_id: str) -> Optional[Dict[str, Any]]:
        project = self._projects.get(project_id)
        return copy.deepcopy(project) if project is not None else None

    def save_project(self, project: Mapping[str, Any]) -> Dict[str, Any]:
        project_id = project.get("id")
        if not project_id:
            raise ValueError("Project document has no id")
        self._projects[project_id] = copy.deepcopy(dict(project))
        return copy.deepcopy(self._projects[project_id])

    def delete_project(self, project_id: str) -> bool:
        return self._projects.pop(project_id, None) is not None
