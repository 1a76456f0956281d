# roadmaster/services/permissions.py
from typing import Any, Optional

from roadmaster.db.enums import UserRole

DELETE_ROLES = (UserRole.ADMIN, UserRole.PROJECT_MANAGER)


def parse_role(role: Any) -> Optional[UserRole]:
    '''UserRole from an enum member or its display value ("Project Manager"); None if unknown.'''
    if isinstance(role, UserRole):
        return role
    if isinstance(role, str):
        text = role.strip()
        for member in UserRole:
            if text in (member.value, member.name):
                return member
    return None


def can_delete(role: Any) -> bool:
    '''Only Admin and Project Manager may delete structures and work logs.'''
    return parse_role(role) in DELETE_ROLES


def require_delete(role: Any, what: str) -> None:
    if not can_delete(role):
        raise PermissionError(f"Only Admin and Project Manager can delete {what}")
