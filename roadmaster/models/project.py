# roadmaster/models/project.py
from roadmaster.db.base import Base
from datetime import datetime
from typing import Optional, Dict, Any

from sqlalchemy import String, DateTime, JSON, func
from sqlalchemy.orm import Mapped, mapped_column


class ProjectRecord(Base):
    """
    One persisted project document.

    The whole project (BOQ, structures, materials, ...) lives in `document`
    and is replaced on every write. `name` and `code` are copied out of the
    document for listing and searching only.
    """
    __tablename__ = "projects"

    # =========
    # Identity
    # =========
    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        comment='Project id, same value as document["id"]')

    # =========
    # Listing columns (mirrors of document fields)
    # =========
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default="",
        comment="Project name copied from the document")
    code: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
        comment="Project code copied from the document")

    # =========
    # Payload
    # =========
    document: Mapped[Dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
        comment="Full JSON project document")

    # =========
    # Timestamps
    # =========
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        comment='Creation timestamp')
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
        comment="Last update timestamp",
    )

    def __repr__(self) -> str:
        return f"<ProjectRecord id={self.id} name={self.name}>"
