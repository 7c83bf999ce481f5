from __future__ import annotations

import uuid
from dataclasses import dataclass


@dataclass(frozen=True)
class WorkspaceContext:
    """Project/tab/actor a request works on, passed into each operation."""

    project_id: uuid.UUID
    tab_id: uuid.UUID
    actor_email: str
    role: str = ""

    @classmethod
    def from_admin(cls, project_id: uuid.UUID, tab_id: uuid.UUID, admin: dict) -> "WorkspaceContext":
        email = str(admin.get("email") or "").strip() or "System administrator"
        return cls(project_id=project_id, tab_id=tab_id, actor_email=email, role=str(admin.get("role") or ""))
