from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fieldday.api.admin.common import is_project_member, uuid_or_400
from fieldday.core.deps import ROLE_ADMIN, ROLE_CONTRIBUTOR, actor_email, require_role
from fieldday.db.session import get_db
from fieldday.models.project import Project
from fieldday.schemas.admin import ProjectCreate, ProjectPatch

router = APIRouter()


def _project_row(row: Project):
    return {
        "id": str(row.id),
        "name": row.name,
        "contributors": list(row.contributors or []),
        "administrators": list(row.administrators or []),
        "created_at": row.created_at.isoformat() if row.created_at else None,
    }


def _clean_emails(values: list[str]) -> list[str]:
    seen: list[str] = []
    for value in values:
        email = str(value or "").strip().lower()
        if email and email not in seen:
            seen.append(email)
    return seen


@router.get("")
def list_projects(db: Session = Depends(get_db), admin=Depends(require_role(ROLE_ADMIN, ROLE_CONTRIBUTOR))):
    rows = db.query(Project).order_by(Project.name.asc()).all()
    rows = [row for row in rows if is_project_member(row, admin)]
    return {"rows": [_project_row(r) for r in rows], "total": len(rows)}


@router.post("", status_code=201)
def create_project(payload: ProjectCreate, db: Session = Depends(get_db), admin=Depends(require_role(ROLE_ADMIN))):
    name = payload.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail='Field "name" is required')
    email = actor_email(admin).lower()
    administrators = _clean_emails(payload.administrators + [email])
    row = Project(
        name=name,
        contributors=_clean_emails(payload.contributors + administrators),
        administrators=administrators,
        responsible=actor_email(admin),
    )
    try:
        db.add(row)
        db.commit()
        db.refresh(row)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="A project with this name already exists")
    return _project_row(row)


@router.patch("/{project_id}")
def update_project(
    project_id: str,
    payload: ProjectPatch,
    db: Session = Depends(get_db),
    admin=Depends(require_role(ROLE_ADMIN)),
):
    row = db.get(Project, uuid_or_400(project_id, "project_id"))
    if row is None:
        raise HTTPException(status_code=404, detail="Project not found")
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")
    if "name" in changes:
        name = str(changes["name"] or "").strip()
        if not name:
            raise HTTPException(status_code=400, detail='Field "name" cannot be empty')
        row.name = name
    if changes.get("administrators") is not None:
        row.administrators = _clean_emails(changes["administrators"])
    if changes.get("contributors") is not None:
        row.contributors = _clean_emails(changes["contributors"] + list(row.administrators or []))
    row.responsible = actor_email(admin)
    try:
        db.add(row)
        db.commit()
        db.refresh(row)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="A project with this name already exists")
    return _project_row(row)
