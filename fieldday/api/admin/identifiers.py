from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fieldday.api.admin.common import workspace_or_400
from fieldday.core.deps import ROLE_ADMIN, ROLE_CONTRIBUTOR, require_role
from fieldday.db.session import get_db
from fieldday.schemas.admin import IdentifierRequest
from fieldday.services.document_store import DocumentStore
from fieldday.services.identifiers import generate_entry_identifier
from fieldday.services.notifier import Notifier

router = APIRouter()


@router.post("/generate")
def generate_identifier(
    project_id: str,
    tab_id: str,
    payload: IdentifierRequest,
    db: Session = Depends(get_db),
    admin=Depends(require_role(ROLE_ADMIN, ROLE_CONTRIBUTOR)),
):
    """Preview the identifier a new entry with these values would receive."""
    ctx = workspace_or_400(db, project_id, tab_id, admin)
    notifier = Notifier()
    result = generate_entry_identifier(
        DocumentStore(db, ctx.actor_email),
        ctx,
        desired_id=payload.desired_id,
        entry_data=payload.entry_data,
        notifier=notifier,
    )
    return {"identifier": result.identifier, "status": result.status, "notifications": notifier.messages}
