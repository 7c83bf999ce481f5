from fastapi import APIRouter
from fieldday.api.admin import columns, entries, identifiers, projects, tabs

TAB_PREFIX = "/projects/{project_id}/tabs/{tab_id}"

router = APIRouter()
router.include_router(projects.router, prefix="/projects", tags=["AdminProjects"])
router.include_router(tabs.router, prefix="/projects", tags=["AdminTabs"])
router.include_router(columns.router, prefix=f"{TAB_PREFIX}/columns", tags=["AdminColumns"])
router.include_router(entries.router, prefix=f"{TAB_PREFIX}/entries", tags=["AdminEntries"])
router.include_router(identifiers.router, prefix=f"{TAB_PREFIX}/identifiers", tags=["AdminIdentifiers"])
