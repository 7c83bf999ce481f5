from pydantic import BaseModel
from typing import List, Literal

Dir = Literal["asc", "desc"]

class SortClause(BaseModel):
    field: str
    dir: Dir = "asc"

class Page(BaseModel):
    limit: int = 50
    offset: int = 0

class EntryQuery(BaseModel):
    search: str = ""
    sort: List[SortClause] = []
    page: Page = Page()
    include_deleted: bool = False
