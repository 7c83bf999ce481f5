from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fieldday.services.code_space import LETTERS, MAX_NUMBER


class ProjectCreate(BaseModel):
    name: str
    contributors: list[str] = []
    administrators: list[str] = []


class ProjectPatch(BaseModel):
    name: Optional[str] = None
    contributors: Optional[list[str]] = None
    administrators: Optional[list[str]] = None


class ColumnCreate(BaseModel):
    # Added columns always go last; position changes go through the save endpoint.
    model_config = ConfigDict(extra="forbid")

    name: str
    data_type: str = "text"
    required_field: bool = False
    identifier_domain: bool = False
    entry_options: list[str] = []


class TabColumnCreate(ColumnCreate):
    order: Optional[int] = None


class TabCreate(BaseModel):
    tab_name: str
    generate_unique_identifier: bool = False
    identifier_max_letter: Optional[str] = None
    identifier_max_number: Optional[int] = None
    unwanted_codes: list[str] = []
    utilize_unwanted: bool = False
    columns: list[TabColumnCreate] = []

    @field_validator("identifier_max_letter")
    @classmethod
    def validate_max_letter(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not str(value).strip():
            return None
        normalized = str(value).strip().upper()
        if normalized not in LETTERS or len(normalized) != 1:
            raise ValueError(f"identifier_max_letter must be one of {LETTERS[0]}..{LETTERS[-1]}")
        return normalized

    @field_validator("identifier_max_number")
    @classmethod
    def validate_max_number(cls, value: Optional[int]) -> Optional[int]:
        if value is None:
            return None
        if not 1 <= int(value) <= MAX_NUMBER:
            raise ValueError(f"identifier_max_number must be between 1 and {MAX_NUMBER}")
        return int(value)


class TabPatch(BaseModel):
    tab_name: Optional[str] = None
    unwanted_codes: Optional[list[str]] = None
    utilize_unwanted: Optional[bool] = None


class ColumnChange(BaseModel):
    column_id: str
    name: Optional[str] = None
    order: Optional[Any] = None
    data_type: Optional[str] = None
    required_field: Optional[bool] = None
    identifier_domain: Optional[bool] = None
    entry_options: Optional[list[str]] = None


class ColumnSaveRequest(BaseModel):
    changes: list[ColumnChange] = []
    deletions: list[str] = []
    expected_version: Optional[int] = Field(default=None, ge=1)


class EntryCreate(BaseModel):
    entry_data: dict[str, Any] = {}


class EntryPatch(BaseModel):
    entry_data: dict[str, Any]


class IdentifierRequest(BaseModel):
    desired_id: Optional[str] = None
    entry_data: dict[str, Any] = {}
