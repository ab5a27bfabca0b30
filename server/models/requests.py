from typing import Any

from pydantic import BaseModel, Field


class AddRecordRequest(BaseModel):
    fields: dict[str, Any]
    relationship: dict[str, Any] | None = None


class EditRecordRequest(BaseModel):
    fields: dict[str, Any] = Field(min_length=1)


class EditRelationshipRequest(BaseModel):
    relationship: dict[str, Any] = Field(min_length=1)
