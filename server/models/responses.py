from typing import Any

from pydantic import BaseModel


class RecordsResponse(BaseModel):
    collection: str
    records: list[dict[str, Any]]
    total: int


class RecordResponse(BaseModel):
    collection: str
    record: dict[str, Any]


class FieldValuesResponse(BaseModel):
    collection: str
    field: str
    values: list[Any]


class LatestIdResponse(BaseModel):
    collection: str
    latest_id: int


class MutationResponse(BaseModel):
    collection: str
    record_id: int
    status: str
    updated_fields: int | None = None


class ErrorResponse(BaseModel):
    error: str
    detail: str
    collection: str | None = None
