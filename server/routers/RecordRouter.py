"""Record router: the integrity-checked CRUD surface over the document store."""

from fastapi import APIRouter, Depends, Query, Request

from server.dependencies.auth import verify_api_key
from server.models.requests import AddRecordRequest, EditRecordRequest, EditRelationshipRequest
from server.models.responses import (
    FieldValuesResponse,
    LatestIdResponse,
    MutationResponse,
    RecordResponse,
    RecordsResponse,
)
from services.record_integrity.values import to_json_value

router = APIRouter(prefix="/collections/{collection}", tags=["records"], dependencies=[Depends(verify_api_key)])


@router.get("/records")
async def list_records(request: Request, collection: str) -> RecordsResponse:
    """Return all records of a collection in insertion order."""
    records = await request.app.state.record_service.list_records(collection)
    return RecordsResponse(collection=collection, records=[to_json_value(r) for r in records], total=len(records))


@router.get("/fields/{field}")
async def get_field_values(request: Request, collection: str, field: str) -> FieldValuesResponse:
    """Return one field's value from every record. Fails if any record lacks the field."""
    values = await request.app.state.record_service.get_field_values(collection, field)
    return FieldValuesResponse(collection=collection, field=field, values=[to_json_value(v) for v in values])


@router.get("/latest-id")
async def get_latest_id(request: Request, collection: str) -> LatestIdResponse:
    latest_id = await request.app.state.record_service.get_latest_id(collection)
    return LatestIdResponse(collection=collection, latest_id=latest_id)


@router.get("/search")
async def search_records(
    request: Request,
    collection: str,
    field: str = Query(...),
    query: str = Query(...),
) -> RecordsResponse:
    """Return every record whose field renders equal to the query string."""
    records = await request.app.state.record_service.search_records(collection, field, query)
    return RecordsResponse(collection=collection, records=[to_json_value(r) for r in records], total=len(records))


@router.post("/records", status_code=201)
async def add_record(request: Request, collection: str, body: AddRecordRequest) -> RecordResponse:
    """Validate and insert a record, optionally with relationship fields.

    Args:
        request (Request): FastAPI request (provides app.state.record_service).
        collection (str): The target collection.
        body (AddRecordRequest): Value fields and optional relationship fields.

    Returns:
        RecordResponse: The stored record including its assigned ids.
    """
    record = await request.app.state.record_service.add_record(collection, body.fields, body.relationship)
    return RecordResponse(collection=collection, record=to_json_value(record))


@router.delete("/records/{record_id}")
async def delete_record(request: Request, collection: str, record_id: int) -> MutationResponse:
    await request.app.state.record_service.delete_record(collection, record_id)
    return MutationResponse(collection=collection, record_id=record_id, status="deleted")


@router.patch("/records/{record_id}")
async def edit_record(request: Request, collection: str, record_id: int, body: EditRecordRequest) -> MutationResponse:
    await request.app.state.record_service.edit_record(collection, record_id, body.fields)
    return MutationResponse(collection=collection, record_id=record_id, status="updated", updated_fields=len(body.fields))


@router.patch("/records/{record_id}/relationship")
async def edit_relationship(
    request: Request,
    collection: str,
    record_id: int,
    body: EditRelationshipRequest,
) -> MutationResponse:
    updated = await request.app.state.record_service.edit_relationship(collection, record_id, body.relationship)
    return MutationResponse(collection=collection, record_id=record_id, status="updated", updated_fields=updated)
