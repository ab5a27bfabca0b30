"""Maps integrity layer errors to JSON error responses."""

from fastapi import Request
from fastapi.responses import JSONResponse

from server.models.responses import ErrorResponse
from shared.errors.IntegrityError import IntegrityError


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    """Answer with the error's status code and its kind as the error name.

    Args:
        request (Request): The request that failed.
        exc (IntegrityError): The raised integrity error.

    Returns:
        JSONResponse: An ErrorResponse body.
    """
    body = ErrorResponse(error=type(exc).__name__, detail=exc.message, collection=exc.collection)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())
