import logging

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse

from .application.ports.appointments_repo import StorageError
from .domain.appointments import OperationResult, Outcome

logger = logging.getLogger(__name__)

OUTCOME_STATUS_CODES = {
    Outcome.OK: 200,
    Outcome.NOT_FOUND: 404,
    Outcome.DOCTOR_NOT_FOUND: 404,
    Outcome.SLOT_UNAVAILABLE: 409,
    Outcome.FORBIDDEN: 403,
    Outcome.UNAUTHORIZED: 401,
    Outcome.INVALID: 400,
    Outcome.INVALID_STATE: 400,
    Outcome.INTERNAL: 500,
}

class APIException(HTTPException):
    def __init__(self, status_code: int, detail: str):
        super().__init__(status_code=status_code, detail=detail)

def to_http_exception(result: OperationResult) -> APIException:
    """Translate a failed service result for the HTTP layer"""
    if result.ok:
        raise ValueError("A successful result has no HTTP error")
    return APIException(status_code=OUTCOME_STATUS_CODES[result.outcome], detail=result.message)

def create_error_response(error_message: str) -> dict:
    """Create a standardized error response"""
    return {
        "success": False,
        "data": None,
        "error": error_message
    }

def create_success_response(data) -> dict:
    """Create a standardized success response"""
    return {
        "success": True,
        "data": data,
        "error": None
    }

async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Custom exception handler for HTTPException"""
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.detail)
    )

async def storage_exception_handler(request: Request, exc: StorageError) -> JSONResponse:
    """Storage failures never leak their text to the client"""
    logger.error(f"Storage error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content=create_error_response("An internal error occurred")
    )
