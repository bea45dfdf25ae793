"""
JSON error responses for the API.
"""
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from core.exceptions import CategorizerError, ErrorKind
from core.logger import setup_logger

logger = setup_logger(__name__)

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.INVALID_OPERATION: 400,
    ErrorKind.UNKNOWN_CATEGORY: 400,
    ErrorKind.CLASSIFICATION: 502,
    ErrorKind.LEDGER: 502,
    ErrorKind.TIMEOUT: 504,
    ErrorKind.CONFIGURATION: 500,
}


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(CategorizerError)
    async def categorizer_exc_handler(request: Request, exc: CategorizerError):
        status_code = STATUS_BY_KIND.get(exc.kind, 500)
        logger.warning(
            f"{exc.kind.value} error path={request.url.path} status={status_code}: {exc.message}"
        )
        return JSONResponse(
            status_code=status_code,
            content={"error": exc.message, "kind": exc.kind.value},
        )

    @app.exception_handler(HTTPException)
    async def http_exc_handler(request: Request, exc: HTTPException):
        logger.warning(f"HTTPException path={request.url.path} status={exc.status_code} detail={exc.detail!r}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail) if exc.detail else "HTTP error"},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exc_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"Request validation failed path={request.url.path} errors={exc.errors()}")
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid request body", "details": jsonable_errors(exc)},
        )

    @app.exception_handler(Exception)
    async def unhandled_exc_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error at path={request.url.path}: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error"},
        )


def job_not_found(job_id: str) -> HTTPException:
    return HTTPException(status_code=404, detail=f"Job {job_id} not found")


def jsonable_errors(exc: RequestValidationError):
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]
