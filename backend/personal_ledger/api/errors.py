import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..core.errors import LedgerError, StorageUnavailableError, ValidationError
from ..schemas.common import ErrorBody, ErrorOut

logger = logging.getLogger(__name__)

HTTP_ERROR_KINDS = {
    404: "not_found",
    405: "method_not_allowed",
}


def error_response(
    status_code: int,
    kind: str,
    message: str,
    details: list[dict] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = ErrorOut(error=ErrorBody(kind=kind, message=message, details=details))
    return JSONResponse(content=body.model_dump(exclude_none=True), status_code=status_code, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """Render every failure as {"error": {"kind": ..., "message": ...}}."""

    @app.exception_handler(LedgerError)
    async def ledger_error_handler(request: Request, exc: LedgerError):
        if isinstance(exc, StorageUnavailableError):
            logger.error(
                "Request failed: storage unavailable",
                extra={"request_id": getattr(request.state, "request_id", None), "path": request.url.path},
            )
        return error_response(exc.status_code, exc.kind, exc.message)

    # Unknown routes and wrong methods get the same envelope
    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        kind = HTTP_ERROR_KINDS.get(exc.status_code, "http_error")
        return error_response(exc.status_code, kind, str(exc.detail), headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        details = [
            {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg", ""), "type": err.get("type", "")}
            for err in exc.errors()
        ]
        return error_response(
            ValidationError.status_code, ValidationError.kind, "Request validation failed.", details
        )

    # Catch all unhandled exceptions; never leak their text to the client
    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        request_id = getattr(request.state, "request_id", None)
        logger.exception(
            "Unhandled exception",
            extra={"request_id": request_id, "path": request.url.path},
        )
        # Rendered outside the request middleware, so the id is set here
        headers = {"X-Request-ID": request_id} if request_id else None
        return error_response(500, "internal", "Internal server error.", headers=headers)
