from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from vatbook.core.exceptions import InvalidAmount, InvalidState, NotFound
from vatbook.logger_config import logger


def _error(message, status_code, error=None, details=None):
    body = {
        "success": False,
        "message": message,
        "status_code": status_code,
    }
    if error:
        body["error"] = error
    if details is not None:
        body["details"] = details
    return JSONResponse(status_code=status_code, content=body)


def register_error_handlers(app: FastAPI):
    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, e: StarletteHTTPException):
        # Handle HTTP (e.g. 404, 400)
        return JSONResponse(
            status_code=e.status_code,
            content={"success": False, "message": e.detail, "status_code": e.status_code, "detail": e.detail},
            headers=getattr(e, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, e: RequestValidationError):
        return _error(
            "Validation failed",
            422,
            error="ValidationError",
            details=[{"loc": list(err.get("loc", [])), "msg": err.get("msg")} for err in e.errors()],
        )

    @app.exception_handler(InvalidState)
    async def handle_invalid_state(request: Request, e: InvalidState):
        return _error(str(e), status.HTTP_409_CONFLICT, error="InvalidState")

    @app.exception_handler(InvalidAmount)
    async def handle_invalid_amount(request: Request, e: InvalidAmount):
        return _error(str(e), status.HTTP_400_BAD_REQUEST, error="InvalidAmount")

    @app.exception_handler(NotFound)
    async def handle_not_found(request: Request, e: NotFound):
        return _error(str(e), status.HTTP_404_NOT_FOUND, error="NotFound")

    @app.exception_handler(Exception)
    async def handle_exception(request: Request, e: Exception):
        # Log the exception with traceback
        logger.exception("Unhandled exception occurred")

        # Handle all other exceptions (coding, DB errors, etc.)
        return _error("Internal Server Error", status.HTTP_500_INTERNAL_SERVER_ERROR, details=str(e))
