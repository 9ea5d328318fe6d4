"""Exception handlers turning service errors into JSON responses."""
import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from dreamer_api.services.errors import AuthError

logger = logging.getLogger(__name__)


def _error_response(status_code: int, message: str, code: str, **extra) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if status_code == status.HTTP_401_UNAUTHORIZED else None
    content = {"error": message, "code": code, **extra}
    return JSONResponse(status_code=status_code, content=jsonable_encoder(content), headers=headers)


def _describe_validation_errors(exc: RequestValidationError) -> list[dict]:
    errors = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part != "body"]
        message = error.get("msg", "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.append({"field": ".".join(location), "message": message})
    return errors


def register_exception_handlers(app: FastAPI) -> None:
    """Install handlers for typed auth errors, bad requests and crashes."""

    @app.exception_handler(AuthError)
    async def handle_auth_error(request: Request, exc: AuthError):
        log_fn = logger.error if exc.status_code >= 500 else logger.warning
        log_fn(f"{request.method} {request.url.path} -> {exc.status_code} {exc.code}")
        return _error_response(exc.status_code, exc.message, exc.code)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        errors = _describe_validation_errors(exc)
        logger.warning(f"{request.method} {request.url.path} -> 400 VALIDATION_ERROR")
        return _error_response(
            status.HTTP_400_BAD_REQUEST,
            "Validation failed",
            "VALIDATION_ERROR",
            errors=errors,
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Internal server error",
            "INTERNAL_ERROR",
        )
