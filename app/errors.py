"""
Error taxonomy and the handlers that turn it into HTTP responses.

Every error body has the same shape::

    {"errors": {"<field>": ["<message>"]}}

Services raise the typed ``ConduitError`` subclasses below; request
validation failures and integrity violations are translated here so
handlers never build error responses themselves.
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

logger = logging.getLogger(__name__)

# pydantic error types reported as a blank field rather than a bad value.
_BLANK_ERROR_TYPES: frozenset[str] = frozenset({"missing", "string_too_short", "string_type"})


class ConduitError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field} {message}")
        self.field = field
        self.message = message


class NotFoundError(ConduitError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(ConduitError):
    status_code = status.HTTP_409_CONFLICT


class UnauthorizedError(ConduitError):
    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(ConduitError):
    status_code = status.HTTP_403_FORBIDDEN


class UnprocessableEntityError(ConduitError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


def error_body(field: str, message: str) -> dict:
    return {"errors": {field: [message]}}


def first_validation_error(errors: list[dict]) -> UnprocessableEntityError:
    """
    Reduce a pydantic error list to the first offending field.

    The key is the innermost string in the error location, so
    ``("body", "article", "title")`` reports ``title`` and a missing
    envelope (``("body", "article")``) reports ``article``.
    """
    if not errors:
        return UnprocessableEntityError("body", "is invalid")
    err = errors[0]
    field = next(
        (part for part in reversed(err.get("loc", ())) if isinstance(part, str)),
        "body",
    )
    # A null value for a string field comes back as string_type.
    if err.get("type") in _BLANK_ERROR_TYPES and (
        err.get("type") != "string_type" or err.get("input") is None
    ):
        return UnprocessableEntityError(field, "can't be blank")
    return UnprocessableEntityError(field, "is invalid")


async def _conduit_error_handler(request: Request, exc: ConduitError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.field, exc.message))


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    err = first_validation_error(list(exc.errors()))
    logger.debug("Rejected %s %s: %s", request.method, request.url.path, err)
    return JSONResponse(status_code=err.status_code, content=error_body(err.field, err.message))


async def _integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    logger.warning("Integrity violation on %s %s: %s", request.method, request.url.path, exc.orig)
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content=error_body("record", "already exists"),
    )


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("server", "internal error"),
    )


def install_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ConduitError, _conduit_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(IntegrityError, _integrity_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
