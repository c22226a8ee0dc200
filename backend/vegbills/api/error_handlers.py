"""
Exception handlers for FastAPI.

The single place where errors are classified and mapped to responses:
domain errors carry their own status, request validation becomes a 400
listing every violation, store connectivity failures and anything
unrecognised become a 500.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import InterfaceError, OperationalError
from starlette.status import HTTP_400_BAD_REQUEST, HTTP_500_INTERNAL_SERVER_ERROR

from vegbills.core.exceptions import ConflictError, StoreUnavailable, VegbillsError
from vegbills.core.observability import capture_exception

logger = logging.getLogger(__name__)


def _field_path(loc) -> str:
    parts = [str(p) for p in loc if p != "body"]
    return ".".join(parts) or "body"


def vegbills_exception_handler(request: Request, exc: VegbillsError):
    if isinstance(exc, ConflictError):
        # Corruption, not user error: keep full context
        logger.error(
            "Catalogue integrity fault on %s %s: %s details=%s",
            request.method, request.url.path, exc.message, exc.details,
        )
        capture_exception(exc)
    elif exc.status_code >= 500:
        logger.error("%s on %s %s: %s", exc.error, request.method, request.url.path, exc.message)
    else:
        logger.info("%s on %s %s: %s", exc.error, request.method, request.url.path, exc.details or exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_content())


def validation_exception_handler(request: Request, exc: RequestValidationError):
    violations = [
        {"field": _field_path(err.get("loc", ())), "message": err.get("msg", "invalid")}
        for err in exc.errors()
    ]
    logger.info("Validation error on %s %s: %s", request.method, request.url.path, violations)
    return JSONResponse(
        status_code=HTTP_400_BAD_REQUEST,
        content={"error": "Validation error", "details": violations},
    )


def store_exception_handler(request: Request, exc: Exception):
    logger.error("Store unavailable on %s %s: %s", request.method, request.url.path, exc)
    capture_exception(exc)
    wrapped = StoreUnavailable("The database could not be reached")
    return JSONResponse(status_code=wrapped.status_code, content=wrapped.to_content())


def generic_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    capture_exception(exc)
    return JSONResponse(
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(VegbillsError, vegbills_exception_handler)
    app.add_exception_handler(OperationalError, store_exception_handler)
    app.add_exception_handler(InterfaceError, store_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
