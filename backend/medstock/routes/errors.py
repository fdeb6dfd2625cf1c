# Overview: Maps service-layer exceptions to JSON error responses.

from flask import current_app

from ..validation import (
    ValidationError,
    NotFoundError,
    ConflictError,
    InsufficientStockError,
    InternalError,
)


def service_error_response(e: Exception):
    """
    (body, status) for an exception raised by a service.

    ValidationError 400, NotFoundError 404, ConflictError (incl. duplicate
    names and insufficient stock) 409, anything else 500.
    """
    if isinstance(e, InsufficientStockError):
        body = {"error": str(e), "code": "INSUFFICIENT_STOCK"}
        if e.available is not None:
            body["available"] = e.available
        if e.requested is not None:
            body["requested"] = e.requested
        return body, 409
    if isinstance(e, ConflictError):
        return {"error": str(e)}, 409
    if isinstance(e, NotFoundError):
        return {"error": str(e)}, 404
    if isinstance(e, (ValidationError, ValueError)):
        return {"error": str(e)}, 400
    if isinstance(e, InternalError):
        current_app.logger.error("Internal error: %s", e)
        return {"error": str(e)}, 500

    current_app.logger.exception("Unhandled service error")
    return {"error": "Internal server error"}, 500
