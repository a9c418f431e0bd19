# --- storefront/errors.py ---
import logging
import traceback

from flask import current_app, jsonify, request
from werkzeug.exceptions import HTTPException

from .utils.api import api_error

logger = logging.getLogger(__name__)


class StoreError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message=None, errors=None):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)


class ValidationError(StoreError):
    status_code = 400
    default_message = "Validation failed"


class NotFoundError(StoreError):
    status_code = 404
    default_message = "Resource not found"


class EmptyCartError(StoreError):
    status_code = 400
    default_message = "Cart is empty"


class CartMismatchError(StoreError):
    status_code = 400
    default_message = "Cart items validation failed"

    def __init__(self, message=None, product_id=None):
        self.product_id = product_id
        super().__init__(message)


class StorageError(StoreError):
    status_code = 500
    default_message = "Storage operation failed"


class InternalError(StoreError):
    status_code = 500


def _payload_key():
    # checkout responses carry the payload under "receipt"/"receipts"
    bp = request.blueprint if request else None
    if bp == "checkout":
        return "receipts" if request.path.rstrip("/").endswith("/receipts") else "receipt"
    return "data"


def register_error_handlers(app):
    @app.errorhandler(StoreError)
    def handle_store_error(e: StoreError):
        if e.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.path, e.message)
        r = jsonify(api_error(e.message, e.errors, key=_payload_key()))
        r.status_code = e.status_code
        return r

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        message = e.description or e.name
        if e.code == 404 and not request.blueprint:
            message = f"Route {request.method} {request.path} not found"
        r = jsonify(api_error(message, key=_payload_key()))
        r.status_code = e.code or 500
        return r

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        extra = {}
        if current_app.config.get("EXPOSE_ERROR_DETAILS"):
            extra["stack"] = traceback.format_exception(type(e), e, e.__traceback__)
        r = jsonify(api_error(InternalError.default_message, key=_payload_key(), **extra))
        r.status_code = 500
        return r
