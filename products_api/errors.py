"""Service exceptions and the handlers that turn them into JSON responses.

Response envelopes:
    validation failures  -> 400 {"errors": [{"msg": ..., ...}, ...]}
    everything else      -> 4xx/5xx {"error": "<message>"}
"""

import logging
from typing import List

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ProductsApiError(Exception):
    """Base class; carries the HTTP status and the client-facing message."""

    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "INTERNAL_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_response(self) -> dict:
        return {"error": self.message}


class ValidationFailed(ProductsApiError):
    http_status = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"

    def __init__(self, errors: List[dict]):
        super().__init__(f"{len(errors)} validation error(s)")
        self.errors = errors

    def to_response(self) -> dict:
        return {"errors": self.errors}


class ProductNotFound(ProductsApiError):
    http_status = status.HTTP_404_NOT_FOUND
    code = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id: int):
        super().__init__("Producto no encontrado")
        self.product_id = product_id


class DatabaseError(ProductsApiError):
    http_status = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "DATABASE_ERROR"

    def __init__(self, operation: str):
        super().__init__("Error de base de datos")
        self.operation = operation


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ProductsApiError)
    async def products_api_error_handler(request: Request, exc: ProductsApiError):
        extra = {
            "error_code": exc.code,
            "path": request.url.path,
            "product_id": getattr(exc, "product_id", None),
        }
        if exc.http_status >= 500:
            logger.error(
                f"{exc.code} on {request.url.path}: {exc.message}",
                extra=extra,
            )
        else:
            logger.info(
                f"{exc.code} on {request.url.path}",
                extra=extra,
            )
        return JSONResponse(status_code=exc.http_status, content=exc.to_response())

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(request: Request, exc: RequestValidationError):
        errors = [
            {
                "type": "field",
                "msg": e["msg"],
                "path": ".".join(str(loc) for loc in e["loc"][1:]),
                "location": str(e["loc"][0]) if e["loc"] else "body",
            }
            for e in exc.errors()
        ]
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"errors": errors})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Error interno del servidor"},
        )
