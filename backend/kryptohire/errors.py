"""
Typed API errors and the handlers that turn them into JSON responses.

Every failure leaves the API as
``{"error": {"message", "code", "statusCode", "details"}}``.
"""
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class APIError(Exception):
    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(APIError):
    status_code = 400
    code = "VALIDATION_ERROR"


class AuthenticationError(APIError):
    status_code = 401
    code = "AUTHENTICATION_ERROR"


class PaymentRequiredError(APIError):
    status_code = 402
    code = "PAYMENT_REQUIRED"


class NotFoundError(APIError):
    status_code = 404
    code = "NOT_FOUND"


class RateLimitError(APIError):
    status_code = 429
    code = "RATE_LIMIT_EXCEEDED"


class ServiceUnavailableError(APIError):
    status_code = 503
    code = "SERVICE_UNAVAILABLE"


def error_body(message: str, code: str, status_code: int, details: Any = None) -> Dict[str, Any]:
    return {
        "error": {
            "message": message,
            "code": code,
            "statusCode": status_code,
            "details": details,
        }
    }


async def handle_api_error(request: Request, exc: APIError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(error_body(exc.message, exc.code, exc.status_code, exc.details)),
    )


async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content=jsonable_encoder(
            error_body("Invalid request", ValidationError.code, 400, {"errors": exc.errors()})
        ),
    )


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail), "HTTP_ERROR", exc.status_code),
        headers=getattr(exc, "headers", None),
    )


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=error_body("Internal server error", APIError.code, 500),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(APIError, handle_api_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(Exception, handle_unexpected)
