"""Domain exceptions and FastAPI exception handlers.

Every error leaves the API as ``{"error": <code>, "detail": <text>}``.
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from starlette import status
import logging

logger = logging.getLogger("gateway_currency.errors")


class ReconciliationError(Exception):
    code = "reconciliation_error"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class OrderNotFound(ReconciliationError):
    code = "order_not_found"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, order_id: int):
        super().__init__(f"order {order_id} not found")
        self.order_id = order_id


class RefundNotFound(ReconciliationError):
    code = "refund_not_found"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, refund_id: int):
        super().__init__(f"refund {refund_id} not found")
        self.refund_id = refund_id


class MissingCheckoutTotals(ReconciliationError):
    """Display/converted totals were never captured for an order."""

    code = "missing_checkout_totals"


class InvalidOrderTransition(ReconciliationError):
    code = "invalid_transition"


def http_error_handler(request: Request, exc):  # type: ignore
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        detail = f"No route for {request.method} {request.url.path}"
        code = "not_found"
    else:
        detail = exc.detail
        code = "not_found" if exc.status_code == 404 else "http_error"
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": code, "detail": detail},
    )


def validation_error_handler(request: Request, exc: RequestValidationError):  # type: ignore
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "validation_error",
            "detail": jsonable_encoder(exc.errors()),
        },
    )


def reconciliation_error_handler(request: Request, exc: ReconciliationError):  # type: ignore
    logger.info("%s: %s", exc.code, exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "detail": exc.detail},
    )


def server_error_handler(request: Request, exc: Exception):  # type: ignore
    logger.exception("unhandled exception")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "internal_error",
            "detail": "An unexpected error occurred.",
        },
    )
