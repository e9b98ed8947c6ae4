"""
Error Mapping
Maps ledger and report failures to stable error codes, HTTP statuses and
user-facing messages.

The CLI uses the mapping to report failures; a host FastAPI app can register
global_exception_handler and raise create_error_response directly.
"""

import logging
from enum import Enum
from typing import Optional

from fastapi import HTTPException, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ledgerlens.integrations.reports.exceptions import ReportFetchError
from ledgerlens.ledger.exceptions import (
    LedgerImbalanceError,
    LedgerValidationError,
    TransactionNotFoundError,
)

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    REPORT_FETCH_FAILED = "report_fetch_failed"
    LEDGER_IMBALANCE = "ledger_imbalance"
    LEDGER_INVALID = "ledger_invalid"
    TRANSACTION_NOT_FOUND = "transaction_not_found"
    INSUFFICIENT_DATA = "insufficient_data"
    VALIDATION_ERROR = "validation_error"
    INTERNAL_ERROR = "internal_error"


ERROR_MESSAGES = {
    ErrorCode.REPORT_FETCH_FAILED: "Unable to fetch reports from your bookkeeping platform. Please try again in a moment.",
    ErrorCode.LEDGER_IMBALANCE: "Transaction does not balance. Total debits must equal total credits.",
    ErrorCode.LEDGER_INVALID: "Transaction ledger entries are invalid. Please check the amounts and accounts.",
    ErrorCode.TRANSACTION_NOT_FOUND: "Transaction not found.",
    ErrorCode.INSUFFICIENT_DATA: "Not enough report data to analyze. Please check that your books have recent activity.",
    ErrorCode.VALIDATION_ERROR: "Invalid request. Please check your input and try again.",
    ErrorCode.INTERNAL_ERROR: "An unexpected error occurred. Please try again later.",
}

ERROR_STATUS = {
    ErrorCode.REPORT_FETCH_FAILED: status.HTTP_502_BAD_GATEWAY,
    ErrorCode.LEDGER_IMBALANCE: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.LEDGER_INVALID: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.TRANSACTION_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.INSUFFICIENT_DATA: status.HTTP_400_BAD_REQUEST,
    ErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

# Most specific first: LedgerImbalanceError is a LedgerValidationError
_EXCEPTION_CODES: tuple[tuple[type[Exception], ErrorCode], ...] = (
    (LedgerImbalanceError, ErrorCode.LEDGER_IMBALANCE),
    (LedgerValidationError, ErrorCode.LEDGER_INVALID),
    (TransactionNotFoundError, ErrorCode.TRANSACTION_NOT_FOUND),
    (ReportFetchError, ErrorCode.REPORT_FETCH_FAILED),
    (ValueError, ErrorCode.VALIDATION_ERROR),
    (KeyError, ErrorCode.INSUFFICIENT_DATA),
)


def get_error_code_for_exception(exception: Exception) -> tuple[ErrorCode, int]:
    """
    Map an exception to (error_code, http_status).

    Unknown exceptions map to INTERNAL_ERROR / 500.
    """
    for exception_type, error_code in _EXCEPTION_CODES:
        if isinstance(exception, exception_type):
            return error_code, ERROR_STATUS[error_code]
    return ErrorCode.INTERNAL_ERROR, ERROR_STATUS[ErrorCode.INTERNAL_ERROR]


def sanitize_error_message(
    exception: Exception,
    error_code: ErrorCode,
    log_details: bool = True,
) -> str:
    """
    User-facing message for an error code.

    The exception text (which may carry account ids or amounts) goes to the
    log only, never into the returned message.
    """
    if log_details:
        logger.error("Error [%s]: %s", error_code.value, exception, exc_info=exception)

    return ERROR_MESSAGES.get(error_code, ERROR_MESSAGES[ErrorCode.INTERNAL_ERROR])


async def global_exception_handler(_request, exc: Exception) -> JSONResponse:
    """
    JSON error response for unhandled exceptions in a host FastAPI app.

    HTTPException and RequestValidationError are re-raised for FastAPI's own handlers.
    """
    if isinstance(exc, (HTTPException, RequestValidationError)):
        raise exc

    error_code, http_status = get_error_code_for_exception(exc)
    return JSONResponse(
        status_code=http_status,
        content={
            "error_code": error_code.value,
            "message": sanitize_error_message(exc, error_code),
        },
    )


def create_error_response(
    error_code: ErrorCode,
    message: Optional[str] = None,
    http_status: Optional[int] = None,
) -> HTTPException:
    """
    HTTPException carrying {"error_code", "message"} as its detail.

    Message and status default to the ones registered for the code.
    """
    return HTTPException(
        status_code=http_status or ERROR_STATUS.get(error_code, status.HTTP_500_INTERNAL_SERVER_ERROR),
        detail={
            "error_code": error_code.value,
            "message": message or ERROR_MESSAGES.get(error_code, ERROR_MESSAGES[ErrorCode.INTERNAL_ERROR]),
        },
    )
