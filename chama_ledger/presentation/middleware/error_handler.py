"""Error handling middleware and exception handlers."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import structlog

from chama_ledger.core.metrics import record_concurrent_conflict
from chama_ledger.domain.exceptions import (
    ConcurrentModificationException,
    DomainException,
    GroupNotFoundException,
    InconsistentLedgerException,
    LoanNotFoundException,
    MemberNotFoundException,
    NotAuthorizedException,
    PaymentEntryNotFoundException,
    PaymentRecordNotFoundException,
    StateTransitionException,
    ValidationException,
)
from .request_context import get_request_id

logger = structlog.get_logger(__name__)

NOT_FOUND_EXCEPTIONS = (
    GroupNotFoundException,
    MemberNotFoundException,
    PaymentRecordNotFoundException,
    PaymentEntryNotFoundException,
    LoanNotFoundException,
)


def _error_response(status_code: int, exc: DomainException, **extra) -> JSONResponse:
    content = {
        "error": exc.code,
        "message": exc.message,
        "request_id": get_request_id(),
    }
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content)


def error_handler_middleware(app: FastAPI) -> None:
    """
    Register exception handlers with the FastAPI app.

    Maps domain exceptions to appropriate HTTP responses.
    """

    async def not_found_handler(
        request: Request,
        exc: DomainException,
    ) -> JSONResponse:
        """Handle lookups of groups, members, records, payments and loans."""
        return _error_response(404, exc)

    for exception_class in NOT_FOUND_EXCEPTIONS:
        app.add_exception_handler(exception_class, not_found_handler)

    @app.exception_handler(ValidationException)
    async def validation_handler(
        request: Request,
        exc: ValidationException,
    ) -> JSONResponse:
        """Handle invalid ledger input."""
        return _error_response(400, exc, details=exc.errors)

    @app.exception_handler(NotAuthorizedException)
    async def not_authorized_handler(
        request: Request,
        exc: NotAuthorizedException,
    ) -> JSONResponse:
        """Handle admin-only actions attempted by members."""
        return _error_response(403, exc)

    @app.exception_handler(StateTransitionException)
    async def state_transition_handler(
        request: Request,
        exc: StateTransitionException,
    ) -> JSONResponse:
        """Handle operations not allowed in the entity's current status."""
        logger.warning(
            "invalid_state_transition",
            request_id=get_request_id(),
            entity=exc.entity,
            current=exc.current,
            target=exc.target,
        )
        return _error_response(409, exc)

    @app.exception_handler(ConcurrentModificationException)
    async def concurrent_modification_handler(
        request: Request,
        exc: ConcurrentModificationException,
    ) -> JSONResponse:
        """Handle writes that lost a race with another writer."""
        logger.warning(
            "concurrent_modification",
            request_id=get_request_id(),
            entity=exc.entity,
            entity_id=exc.entity_id,
        )
        record_concurrent_conflict(exc.entity)
        return _error_response(409, exc)

    @app.exception_handler(InconsistentLedgerException)
    async def inconsistent_ledger_handler(
        request: Request,
        exc: InconsistentLedgerException,
    ) -> JSONResponse:
        """Handle cached values that disagree with the ledger."""
        return _error_response(
            409,
            exc,
            drift={field: {"cached": cached, "ledger": actual}
                   for field, (cached, actual) in exc.drift.items()},
        )

    @app.exception_handler(DomainException)
    async def domain_exception_handler(
        request: Request,
        exc: DomainException,
    ) -> JSONResponse:
        """Handle generic domain exceptions."""
        logger.warning(
            "domain_exception",
            request_id=get_request_id(),
            code=exc.code,
            message=exc.message,
        )
        return _error_response(400, exc)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception(
            "unhandled_exception",
            request_id=get_request_id(),
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "INTERNAL_ERROR",
                "message": "An unexpected error occurred.",
                "request_id": get_request_id(),
            },
        )
