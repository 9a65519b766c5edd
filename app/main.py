"""
FastAPI Frontend for Finance Tracker

Thin HTTP layer over AppComponents:
1. Resolves the bearer token to a user id (dependency)
2. Hands raw JSON bodies and query values to the services, which validate
3. Maps the error hierarchy to status codes in one place

Handlers never touch storage and never build error text themselves.

Run with:
    uvicorn app.main:app --reload
"""

from contextlib import asynccontextmanager
from typing import Any, Optional

import structlog
from fastapi import Body, Depends, FastAPI, Header, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from finance_tracker.audit import configure_logging, create_correlation_id
from finance_tracker.config import get_settings, validate_all_settings
from finance_tracker.errors import (
    ConflictError,
    FinanceTrackerError,
    NotFoundError,
    UnauthenticatedError,
    UnauthorizedError,
    ValidationError,
)
from finance_tracker.orchestrator import AppComponents, create_app_components

logger = structlog.get_logger("finance_tracker.api")

_STATUS_CODES = {
    ValidationError: 400,
    UnauthenticatedError: 401,
    UnauthorizedError: 403,
    NotFoundError: 404,
    ConflictError: 409,
}


def _dump(model) -> dict:
    return model.model_dump(mode="json", by_alias=True)


def _status_for(error: FinanceTrackerError) -> int:
    for error_type, status in _STATUS_CODES.items():
        if isinstance(error, error_type):
            return status
    return 500


def components(request: Request) -> AppComponents:
    return request.app.state.components


def current_user_id(
    request: Request,
    authorization: Optional[str] = Header(default=None),
) -> int:
    """Bearer token -> user id, or 401."""
    return components(request).tokens.authenticate(authorization)


# =============================================================================
# ERROR HANDLERS
# =============================================================================

async def handle_finance_error(request: Request, exc: FinanceTrackerError) -> JSONResponse:
    status = _status_for(exc)

    if isinstance(exc, ValidationError):
        return JSONResponse(status_code=status, content={
            "error": exc.message,
            "details": [issue.to_detail() for issue in exc.issues],
        })

    if status == 500:
        # Cause already logged at the storage boundary
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    content: dict[str, Any] = {"error": exc.message}
    if isinstance(exc, ConflictError) and exc.existing is not None:
        content["budget"] = _dump(exc.existing)
    return JSONResponse(status_code=status, content=content)


async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed JSON or query/path values FastAPI itself rejected."""
    details = []
    for error in exc.errors():
        loc = [
            part for part in error.get("loc", ())
            if isinstance(part, str) and part not in ("body", "query", "path", "header")
        ]
        details.append({
            "field": ".".join(loc) or "body",
            "message": error.get("msg", "Invalid value"),
        })
    return JSONResponse(status_code=400, content={"error": "Validation failed", "details": details})


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.error("unhandled_error", path=request.url.path, error=f"{type(exc).__name__}: {exc}")
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# =============================================================================
# APP FACTORY
# =============================================================================

def create_app(app_components: Optional[AppComponents] = None) -> FastAPI:
    """
    Build the API.

    Pass `app_components` to serve pre-built components (tests do this);
    otherwise they are created from settings at startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = None
        if getattr(app.state, "components", None) is None:
            configure_logging(get_settings().app.log_level)
            validate_all_settings()
            owned = create_app_components()
            app.state.components = owned
        yield
        if owned is not None:
            owned.close()

    app = FastAPI(
        title="Finance Tracker",
        version="1.0.0",
        debug=get_settings().app.debug_mode,
        lifespan=lifespan,
    )
    app.state.components = app_components

    app.add_exception_handler(FinanceTrackerError, handle_finance_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(Exception, handle_unexpected)

    @app.middleware("http")
    async def correlation_id(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(create_correlation_id())
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(correlation_id=request_id)
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    # -- users ----------------------------------------------------------------

    @app.post("/users/register", status_code=201)
    async def register(request: Request, payload: Any = Body(default=None)):
        user = await components(request).accounts.register(payload)
        return {"id": user.id, "email": user.email}

    @app.post("/users/login")
    async def login(request: Request, payload: Any = Body(default=None)):
        token, user = await components(request).accounts.login(payload)
        return {
            "message": "Login successful",
            "token": token,
            "user": {"email": user.email, "name": user.name},
        }

    @app.put("/users/update-profile")
    async def update_profile(
        request: Request,
        payload: Any = Body(default=None),
        user_id: int = Depends(current_user_id),
    ):
        user = await components(request).accounts.update_profile(user_id, payload)
        return {"message": "Profile updated successfully", "user": user.public_dict()}

    @app.delete("/users/delete-account")
    async def delete_account(request: Request, user_id: int = Depends(current_user_id)):
        user = await components(request).accounts.delete_account(user_id)
        return {"message": "Account deleted successfully", "user": user.public_dict()}

    # -- transactions ---------------------------------------------------------

    @app.get("/transactions")
    async def list_transactions(
        request: Request,
        page: Optional[int] = Query(default=None),
        page_size: Optional[int] = Query(default=None, alias="pageSize"),
        user_id: int = Depends(current_user_id),
    ):
        result = await components(request).ledger.list(user_id, page=page, page_size=page_size)
        return _dump(result)

    @app.get("/transactions/{transaction_id}")
    async def get_transaction(
        request: Request,
        transaction_id: int,
        user_id: int = Depends(current_user_id),
    ):
        transaction = await components(request).ledger.get_by_id(transaction_id, user_id=user_id)
        return _dump(transaction)

    @app.post("/transactions", status_code=201)
    async def create_transaction(
        request: Request,
        payload: Any = Body(default=None),
        user_id: int = Depends(current_user_id),
    ):
        transaction = await components(request).ledger.create(user_id, payload)
        return {"message": "Transaction created successfully", "transaction": _dump(transaction)}

    @app.put("/transactions/{transaction_id}")
    async def update_transaction(
        request: Request,
        transaction_id: int,
        payload: Any = Body(default=None),
        user_id: int = Depends(current_user_id),
    ):
        transaction = await components(request).ledger.update(transaction_id, user_id, payload)
        return {"message": "Transaction updated successfully", "transaction": _dump(transaction)}

    @app.delete("/transactions/{transaction_id}")
    async def delete_transaction(
        request: Request,
        transaction_id: int,
        user_id: int = Depends(current_user_id),
    ):
        transaction = await components(request).ledger.delete(transaction_id, user_id)
        return {"message": "Transaction deleted successfully", "transaction": _dump(transaction)}

    # -- budgets and reports --------------------------------------------------

    @app.post("/budgets", status_code=201)
    async def create_budget(
        request: Request,
        payload: Any = Body(default=None),
        user_id: int = Depends(current_user_id),
    ):
        budget = await components(request).budgets.create_budget(user_id, payload)
        return {"message": "Budget created successfully", "budget": _dump(budget)}

    @app.get("/budgets")
    async def list_budgets(
        request: Request,
        month: Optional[str] = Query(default=None),
        user_id: int = Depends(current_user_id),
    ):
        budgets = await components(request).budgets.list_with_spending(user_id, month=month)
        return [_dump(b) for b in budgets]

    @app.get("/reports/monthly")
    async def monthly_report(
        request: Request,
        month: Optional[str] = Query(default=None),
        user_id: int = Depends(current_user_id),
    ):
        report = await components(request).reports.generate(user_id, month=month)
        return _dump(report)

    return app


app = create_app()
