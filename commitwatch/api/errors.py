"""Exception handlers turning service and aggregation failures into JSON bodies."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from commitwatch.engines.aggregator.models import AggregateError
from commitwatch.services import (
    ConflictError,
    NotFoundError,
    ServiceError,
    StoreError,
    ValidationError,
)

# checked in order; subclasses (AlreadySubscribedError) match their base
_SERVICE_STATUS: tuple[tuple[type[ServiceError], int], ...] = (
    (NotFoundError, 404),
    (ConflictError, 409),
    (ValidationError, 422),
    (StoreError, 500),
)

_AGGREGATE_STATUS = {
    "not_found": 404,
    "rate_limited": 429,
    "unauthorized": 401,
    "failed": 502,
}


def status_for(exc: ServiceError) -> int:
    return next((code for cls, code in _SERVICE_STATUS if isinstance(exc, cls)), 500)


async def _on_service_error(_request: Request, exc: ServiceError) -> JSONResponse:
    return JSONResponse({"detail": str(exc)}, status_code=status_for(exc))


async def _on_aggregate_error(_request: Request, exc: AggregateError) -> JSONResponse:
    headers = {"Retry-After": str(exc.retry_after)} if exc.retry_after is not None else None
    return JSONResponse(
        {"detail": str(exc), "kind": exc.kind},
        status_code=_AGGREGATE_STATUS.get(exc.kind, 502),
        headers=headers,
    )


async def _on_request_validation(_request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = [
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
    ]
    return JSONResponse({"detail": "; ".join(problems)}, status_code=422)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, _on_service_error)  # type: ignore[arg-type]
    app.add_exception_handler(AggregateError, _on_aggregate_error)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _on_request_validation)  # type: ignore[arg-type]
