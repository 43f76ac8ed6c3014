from __future__ import annotations

from datetime import datetime
from typing import Callable
from uuid import uuid4

from fastapi import FastAPI, Header, HTTPException, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from dps.errors import DfacError

from .models import (
    DfacHoursUpdateRequest,
    DfacUpdateRequest,
    MealUpdateRequest,
    OrderCreateRequest,
    OrderStatusUpdateRequest,
    build_error_envelope,
    build_success_envelope,
)
from .service import DagService, map_dfac_error


def _request_id(request: Request, header_value: str | None) -> str:
    if header_value:
        return header_value
    prior = getattr(request.state, "request_id", None)
    if prior:
        return prior
    request.state.request_id = f"req-{uuid4().hex[:12]}"
    return request.state.request_id


def create_app(
    *,
    db_path: str = "runtime/state/dfacdash.db",
    enforce_order_window: bool = False,
    clock: Callable[[], datetime] | None = None,
) -> FastAPI:
    app = FastAPI(title="dfacDash Orders", version="0.1.0")
    service = DagService(db_path=db_path, enforce_order_window=enforce_order_window, clock=clock)
    app.state.service = service

    @app.exception_handler(DfacError)
    async def _handle_dfac_error(request: Request, exc: DfacError) -> JSONResponse:
        request_id = _request_id(request, request.headers.get("X-Request-Id"))
        details = []
        if exc.field is not None:
            details.append({"field": exc.field, "reason": str(exc.value)})
        payload = build_error_envelope(
            request_id=request_id,
            code=exc.code,
            message=exc.message,
            details=details,
            retryable=exc.retryable,
        )
        return JSONResponse(status_code=map_dfac_error(exc), content=payload)

    @app.exception_handler(RequestValidationError)
    async def _handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        request_id = _request_id(request, request.headers.get("X-Request-Id"))
        details = [
            {"field": ".".join(str(part) for part in error.get("loc", ())), "reason": error.get("msg", "")}
            for error in exc.errors()
        ]
        payload = build_error_envelope(
            request_id=request_id,
            code="DFAC_VALIDATION_FAILED",
            message="Request validation failed",
            details=jsonable_encoder(details),
        )
        return JSONResponse(status_code=400, content=payload)

    @app.on_event("shutdown")
    async def _on_shutdown() -> None:
        service.shutdown()

    @app.post("/api/orders", status_code=201)
    async def create_order(
        body: OrderCreateRequest,
        request: Request,
        x_request_id: str | None = Header(default=None, alias="X-Request-Id"),
    ) -> dict:
        request_id = _request_id(request, x_request_id)
        data = service.create_order(body.model_dump())
        return build_success_envelope(request_id=request_id, data=data)

    @app.get("/api/orders")
    async def list_orders(
        request: Request,
        customer_id: int | None = Query(default=None, alias="customerID"),
        x_request_id: str | None = Header(default=None, alias="X-Request-Id"),
    ) -> dict:
        request_id = _request_id(request, x_request_id)
        data = service.list_orders(customer_id=customer_id)
        return build_success_envelope(request_id=request_id, data=data)

    @app.get("/api/orders/{order_id}")
    async def get_order(
        order_id: int,
        request: Request,
        x_request_id: str | None = Header(default=None, alias="X-Request-Id"),
    ) -> dict:
        request_id = _request_id(request, x_request_id)
        data = service.get_order(order_id)
        return build_success_envelope(request_id=request_id, data=data)

    @app.patch("/api/orders/{order_id}")
    async def update_order_status(
        order_id: int,
        body: OrderStatusUpdateRequest,
        request: Request,
        x_request_id: str | None = Header(default=None, alias="X-Request-Id"),
    ) -> dict:
        request_id = _request_id(request, x_request_id)
        data = service.update_order_status(order_id, body.model_dump(exclude_unset=True))
        return build_success_envelope(request_id=request_id, data=data)

    @app.delete("/api/orders/{order_id}")
    async def remove_order(
        order_id: int,
        request: Request,
        x_request_id: str | None = Header(default=None, alias="X-Request-Id"),
    ) -> dict:
        request_id = _request_id(request, x_request_id)
        data = service.remove_order(order_id)
        return build_success_envelope(request_id=request_id, data=data)

    @app.patch("/api/meals/{meal_id}")
    async def update_meal(
        meal_id: int,
        body: MealUpdateRequest,
        request: Request,
        x_request_id: str | None = Header(default=None, alias="X-Request-Id"),
    ) -> dict:
        request_id = _request_id(request, x_request_id)
        data = service.update_meal(meal_id, body.model_dump(exclude_unset=True))
        return build_success_envelope(request_id=request_id, data=data)

    @app.patch("/api/dfacs/{dfac_id}")
    async def update_dfac(
        dfac_id: int,
        body: DfacUpdateRequest,
        request: Request,
        x_request_id: str | None = Header(default=None, alias="X-Request-Id"),
    ) -> dict:
        request_id = _request_id(request, x_request_id)
        data = service.update_dfac(dfac_id, body.model_dump(exclude_unset=True))
        return build_success_envelope(request_id=request_id, data=data)

    @app.patch("/api/dfacs/{dfac_id}/hours")
    async def update_dfac_hours(
        dfac_id: int,
        body: DfacHoursUpdateRequest,
        request: Request,
        x_request_id: str | None = Header(default=None, alias="X-Request-Id"),
    ) -> dict:
        request_id = _request_id(request, x_request_id)
        data = service.update_dfac_hours(dfac_id, body.model_dump(exclude_unset=True))
        return build_success_envelope(request_id=request_id, data=data)

    @app.exception_handler(HTTPException)
    async def _handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:
        request_id = _request_id(request, None)
        code = "DAG_HTTP_ERROR"
        message = str(exc.detail) if exc.detail else "Request could not be processed"
        payload = build_error_envelope(request_id=request_id, code=code, message=message)
        return JSONResponse(status_code=exc.status_code, content=payload)

    return app
