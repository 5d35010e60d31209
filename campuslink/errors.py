# API error envelope: every failure renders as {"success": false, "message": ..., ...}

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException


class ApiError(Exception):
    """Request failed with a status and a user-facing message; error holds the underlying cause."""

    def __init__(self, status_code: int, message: str, error: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.error = error


async def _api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    body = {"success": False, "message": exc.message}
    if exc.error is not None:
        body["error"] = exc.error
    return JSONResponse(status_code=exc.status_code, content=body)


async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "message": "Invalid request",
            "errors": jsonable_encoder(exc.errors()),
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, _api_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
