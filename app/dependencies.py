from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.errors import StudioError
from app.studio.errors import ApiError, map_studio_error
from app.studio.jobs import VideoJobRegistry


def get_video_jobs(request: Request) -> VideoJobRegistry:
    return request.app.state.video_jobs


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiError)
    async def handle_api_error(
        _request: Request,
        exc: ApiError,
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.to_error()},
        )

    @app.exception_handler(StudioError)
    async def handle_studio_error(
        _request: Request,
        exc: StudioError,
    ) -> JSONResponse:
        api_error = map_studio_error(exc)
        return JSONResponse(
            status_code=api_error.status_code,
            content={"error": api_error.to_error()},
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(
        _request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        errors = exc.errors()
        first_error = errors[0]["msg"] if errors else "Invalid request"
        param = None
        if errors:
            param = ".".join(str(item) for item in errors[0]["loc"] if item != "body") or None

        api_error = ApiError(
            status_code=400,
            message=first_error,
            error_type="invalid_request",
            code="invalid_request",
            param=param,
        )
        return JSONResponse(
            status_code=api_error.status_code,
            content={"error": api_error.to_error()},
        )
