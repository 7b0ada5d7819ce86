"""Global error handlers: every error leaves as RFC 7807 problem JSON."""
import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from modqueue.schemas.common import ErrorDetail

logger = structlog.get_logger()

_TITLES = {
    400: "Bad Request",
    403: "Forbidden",
    404: "Not Found",
    409: "Conflict",
    410: "Gone",
    422: "Unprocessable Entity",
}


class AppException(Exception):
    def __init__(self, status_code: int, detail: str, error_type: str = "about:blank"):
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail
        self.error_type = error_type


def _problem(request: Request, status: int, detail: str, error_type: str = "about:blank") -> JSONResponse:
    return JSONResponse(
        status_code=status,
        content=ErrorDetail(
            type=error_type,
            title=_TITLES.get(status, "Error"),
            status=status,
            detail=detail,
            instance=request.url.path,
        ).model_dump(),
    )


def setup_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
        logger.info("request_failed", error_type=exc.error_type, status=exc.status_code, path=request.url.path)
        return _problem(request, exc.status_code, exc.detail, exc.error_type)

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
        return _problem(request, 400, str(exc))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("unhandled_exception", error=str(exc), path=request.url.path, exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "type": "about:blank",
                "title": "Internal Server Error",
                "status": 500,
                "detail": "An unexpected error occurred.",
            },
        )
