import structlog
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from slack_relay.errors import DirectoryFetchError, DispatchValidationError, UpstreamError
from slack_relay.middleware.cors import cors_headers

logger = structlog.get_logger()


async def validation_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    if isinstance(exc, RequestValidationError):
        message = "Invalid request body"
    else:
        message = str(exc)
    logger.info("request.rejected", path=request.url.path, error=message)
    return JSONResponse(status_code=400, content={"error": message})


async def directory_exception_handler(request: Request, exc: DirectoryFetchError) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={"error": exc.message, "details": exc.details},
    )


async def upstream_exception_handler(request: Request, exc: UpstreamError) -> JSONResponse:
    logger.error("upstream_error", path=request.url.path, method=exc.method, error=exc.message)
    return JSONResponse(
        status_code=500,
        content={"error": f"Slack API call failed: {exc.method}", "details": exc.message},
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_exception", path=request.url.path, method=request.method)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "detail": str(exc)},
        headers=cors_headers(request.headers.get("origin")),
    )


def register_exception_handlers(app) -> None:
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(DispatchValidationError, validation_exception_handler)
    app.add_exception_handler(DirectoryFetchError, directory_exception_handler)
    app.add_exception_handler(UpstreamError, upstream_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)
