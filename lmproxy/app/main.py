from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from lmproxy import __version__
from lmproxy.app.api.tools import router as tools_router
from lmproxy.app.core.config import settings
from lmproxy.app.core.http_client import init_http_client
from lmproxy.app.core.logging import get_logger, setup_logging
from lmproxy.app.exceptions import ProxyException
from lmproxy.app.middleware.request_id import RequestIdMiddleware, get_request_id
from lmproxy.app.services.rate_limiter import RateLimiter


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    setup_logging()
    logger = get_logger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[dict, None]:
        """Application lifespan context manager.

        Opens the shared HTTP connection pool and creates the process-wide
        rate limiter on startup; closes the pool on shutdown.
        """
        async with init_http_client() as http_client:
            app.state.rate_limiter = RateLimiter(
                default_options=settings.retry_options(),
                preemptive_threshold=settings.rate_limit_preemptive_threshold,
                reset_buffer_ms=settings.rate_limit_reset_buffer_ms,
            )

            logger.info(
                "Application startup complete",
                extra={
                    "default_account": settings.lm_account or None,
                    "debug_mode": settings.debug,
                },
            )

            yield {"http_client": http_client}

        logger.info("Application shutdown complete")

    app = FastAPI(
        title="LMProxy",
        description="LogicMonitor REST API exposed as batch-capable tools",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(RequestIdMiddleware)

    app.include_router(tools_router)

    @app.get("/health")
    async def health() -> dict[str, Any]:
        """Liveness check."""
        return {"status": "ok", "service": "lmproxy", "version": __version__}

    @app.exception_handler(ProxyException)
    async def proxy_exception_handler(request: Request, exc: ProxyException) -> JSONResponse:
        """Map proxy exceptions to their HTTP status code."""
        content = {"error": exc.error_code, "message": exc.message}
        headers = None
        retry_after = getattr(exc, "retry_after", None)
        if retry_after is not None:
            headers = {"Retry-After": str(int(retry_after))}
        return JSONResponse(status_code=exc.status_code, content=content, headers=headers)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler for unhandled exceptions.

        Never returns a traceback to the client; debug mode adds the
        exception message.
        """
        request_id = get_request_id(request)

        logger.exception(
            f"Unhandled exception [request_id={request_id}]",
            extra={
                "request_id": request_id,
                "exception_type": type(exc).__name__,
            },
        )

        content = {
            "error": "internal_error",
            "message": str(exc) if settings.debug else "Internal server error",
            "request_id": request_id,
        }
        if settings.debug:
            content["exception_type"] = type(exc).__name__
        return JSONResponse(status_code=500, content=content)

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_config=None,
    )
