from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from typing import Optional

from hackportal.core.config import settings
from hackportal.core.exceptions import PortalError, error_response
from hackportal.core.logging_config import logger
from hackportal.core.middleware import (
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
)
from hackportal.core.rate_limiter import limiter, rate_limit_exceeded_handler
from hackportal.api.v1.router import api_router
from hackportal.services.container import PortalServices
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown"""
    # Startup
    logger.info("=" * 60)
    logger.info(f"Starting {settings.APP_NAME}...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Store backend: {settings.STORE_BACKEND}")
    logger.info("=" * 60)

    # Services injected by the caller (tests, embedding) are left to their owner
    owns_portal = getattr(app.state, "portal", None) is None
    if owns_portal:
        portal = PortalServices.from_settings(settings)
        await portal.startup()
        app.state.portal = portal

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.APP_NAME}...")
    if owns_portal:
        await app.state.portal.shutdown()
        app.state.portal = None


async def portal_error_handler(request: Request, exc: PortalError):
    if exc.status_code >= 500:
        logger.log_error_with_context(exc, context=f"{request.method} {request.url.path}")
    return JSONResponse(status_code=exc.status_code, content=error_response(exc))


async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={
            "error": "Invalid request body",
            "code": "VALIDATION_ERROR",
            "details": {"errors": jsonable_encoder(exc.errors())},
        }
    )


async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Global exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": str(exc) if settings.DEBUG else "An error occurred",
            "code": "INTERNAL_ERROR",
            "details": {},
        }
    )


def create_app(portal: Optional[PortalServices] = None) -> FastAPI:
    """Build the application; pass `portal` to use already-started services"""
    app = FastAPI(
        title=settings.APP_NAME,
        description="Hackathon problem statement registration with live capacity updates",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
        redirect_slashes=False
    )
    app.state.portal = portal

    # Add rate limiter state and exception handler
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(PortalError, portal_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    # Add middleware (order matters - last added runs first)
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials="*" not in settings.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Response-Time"],
    )

    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint"""
        return {
            "message": f"Welcome to {settings.APP_NAME}",
            "version": "1.0.0",
            "docs": "/docs",
            "health": f"{settings.API_PREFIX}/health"
        }

    app.include_router(api_router, prefix=settings.API_PREFIX)
    return app


app = create_app()


def run():
    import uvicorn
    uvicorn.run(
        "hackportal.main:app",
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        reload=settings.DEBUG
    )


if __name__ == "__main__":
    run()
