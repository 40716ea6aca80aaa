import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from waitlist import __version__
from waitlist.api.api import api_router, pages_router
from waitlist.core.config import Settings, settings as default_settings
from waitlist.core.exceptions import PersistenceError, RateLimitExceeded
from waitlist.services.email_service import EmailService, build_email_service
from waitlist.services.page_renderer import PageRenderer
from waitlist.services.stores import WaitlistStore, build_store
from waitlist.utils.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    # Configure audit logger (JSON lines)
    audit_logger = logging.getLogger("audit")
    if not audit_logger.handlers:
        handler = logging.StreamHandler()
        # Keep raw JSON line without extra prefixes
        handler.setFormatter(logging.Formatter("%(message)s"))
        audit_logger.addHandler(handler)
    audit_logger.setLevel(logging.INFO)
    # Do not propagate to root to avoid duplication
    audit_logger.propagate = False


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[WaitlistStore] = None,
    notifier: Optional[EmailService] = None,
    rate_limiter: Optional[RateLimiter] = None,
    renderer: Optional[PageRenderer] = None,
) -> FastAPI:
    """Build the application.

    Handles passed in are used as-is; anything missing is opened from
    ``settings`` in the startup hook and closed again on shutdown.
    """
    settings = settings or default_settings

    app = FastAPI(
        title="Waitlist API",
        description="Pre-registration waiting list with email confirmation.",
        version=__version__,
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None if settings.is_production else "/redoc",
    )

    app.state.settings = settings
    app.state.store = store
    app.state.notifier = notifier
    app.state.rate_limiter = rate_limiter
    app.state.renderer = renderer or PageRenderer()
    owned = []

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    def open_resources():
        logger.info(f"Environment variables check: {settings.connectivity_report()}")
        if app.state.store is None or app.state.notifier is None:
            # Raises ConfigurationError, which aborts startup
            settings.require_connectivity()
        if app.state.store is None:
            app.state.store = build_store(settings)
            owned.append(app.state.store)
        if app.state.notifier is None:
            app.state.notifier = build_email_service(settings, app.state.renderer)
        if app.state.rate_limiter is None and settings.RATE_LIMIT_ENABLED:
            app.state.rate_limiter = RateLimiter.from_url(
                settings.REDIS_URL,
                settings.RATE_LIMIT_MAX_REQUESTS,
                settings.RATE_LIMIT_WINDOW_SECONDS,
            )
            owned.append(app.state.rate_limiter)
        logger.info("Waitlist service ready")

    @app.on_event("shutdown")
    def close_resources():
        while owned:
            owned.pop().close()

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_exceeded(request: Request, exc: RateLimitExceeded):
        logger.warning(f"Rate limit exceeded: {exc.details}")
        return JSONResponse(status_code=429, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def invalid_request(request: Request, exc: RequestValidationError):
        # Malformed sign-up bodies answer like a bad address
        if request.url.path == app.url_path_for("pre_register"):
            return JSONResponse(status_code=400, content={"error": "invalid email"})
        return await request_validation_exception_handler(request, exc)

    app.include_router(api_router, prefix="/api")
    app.include_router(pages_router)

    @app.get("/health")
    def health_check():
        return {"status": "healthy"}

    @app.get("/health/ready")
    def readiness_check():
        try:
            app.state.store.ping()
        except PersistenceError as e:
            logger.error(f"Readiness check failed: {e.details}")
            return JSONResponse(status_code=503, content={"status": "unavailable"})
        return {"status": "ready"}

    # Landing page; mounted last so it never shadows the routes above
    static_dir = Path(settings.STATIC_DIR)
    if static_dir.is_dir():
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")

    return app


app = create_app()
