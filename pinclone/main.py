import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from pinclone.config import Settings, settings as default_settings
from pinclone.core.errors import ConfigurationError
from pinclone.core.middleware import SecurityHeadersMiddleware, SessionCookieMiddleware
from pinclone.database.supabase_client import close_supabase, create_supabase
from pinclone.modules.auth import routes as auth_routes
from pinclone.modules.pins import routes as pins_routes
from pinclone.modules.profiles import routes as profiles_routes
from pinclone.modules.search import routes as search_routes

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%SZ",
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or default_settings
    configure_logging(settings)

    limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
    app = FastAPI(
        title=settings.app_name,
        debug=settings.debug,
        redirect_slashes=False,
    )
    app.state.settings = settings
    app.state.supabase = None
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(request: Request, exc: ConfigurationError):
        logger.error("Configuration error: %s", exc)
        return JSONResponse(status_code=500, content={"detail": "Server configuration error"})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception: %s", exc)
        if settings.is_production:
            return JSONResponse(status_code=500, content={"detail": "Internal server error"})
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    # Last added runs first: CORS, security headers, session cookies, rate limit
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(SessionCookieMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins_list(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include module routes
    app.include_router(pins_routes.router, prefix="/api/v1")
    app.include_router(profiles_routes.router, prefix="/api/v1")
    app.include_router(search_routes.router, prefix="/api/v1")
    app.include_router(auth_routes.router, prefix="/api/v1")
    app.include_router(auth_routes.callback_router)

    @app.on_event("startup")
    async def startup_event():
        logger.info("Application startup")
        if app.state.supabase is not None:
            return
        if not settings.is_supabase_configured:
            # Session middleware passes requests through; data routes answer 500
            logger.error("Supabase URL or key is missing; store-backed routes are unavailable")
            return
        app.state.supabase = create_supabase(settings)

    @app.on_event("shutdown")
    async def shutdown_event():
        logger.info("Application shutdown")
        if app.state.supabase is not None:
            close_supabase(app.state.supabase)
            app.state.supabase = None

    @app.get("/")
    @limiter.exempt
    async def root():
        return {"message": f"Welcome to {settings.app_name}", "status": "healthy"}

    @app.get("/health")
    @limiter.exempt
    async def health():
        return {"status": "healthy"}

    @app.get("/ready")
    @limiter.exempt
    async def ready():
        """Readiness probe: ready once the store client exists."""
        if app.state.supabase is None:
            return JSONResponse(status_code=503, content={"status": "unavailable"})
        return {"status": "ready"}

    return app


app = create_app()
