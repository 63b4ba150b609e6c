import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from prosupps.config import settings
from prosupps.core.context import session_registry
from prosupps.core.errors import (
    BackendError, OperationCancelled, TransportError, ValidationError,
    WriteBusyError, WriteRefusedError
)
from prosupps.database.backend import auth_events
from prosupps.modules.admin import routes as admin_routes
from prosupps.modules.auth import routes as auth_routes
from prosupps.modules.products import routes as products_routes
from prosupps.modules.profile import routes as profile_routes
from prosupps.modules.site import routes as site_routes

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def default_rate_limit() -> str:
    return settings.rate_limit


# read on every request
limiter = Limiter(key_func=get_remote_address, default_limits=[default_rate_limit])
app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    redirect_slashes=False,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(ValidationError)
async def validation_exception_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=422, content={"detail": exc.message, "field": exc.field})


@app.exception_handler(BackendError)
async def backend_exception_handler(request: Request, exc: BackendError):
    logger.error("Backend error on %s %s: %s", request.method, request.url.path, exc.message)
    content = {"detail": exc.message}
    if isinstance(exc, TransportError):
        content["retryable"] = True
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(WriteRefusedError)
async def write_refused_handler(request: Request, exc: WriteRefusedError):
    return JSONResponse(status_code=409, content={"detail": exc.message, "warning": True})


@app.exception_handler(WriteBusyError)
async def write_busy_handler(request: Request, exc: WriteBusyError):
    return JSONResponse(status_code=409, content={"detail": exc.message, "retryable": True})


@app.exception_handler(OperationCancelled)
async def cancelled_handler(request: Request, exc: OperationCancelled):
    return JSONResponse(status_code=409, content={"detail": exc.message})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    if settings.is_production:
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})
    return JSONResponse(status_code=500, content={"detail": str(exc)})


class SecurityHeadersMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].extend([
                    (b"X-Content-Type-Options", b"nosniff"),
                    (b"X-Frame-Options", b"DENY"),
                    (b"X-XSS-Protection", b"1; mode=block"),
                ])
            await send(message)

        await self.app(scope, receive, send_with_headers)


app.add_middleware(SlowAPIMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Redirect"],
)

# Include module routes
app.include_router(site_routes.router, prefix="/api/v1")
app.include_router(products_routes.router, prefix="/api/v1")
app.include_router(auth_routes.router, prefix="/api/v1")
app.include_router(profile_routes.router, prefix="/api/v1")
app.include_router(admin_routes.router, prefix="/api/v1")


@app.on_event("startup")
async def startup_event():
    session_registry.attach(auth_events)
    logger.info("Application startup")


@app.on_event("shutdown")
async def shutdown_event():
    session_registry.detach()
    logger.info("Application shutdown")


@app.get("/")
async def root():
    return {"message": f"Welcome to {settings.app_name}", "status": "healthy"}


@app.get("/health")
@limiter.exempt
async def health():
    return {"status": "healthy"}


@app.get("/ready")
@limiter.exempt
async def ready():
    """Readiness check: extend here with a Supabase ping if needed."""
    return {"status": "ready"}
