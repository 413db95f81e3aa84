import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from mvo.config import settings
from mvo.modules.auth import routes as auth_routes
from mvo.modules.ideas import routes as ideas_routes
from mvo.modules.votes import routes as votes_routes
from mvo.modules.comments import routes as comments_routes
from mvo.modules.spaces import routes as spaces_routes
from mvo.modules.media import routes as media_routes
from mvo.modules.synthesis import routes as synthesis_routes
from mvo.modules.votes.debounce import vote_coalescer

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    redirect_slashes=False,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


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
                    (b"Referrer-Policy", b"strict-origin-when-cross-origin"),
                ])
            await send(message)

        await self.app(scope, receive, send_with_headers)


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for module_routes in (
    auth_routes,
    ideas_routes,
    votes_routes,
    comments_routes,
    spaces_routes,
    media_routes,
    synthesis_routes,
):
    app.include_router(module_routes.router, prefix="/api/v1")


@app.on_event("startup")
async def startup_event():
    logger.info(f"{settings.app_name} starting ({settings.environment})")
    if not settings.storage_configured:
        logger.warning("Storage is not configured; /upload will return 503")
    if not settings.openai_api_key:
        logger.warning("OPENAI_API_KEY not set; synthesis will return 500")


@app.on_event("shutdown")
async def shutdown_event():
    # push debounced votes that have not been written yet
    pending = len(vote_coalescer)
    if pending:
        logger.info(f"Flushing {pending} pending vote updates")
    await vote_coalescer.flush_all()
    vote_coalescer.close_all()
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
    """Readiness probe: reports whether optional integrations are configured."""
    return {
        "status": "ready",
        "storage": settings.storage_configured,
        "ai": bool(settings.openai_api_key),
    }
