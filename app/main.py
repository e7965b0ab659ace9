import logging

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.core.config import settings
from app.core.context import build_context
from app.core.errors import RegistryError
from app.core.rate_limit import limiter
from app.api.v1.api import api_router
from app.middleware.error_middleware import ErrorHandlingMiddleware, registry_error_handler

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Deletion approval and work item dispatch for the preservation registry",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.state.limiter = limiter
app.state.context = build_context(settings)
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_exception_handler(RegistryError, registry_error_handler)

# Disable rate limiting for tests
if settings.testing:
    limiter.enabled = False

app.add_middleware(ErrorHandlingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT"],
    allow_headers=["Authorization", "Content-Type"],
)


@app.on_event("startup")
async def startup_event():
    if not settings.batch_deletion_key:
        logger.warning("BATCH_DELETION_KEY is not set. Batch deletion is disabled.")
    logger.info(f"{settings.app_name} starting in {settings.environment} environment, NSQ at {settings.nsq_url}")


# Include API routes
app.include_router(api_router, prefix=settings.api_v1_prefix)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return Response(status_code=200)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug
    )
