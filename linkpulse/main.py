"""
FastAPI Application Entry Point

This module initializes the FastAPI application and configures:
- API routes
- Middleware (logging, CORS, etc.)
- Rate limiting
- Startup/shutdown of the shared HTTP client and visit dispatcher

Run with:
    uvicorn linkpulse.main:app
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from linkpulse.api import endpoints
from linkpulse.core.lifecycle import initialize_resources, shutdown_resources
from linkpulse.core.rate_limit import limiter
from linkpulse.core.setting import settings
from linkpulse.middleware.logging import add_logging_middleware, configure_logging

configure_logging(settings.LOG_LEVEL)

# Title and description are used in auto-generated API documentation
app = FastAPI(
    title="LinkPulse",
    description="URL shortener with visit attribution and per-user analytics",
    version="1.0.0",
    docs_url="/docs",  # Swagger UI documentation
    redoc_url="/redoc",  # ReDoc documentation
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

add_logging_middleware(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Health endpoints defined before router to match before catch-all route
@app.get("/", tags=["Health"])
async def root():
    """
    Root endpoint for health checks.

    Also the target of redirects for empty aliases and store failures.
    """
    return {
        "message": "LinkPulse",
        "version": "1.0.0",
        "docs": "/docs"
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint for monitoring.

    Returns:
        Health status of the service
    """
    return {"status": "healthy"}


app.include_router(endpoints.router, tags=["Links"])


@app.on_event("startup")
async def startup_event():
    """Initialize shared resources on startup."""
    await initialize_resources(app, settings)


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown."""
    await shutdown_resources(app, settings)
