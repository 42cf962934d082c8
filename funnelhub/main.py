"""
FunnelHub Campaign Dashboard
Main FastAPI application
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from funnelhub.config import get_settings
from funnelhub.utils.logger import log
from funnelhub import __version__

# Import routers
from funnelhub.api import health, dashboard

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    # Startup
    log.info(f"Starting {settings.app_name} v{__version__}")
    log.info(f"Environment: {settings.environment}")

    # Initialize database
    try:
        from funnelhub.models.base import init_db
        init_db()
        log.info("Database initialized")
    except Exception as e:
        log.error(f"Database initialization error: {str(e)}")

    yield

    # Shutdown
    log.info("Shutting down application")


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=__version__,
    description="""
    Multi-source campaign dashboard

    Reconciles campaign data from:
    - CRM lead pipeline (funnel stages, revenue)
    - Meta Ads (spend, impressions, clicks, leads)
    - Google Ads (spend, impressions, clicks, conversions)

    into one campaign -> ad set -> ad tree with true ROAS.
    """,
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, tags=["health"])
app.include_router(dashboard.router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("funnelhub.main:app", host=settings.api_host, port=settings.api_port, reload=settings.debug)
