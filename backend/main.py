"""
Marketing Analytics API

FastAPI backend serving GA4, Search Console and Google Ads data
normalized for the dashboard widgets.
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging
import sys
from pathlib import Path

# Backend packages and the repo-level connectors package
sys.path.insert(0, str(Path(__file__).parent))
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import get_settings
from routers import ads, ga4, gsc
from services.errors import DashboardError

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("Starting Marketing Analytics API...")
    logger.info("CORS allowed origins: %s", settings.cors_origins)
    yield
    logger.info("Shutting down...")


app = FastAPI(
    title="Marketing Analytics API",
    description="GA4, Search Console and Google Ads data for the marketing dashboard",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DashboardError)
async def dashboard_error_handler(request: Request, exc: DashboardError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Include routers
app.include_router(ga4.router, prefix="/api/ga4", tags=["GA4"])
app.include_router(gsc.router, prefix="/api/gsc", tags=["Search Console"])
app.include_router(ads.router, prefix="/api/ads", tags=["Google Ads"])


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "healthy", "service": "Marketing Analytics API"}


@app.get("/api/health")
async def health_check():
    """Detailed health check."""
    return {
        "status": "healthy",
        "version": "1.0.0",
        "endpoints": [
            "/api/ga4/data",
            "/api/ga4/config",
            "/api/gsc/data",
            "/api/ads/data",
        ]
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
