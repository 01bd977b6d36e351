"""
FastAPI main application.

Analytics dashboard backend API: date range resolution and data export.
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from analytics_api.config import settings
from analytics_api.api import (
    date_range_router,
    export_router,
)

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Date range resolution and CSV/JSON export for analytics dashboards",
    version="1.0.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(date_range_router)
app.include_router(export_router)


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "app": settings.app_name,
        "environment": settings.environment,
        "timezone": settings.timezone,
    }


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "message": "Analytics Dashboard API",
        "docs": "/api/docs",
        "health": "/api/health"
    }


# Startup event
@app.on_event("startup")
async def startup_event():
    """Run on application startup."""
    logger.info(f"Starting {settings.app_name} in {settings.environment} mode")
    logger.info(f"Reporting timezone: {settings.timezone}")


# Shutdown event
@app.on_event("shutdown")
async def shutdown_event():
    """Run on application shutdown."""
    logger.info("Shutting down Analytics Dashboard API")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "analytics_api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=settings.log_level.lower()
    )
