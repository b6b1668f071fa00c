import os
from datetime import datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from app.routers import candidates, jobs, matches, dashboard

from app.utils.logging_config import configure_for_environment, get_logger
from app.middleware.error_handlers import (
    ExceptionHandlerMiddleware,
    PerformanceMiddleware,
)

configure_for_environment()
logger = get_logger(__name__)

API_VERSION = "1.0.0"
SLOW_REQUEST_THRESHOLD = float(os.getenv("SLOW_REQUEST_THRESHOLD", "2.0"))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager"""
    logger.info("Talent Match API starting up...")
    logger.info("Initializing database indexes...")

    try:
        from app.services.db import init_indexes
        await init_indexes()
        logger.info("Database indexes initialized successfully")
    except Exception as e:
        logger.warning(f"Database index initialization had issues: {e}")
        logger.info("Application will continue - some operations may be slower without indexes")

    logger.info("Talent Match API startup completed")

    yield

    logger.info("Talent Match API shutting down...")


app = FastAPI(title="Talent Match API", version=API_VERSION, lifespan=lifespan)

# Middleware is LIFO: the exception handler is added last so it wraps the timer
app.add_middleware(PerformanceMiddleware, slow_request_threshold=SLOW_REQUEST_THRESHOLD)
app.add_middleware(ExceptionHandlerMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
@app.head("/")
async def root():
    """Root endpoint - handles both GET and HEAD requests for health checks"""
    logger.debug("Root endpoint accessed")
    return {"message": "Welcome to the Talent Match API", "version": API_VERSION, "status": "ok"}


@app.get("/health")
@app.head("/health")
async def health_check():
    """Health check endpoint - handles both GET and HEAD requests"""
    return {"status": "healthy", "timestamp": datetime.utcnow().isoformat()}


app.include_router(candidates.router, prefix="/api/candidates", tags=["candidates"])
app.include_router(jobs.router, prefix="/api/jobs", tags=["jobs"])
app.include_router(matches.router, prefix="/api/matches", tags=["matches"])
app.include_router(dashboard.router, prefix="/api/dashboard", tags=["dashboard"])

logger.info("Talent Match API initialized successfully")
