"""FastAPI application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tokscrape import __version__
from tokscrape.api.routers import health, scrape
from tokscrape.config import get_settings

logger = logging.getLogger(__name__)

ENDPOINTS = {
    "/api/scrape": "POST - Scrape a single TikTok URL",
    "/api/scrape/batch": "POST - Scrape multiple TikTok URLs",
    "/api/jobs/{job_id}": "GET - Status and results of a scrape job",
    "/api/status": "GET - Check API status",
    "/api/status/backend": "GET - Check database connectivity",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    # Missing credentials stop the server here rather than failing every job
    settings.validate_backend()
    if not settings.api.api_key:
        logger.warning("WARNING: No API_KEY set in environment variables. API is unsecured!")
    logger.info(f"TikTok scraper API starting ({settings.api.environment})")
    yield


app = FastAPI(
    title="TikTok Scraper API",
    description="Scrape TikTok video pages into a database",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(health.router, prefix="/api")
app.include_router(scrape.router)
app.include_router(scrape.router, prefix="/api")


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"success": False, "error": exc.detail})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"success": False, "error": "Internal server error"})


@app.get("/")
@app.get("/api")
async def index() -> dict:
    return {"message": "TikTok scraper API is running", "endpoints": ENDPOINTS}
