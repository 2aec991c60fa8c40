"""
Aura Stylist Service v1.0.0
Wardrobe-constrained outfit generation and style advice.

API ROUTES:
-----------
- POST /outfits/generate            - Outfits for one occasion
- POST /outfits/weekly              - One generation per day-occasion
- POST /outfits/seasonal            - Fixed occasions for a season
- POST /recommendations             - Personalized style recommendations
- POST /recommendations/declutter   - Declutter guidance
- POST /wardrobe/analysis           - Per-item keep/alter/donate analysis
- GET  /health, /metrics            - Health and monitoring

Every generation route requires the X-User-Id header.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from stylist_service import __version__
from stylist_service.app.routes import router
from stylist_service.config import get_provider_status, validate_provider_config
from stylist_service.core.errors import StylistError
from stylist_service.db import mongo
from stylist_service.observability import is_logging_enabled

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("=" * 50)
    logger.info(f"Aura Stylist Service v{__version__} Starting...")
    logger.info("=" * 50)

    mongo_connected = mongo.connect()
    logger.info(f"MongoDB: {'connected' if mongo_connected else 'disconnected'}")

    provider_status = get_provider_status()
    logger.info(
        f"Planner: {provider_status['planner_provider']}, "
        f"Advisor: {provider_status['advisor_provider']}"
    )
    for warning in validate_provider_config():
        logger.warning(f"Config: {warning}")

    logger.info(f"Logging: {'enabled' if is_logging_enabled() else 'disabled'}")
    logger.info("Service ready! Metrics available at /metrics")
    logger.info("=" * 50)

    yield

    logger.info("Service shutting down...")
    mongo.reset_connection()


app = FastAPI(
    title="Aura Stylist Service",
    description="Wardrobe-constrained outfit generation and style advice",
    version=__version__,
    lifespan=lifespan
)

# ============================================================================
# MIDDLEWARE
# ============================================================================
app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])


# ============================================================================
# ERROR HANDLERS
# ============================================================================

@app.exception_handler(StylistError)
async def stylist_error_handler(request: Request, exc: StylistError):
    """Map domain errors to a user-safe {"message"} body."""
    logger.warning(f"{request.url.path} -> {exc.status_code} ({exc.kind})")
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


app.include_router(router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("stylist_service.app.main:app", host="0.0.0.0", port=8000, reload=False)
