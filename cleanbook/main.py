from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cleanbook.core.config import get_settings
from cleanbook.db.session import SessionLocal
from cleanbook.routers.bookings import router as bookings_router
from cleanbook.routers.health import router as health_router
from cleanbook.routers.promotions import router as promotions_router
from cleanbook.services.promotion_scheduler import build_promotion_scheduler

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    scheduler = build_promotion_scheduler(settings, SessionLocal)
    app.state.promotion_scheduler = scheduler

    if settings.PROMOTION_SCHEDULER_ENABLED:
        scheduler.start()
    else:
        logger.info("Promotion scheduler disabled by configuration")

    yield

    await scheduler.shutdown()


app = FastAPI(
    title=settings.APP_NAME,
    description="Cleaning services booking API - service catalog, bookings, and promotions.",
    version="0.1.0",
    lifespan=lifespan,
)


# Global exception handler for unhandled errors
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected server errors with structured response."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": "An unexpected error occurred. Please try again later.",
            "request_id": request.headers.get("X-Request-ID"),
        }
    )

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Allow all origins for now
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router)
app.include_router(promotions_router, prefix="/api")
app.include_router(bookings_router, prefix="/api")

@app.get("/")
def read_root():
    return {
        "message": "Welcome to Cleanbook API",
        "docs": "/docs",
        "health": "/health"
    }
