from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from app.config import settings
from app.errors import register_exception_handlers
from app.api import fuel_stocks, tanks


# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Schema is managed by Alembic migrations
    logger.info("Starting fuel inventory service...")
    logger.info(
        f"Thresholds: critical <= {settings.critical_fill_percent}%, "
        f"water > {settings.water_contamination_mm}mm, "
        f"calibration every {settings.calibration_interval_days} days ({settings.station_timezone})"
    )
    yield
    logger.info("Shutting down fuel inventory service...")


app = FastAPI(
    title="Fuel Inventory Monitor",
    description="Tank fuel stocks, measurement history, calibrations, alerts and tank events",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Include routers
app.include_router(fuel_stocks.router, prefix="/api/fuel-stocks", tags=["Fuel Stocks"])
app.include_router(tanks.router, prefix="/api/tanks", tags=["Tanks"])


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


@app.get("/")
async def root():
    return {"message": "Fuel Inventory Monitor API", "docs": "/docs"}
