"""FastAPI application entry point."""
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from parcelcheck.config import settings
from parcelcheck.services import get_rule_catalog
from parcelcheck.utils.logging import setup_logging, get_logger
from parcelcheck.api.routes import health, snapshot, validation, rules

setup_logging()
logger = get_logger(__name__)

SERVICE_TITLE = "Parcel Feasibility API"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the rule catalog once at startup so the first request does not pay for it."""
    catalog = get_rule_catalog()
    logger.info("Starting application",
                environment=settings.environment,
                rule_count=len(catalog.all_rules()))
    yield
    logger.info("Shutting down application")


app = FastAPI(
    title=SERVICE_TITLE,
    description="Citation-backed zoning, septic and environmental feasibility reports for residential parcels",
    version=settings.api_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if not settings.is_production else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, tags=["Health"])
for module, tag in ((snapshot, "Snapshot"), (validation, "Validation"), (rules, "Rules")):
    app.include_router(module.router, prefix=f"/api/{settings.api_version}", tags=[tag])


@app.get("/")
async def root():
    return {
        "service": SERVICE_TITLE,
        "version": settings.api_version,
        "environment": settings.environment,
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "parcelcheck.api.main:app",
        host=settings.host,
        port=settings.port,
        reload=not settings.is_production,
        log_level=settings.log_level.lower(),
    )
