# FastAPI Application Entry Point
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

# Configuration and Observability
from permit_portal_service.app.config import settings
from permit_portal_service.app.observability import setup_opentelemetry, logger

# Initialize OpenTelemetry
setup_opentelemetry(service_name=settings.SERVICE_NAME_API)

# Import instrumentors after OTel SDK is initialized
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.pymongo import PymongoInstrumentor

# Database connection
from permit_portal_service.infrastructure.database.connection import connect_to_mongo, close_mongo_connection, get_db
from permit_portal_service.infrastructure.database.application_store import ensure_indexes

# API Routers
from permit_portal_service.app.api.v1.endpoints import health as health_router
from permit_portal_service.app.api.v1.endpoints import applications as applications_router

# --- FastAPI Application Instance ---
app = FastAPI(
    title="Permit Portal Service",
    description="Building and occupancy permit applications, payments and approval workflow.",
    version="1.0.0"
)

# --- Event Handlers for DB Connection & OTel Instrumentation ---
@app.on_event("startup")
async def startup_event():
    logger.info("FastAPI application startup...")
    try:
        PymongoInstrumentor().instrument()
        logger.info("PyMongo instrumentation complete.")

        await connect_to_mongo()
        async for db in get_db():
            await ensure_indexes(db)
            break
        logger.info("MongoDB connection established and indexes ensured.")
    except Exception as e:
        logger.error(f"Failed during startup: {e}", exc_info=True)
        raise

@app.on_event("shutdown")
async def shutdown_event():
    logger.info("FastAPI application shutdown...")
    close_mongo_connection()
    logger.info("MongoDB connection closed.")

FastAPIInstrumentor.instrument_app(app)
logger.info("FastAPI instrumentation complete.")

# Include API Routers
app.include_router(health_router.router)
app.include_router(applications_router.router, prefix="/api/v1/applications", tags=["Applications"])

# Uploaded documents and payment proofs are referenced by their /uploads/... path.
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False), name="uploads")

logger.info("API routers included. Application setup complete.")

# To run: uvicorn permit_portal_service.app.main:app --reload --port 8000
