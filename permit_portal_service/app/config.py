# Application Configuration using Pydantic BaseSettings
from pydantic_settings import BaseSettings
from typing import Optional

class AppSettings(BaseSettings):
    # MongoDB
    MONGO_DETAILS: str = "mongodb://mongo:27017"
    DB_NAME: str = "permit_portal_db"
    BUILDING_COLLECTION_NAME: str = "building_applications"
    OCCUPANCY_COLLECTION_NAME: str = "occupancy_applications"
    USERS_COLLECTION_NAME: str = "users" # Owned by the account service, read only here

    # Uploaded files (served statically under /uploads)
    UPLOAD_DIR: str = "uploads"
    MAX_REVISION_FILES: int = 10

    # Workflow
    ENFORCE_STATUS_TRANSITIONS: bool = True

    # Observability
    LOG_LEVEL: str = "INFO"
    OTEL_EXPORTER_OTLP_TRACES_ENDPOINT: Optional[str] = None
    OTEL_EXPORTER_OTLP_METRICS_ENDPOINT: Optional[str] = None
    SERVICE_NAME_API: str = "permit-portal-api"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

# Instantiate settings to be imported by other modules
settings = AppSettings()

import logging
logger = logging.getLogger(__name__)
logger.info("Application settings module initialized.")
