# permit_portal_service/app/__init__.py
import logging

logger = logging.getLogger(__name__)
logger.info("Permit Portal App Initialized")
