# event_service/firestore_client.py
import logging
from typing import Optional

from google.api_core import exceptions as google_exceptions
from google.cloud import firestore

from .config import settings

logger = logging.getLogger(__name__)

# Errors any single document read or write may raise
STORE_ERRORS = (google_exceptions.GoogleAPICallError, google_exceptions.RetryError)

_client: Optional[firestore.Client] = None


def get_firestore_client() -> firestore.Client:
    global _client
    if _client is not None:
        return _client

    client_kwargs = {"project": settings.GCP_PROJECT_ID}
    if settings.FIRESTORE_DATABASE_NAME:
        client_kwargs["database"] = settings.FIRESTORE_DATABASE_NAME
    try:
        _client = firestore.Client(**client_kwargs)
    except Exception as e:
        logger.error(f"Cannot open Firestore ({client_kwargs}): {e}", exc_info=True)
        raise RuntimeError(f"Firestore client unavailable: {e}")

    logger.info(
        f"Firestore client opened on database "
        f"{settings.FIRESTORE_DATABASE_NAME or '(default)'}."
    )
    return _client


def get_db() -> firestore.Client:
    """FastAPI dependency handing the shared client to route handlers."""
    return get_firestore_client()
