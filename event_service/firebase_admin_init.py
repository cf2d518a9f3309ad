# event_service/firebase_admin_init.py
import logging

import firebase_admin

from .config import settings

logger = logging.getLogger(__name__)


def initialize_firebase_admin() -> firebase_admin.App:
    """
    Returns the default Firebase app, creating it on first use.
    Session cookies are minted and verified through this app.
    """
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass  # default app not created yet

    options = {"projectId": settings.GCP_PROJECT_ID} if settings.GCP_PROJECT_ID else None
    try:
        app = firebase_admin.initialize_app(options=options)
    except ValueError:
        # Another request created it between get_app and initialize_app
        return firebase_admin.get_app()
    except Exception as e:
        logger.error(f"Firebase Admin SDK could not start: {e}", exc_info=True)
        raise RuntimeError(f"Firebase Admin SDK initialization failed: {e}")

    logger.info(f"Firebase Admin SDK ready (project: {settings.GCP_PROJECT_ID or 'from ADC'}).")
    return app
