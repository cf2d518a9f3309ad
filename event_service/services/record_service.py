# event_service/services/record_service.py
import logging
from typing import Optional

from google.cloud import firestore

from ..config import settings
from ..firestore_client import STORE_ERRORS
from .. import firestore_schema as schema
from ..models import ErrorKind, HandlerResult, Identity

logger = logging.getLogger(__name__)


async def post_log(
    db: firestore.Client,
    identity: Optional[Identity],
    title: str,
    place: str,
    state: str,
) -> HandlerResult[str]:
    """
    Appends an activity log entry for the caller and returns its document id.
    Store failures are reported back to the caller with the error text.
    """
    if identity is None:
        return HandlerResult.unauthenticated()

    log_record = {
        schema.LOG_TITLE_FIELD: title,
        schema.LOG_PLACE_FIELD: place,
        schema.LOG_STATE_FIELD: state,
        schema.LOG_DATE_FIELD: firestore.SERVER_TIMESTAMP,
        schema.LOG_UID_FIELD: identity.uid,
    }
    try:
        _, log_ref = db.collection(settings.LOGS_COLLECTION).add(log_record)
    except STORE_ERRORS as e:
        logger.error(
            f"Failed to write log '{title}' for user {identity.uid}: {e}",
            exc_info=True,
        )
        return HandlerResult.failure(ErrorKind.STORE, str(e))

    logger.info(f"Log {log_ref.id} written for user {identity.uid}: {title}/{state}")
    return HandlerResult[str].success(data=log_ref.id)


async def post_signature(db: firestore.Client, sign: str) -> HandlerResult[str]:
    try:
        _, signature_ref = db.collection(settings.SIGNATURES_COLLECTION).add(
            {
                schema.SIGNATURE_SIGN_FIELD: sign,
                schema.SIGNATURE_DATE_FIELD: firestore.SERVER_TIMESTAMP,
            }
        )
    except STORE_ERRORS as e:
        logger.error(f"Failed to store signature: {e}", exc_info=True)
        return HandlerResult.failure(ErrorKind.STORE)

    return HandlerResult[str].success(data=signature_ref.id)
