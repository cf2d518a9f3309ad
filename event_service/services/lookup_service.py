# event_service/services/lookup_service.py
import logging
from typing import Any, Dict, List, Optional

from google.cloud import firestore

from ..config import settings
from ..firestore_client import STORE_ERRORS
from .. import firestore_schema as schema
from ..models import ErrorKind, HandlerResult, ModeInfo, Place
from .user_service import UserNotFoundError, get_user_data, store_failure, user_not_found

logger = logging.getLogger(__name__)


def _fetch_document(
    db: firestore.Client, collection: str, doc_id: str
) -> HandlerResult[Dict[str, Any]]:
    try:
        doc_snap = db.collection(collection).document(doc_id).get()
    except STORE_ERRORS as e:
        logger.error(f"Failed to read {collection}/{doc_id}: {e}", exc_info=True)
        return HandlerResult.failure(ErrorKind.STORE)

    if not doc_snap.exists:
        logger.warning(f"Document not found: {collection}/{doc_id}")
        return HandlerResult.failure(
            ErrorKind.NOT_FOUND, f"{collection}/{doc_id} not found."
        )
    return HandlerResult[Dict[str, Any]].success(data=doc_snap.to_dict() or {})


async def fetch_qr_info(db: firestore.Client, qr_id: str) -> HandlerResult[Dict[str, Any]]:
    return _fetch_document(db, settings.QR_COLLECTION, qr_id)


async def fetch_program_info(
    db: firestore.Client, program_id: str
) -> HandlerResult[Dict[str, Any]]:
    return _fetch_document(db, settings.PROGRAMS_COLLECTION, program_id)


async def fetch_places(
    db: firestore.Client, place_id: Optional[str] = None
) -> HandlerResult[List[Place]]:
    """
    Returns a single place (as a one-element list) when place_id is given,
    otherwise the whole collection. A missing place gives an empty list.
    """
    places_ref = db.collection(settings.PLACES_COLLECTION)
    try:
        if place_id:
            place_snap = places_ref.document(place_id).get()
            place_snaps = [place_snap] if place_snap.exists else []
        else:
            place_snaps = list(places_ref.stream())
    except STORE_ERRORS as e:
        logger.error(f"Failed to fetch places: {e}", exc_info=True)
        return HandlerResult.failure(ErrorKind.STORE)

    places = [
        Place.model_validate({**(place_snap.to_dict() or {}), "id": place_snap.id})
        for place_snap in place_snaps
    ]
    return HandlerResult[List[Place]].success(data=places)


async def fetch_mode(db: firestore.Client, uid: str) -> HandlerResult[ModeInfo]:
    """Returns the deployment-wide developer flag and the user's own flag."""
    try:
        mode_snap = (
            db.collection(settings.MODE_COLLECTION)
            .document(settings.MODE_DOCUMENT_ID)
            .get()
        )
        user_data = get_user_data(db, uid)
    except UserNotFoundError:
        return user_not_found()
    except STORE_ERRORS as e:
        return store_failure("fetch mode", uid, e)

    if mode_snap.exists:
        mode_data = mode_snap.to_dict() or {}
    else:
        logger.warning("Mode document missing; treating deployment as non-dev.")
        mode_data = {}

    return HandlerResult[ModeInfo].success(
        data=ModeInfo(
            web_mode=bool(mode_data.get(schema.MODE_DEV_FIELD, False)),
            user_mode=bool(user_data.get(schema.USER_DEV_FIELD, False)),
        )
    )
