# event_service/services/program_service.py
import logging
from typing import Any, Callable, Dict, List, Optional

from google.cloud import firestore
from google.cloud.firestore_v1 import FieldFilter

from ..config import settings
from ..firestore_client import STORE_ERRORS
from .. import firestore_schema as schema
from ..models import ErrorKind, HandlerResult, Identity
from ..utils.array_sets import unique_in_order
from .user_service import (
    UserNotFoundError,
    get_user_data,
    store_failure,
    user_not_found,
    user_ref,
)

logger = logging.getLogger(__name__)

PROGRAM_FETCH_FAILURE_MESSAGE = "プログラムの取得に失敗しました"


def _rewrite_checkins(
    db: firestore.Client,
    uid: str,
    change: Callable[[List[str]], List[str]],
) -> List[str]:
    # Read-modify-write without a transaction; concurrent calls for the same
    # user race and the last write wins.
    current = get_user_data(db, uid).get(schema.USER_CHECKIN_PROGRAM_IDS_FIELD) or []
    updated = change(list(current))
    user_ref(db, uid).set(
        {schema.USER_CHECKIN_PROGRAM_IDS_FIELD: updated}, merge=True
    )
    return updated


async def check_in(
    db: firestore.Client, identity: Optional[Identity], program_id: str
) -> HandlerResult[List[str]]:
    """Adds program_id to the caller's check-in list; checking in twice is a no-op."""
    if identity is None:
        return HandlerResult.unauthenticated()
    try:
        checkins = _rewrite_checkins(
            db, identity.uid, lambda ids: unique_in_order(ids + [program_id])
        )
    except UserNotFoundError:
        return user_not_found()
    except STORE_ERRORS as e:
        return store_failure(f"check in to {program_id}", identity.uid, e)

    logger.info(f"User {identity.uid} checked in to program {program_id}")
    return HandlerResult[List[str]].success(data=checkins)


async def check_out(
    db: firestore.Client, identity: Optional[Identity], program_id: str
) -> HandlerResult[List[str]]:
    """Removes every occurrence of program_id from the caller's check-in list."""
    if identity is None:
        return HandlerResult.unauthenticated()
    try:
        checkins = _rewrite_checkins(
            db, identity.uid, lambda ids: [pid for pid in ids if pid != program_id]
        )
    except UserNotFoundError:
        return user_not_found()
    except STORE_ERRORS as e:
        return store_failure(f"check out of {program_id}", identity.uid, e)

    logger.info(f"User {identity.uid} checked out of program {program_id}")
    return HandlerResult[List[str]].success(data=checkins)


async def fetch_checkins(
    db: firestore.Client, identity: Optional[Identity]
) -> HandlerResult[List[str]]:
    # Anonymous callers simply have nothing checked in
    if identity is None:
        return HandlerResult[List[str]].success(data=[])
    try:
        user_data = get_user_data(db, identity.uid)
    except UserNotFoundError:
        return user_not_found()
    except STORE_ERRORS as e:
        logger.error(
            f"Failed to fetch check-ins for user {identity.uid}: {e}", exc_info=True
        )
        return HandlerResult.failure(ErrorKind.STORE, PROGRAM_FETCH_FAILURE_MESSAGE)

    return HandlerResult[List[str]].success(
        data=user_data.get(schema.USER_CHECKIN_PROGRAM_IDS_FIELD) or []
    )


async def list_open_programs(
    db: firestore.Client,
) -> HandlerResult[List[Dict[str, Any]]]:
    try:
        program_snaps = (
            db.collection(settings.PROGRAMS_COLLECTION)
            .where(filter=FieldFilter(schema.PROGRAM_IS_OPEN_FIELD, "==", True))
            .stream()
        )
        programs = [
            {**(program_snap.to_dict() or {}), "id": program_snap.id}
            for program_snap in program_snaps
        ]
    except STORE_ERRORS as e:
        logger.error(f"Failed to list open programs: {e}", exc_info=True)
        return HandlerResult.failure(ErrorKind.STORE, PROGRAM_FETCH_FAILURE_MESSAGE)

    logger.info(f"Found {len(programs)} open programs.")
    return HandlerResult[List[Dict[str, Any]]].success(data=programs)
