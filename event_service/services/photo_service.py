# event_service/services/photo_service.py
import datetime
import logging
from typing import Dict, Iterable, List, Optional

from google.api_core import exceptions as google_exceptions
from google.cloud import firestore

from ..config import settings
from ..firestore_client import STORE_ERRORS
from .. import firestore_schema as schema
from ..models import ErrorKind, HandlerResult, Identity, PhotoFeedItem
from ..utils.array_sets import unique_in_order
from ..utils.date_format import format_post_age
from .user_service import (
    UserNotFoundError,
    get_user_data,
    store_failure,
    user_not_found,
    user_ref,
)

logger = logging.getLogger(__name__)

PHOTO_NOT_FOUND_MESSAGE = "写真が見つかりません"


def _fetch_nicknames(db: firestore.Client, uids: Iterable[str]) -> Dict[str, str]:
    refs = [user_ref(db, uid) for uid in uids]
    if not refs:
        return {}

    nicknames: Dict[str, str] = {}
    for user_snap in db.get_all(refs):
        if not user_snap.exists:
            continue
        user_settings = (user_snap.to_dict() or {}).get(schema.USER_SETTINGS_FIELD) or {}
        nickname = user_settings.get(schema.SETTINGS_NICKNAME)
        if nickname is not None:
            nicknames[user_snap.id] = nickname
    return nicknames


async def fetch_photo_feed(
    db: firestore.Client, now: Optional[datetime.datetime] = None
) -> HandlerResult[List[PhotoFeedItem]]:
    """
    Lists every photo, newest first, with the owner's nickname and a
    human-readable post age. Owners are resolved with one batched read.
    """
    if now is None:
        now = datetime.datetime.now(datetime.timezone.utc)

    try:
        photo_snaps = list(
            db.collection(settings.PHOTOS_COLLECTION)
            .order_by(schema.PHOTO_DATE_FIELD, direction=firestore.Query.DESCENDING)
            .stream()
        )
        photos = [(snap.id, snap.to_dict() or {}) for snap in photo_snaps]
        owner_uids = unique_in_order(
            photo[schema.PHOTO_UID_FIELD]
            for _, photo in photos
            if photo.get(schema.PHOTO_UID_FIELD)
        )
        nicknames = _fetch_nicknames(db, owner_uids)
    except STORE_ERRORS as e:
        return store_failure("fetch photo feed", None, e)

    feed: List[PhotoFeedItem] = []
    for photo_id, photo in photos:
        posted_at = photo.get(schema.PHOTO_DATE_FIELD)
        if not isinstance(posted_at, datetime.datetime):
            logger.warning(
                f"Photo {photo_id} has no usable post date ({posted_at!r}); skipping."
            )
            continue

        owner_uid = photo.get(schema.PHOTO_UID_FIELD)
        nickname = nicknames.get(owner_uid)
        if nickname is None:
            logger.warning(
                f"Owner {owner_uid} of photo {photo_id} not found; using placeholder nickname."
            )
            nickname = settings.UNKNOWN_NICKNAME

        fav = photo.get(schema.PHOTO_FAV_FIELD)
        if fav is None:
            logger.warning(f"Photo {photo_id} has no fav count; using 0.")
            fav = 0

        feed.append(
            PhotoFeedItem(
                id=photo_id,
                nick_name=nickname,
                fav=fav,
                url=photo.get(schema.PHOTO_URL_FIELD),
                place=photo.get(schema.PHOTO_PLACE_FIELD),
                post_date=format_post_age(posted_at, now),
            )
        )

    logger.info(f"Returning {len(feed)} photos for the feed.")
    return HandlerResult[List[PhotoFeedItem]].success(data=feed)


async def fetch_likes(
    db: firestore.Client, identity: Optional[Identity]
) -> HandlerResult[List[str]]:
    if identity is None:
        return HandlerResult.unauthenticated()
    try:
        user_data = get_user_data(db, identity.uid)
    except UserNotFoundError:
        return user_not_found()
    except STORE_ERRORS as e:
        return store_failure("fetch likes", identity.uid, e)

    return HandlerResult[List[str]].success(
        data=user_data.get(schema.USER_LIKES_FIELD) or []
    )


async def set_likes(
    db: firestore.Client, identity: Optional[Identity], likes: List[str]
) -> HandlerResult[List[str]]:
    """Replaces the caller's liked photo ids (merge write, other fields untouched)."""
    if identity is None:
        return HandlerResult.unauthenticated()

    unique_likes = unique_in_order(likes)
    try:
        user_ref(db, identity.uid).set(
            {schema.USER_LIKES_FIELD: unique_likes}, merge=True
        )
    except STORE_ERRORS as e:
        return store_failure("update likes", identity.uid, e)

    return HandlerResult[List[str]].success(data=unique_likes)


async def update_photo_favorites(
    db: firestore.Client, photo_id: str, fav_count: int
) -> HandlerResult[int]:
    """Overwrites photos/{photo_id}.fav. No concurrency check: last write wins."""
    try:
        db.collection(settings.PHOTOS_COLLECTION).document(photo_id).update(
            {schema.PHOTO_FAV_FIELD: fav_count}
        )
    except google_exceptions.NotFound:
        logger.warning(f"Cannot update favorites, photo not found: {photo_id}")
        return HandlerResult.failure(ErrorKind.NOT_FOUND, PHOTO_NOT_FOUND_MESSAGE)
    except STORE_ERRORS as e:
        logger.error(
            f"Failed to update favorites of photo {photo_id}: {e}", exc_info=True
        )
        return HandlerResult.failure(ErrorKind.STORE)

    return HandlerResult[int].success(data=fav_count)
