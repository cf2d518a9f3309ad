# event_service/services/user_service.py
import datetime
import math
import logging
from typing import Any, Dict, Mapping, Optional, Union

from google.cloud import firestore
from pydantic import ValidationError

from ..config import settings
from ..firestore_client import STORE_ERRORS
from .. import firestore_schema as schema
from ..models import (
    ErrorKind,
    HandlerResult,
    Identity,
    RewardInfo,
    UserSettings,
    UserSettingsForm,
)

logger = logging.getLogger(__name__)

STORE_FAILURE_MESSAGE = "通信に失敗しました。時間をおいて再度お試しください"
USER_NOT_FOUND_MESSAGE = "ユーザー情報が見つかりません"
SETTINGS_SAVE_FAILURE_MESSAGE = "設定の保存に失敗しました"
SETTINGS_SAVED_MESSAGE = "success"
INVALID_REWARD_MESSAGE = "ポイントの値が正しくありません"


class UserServiceError(Exception):
    pass


class UserNotFoundError(UserServiceError):
    pass


def user_ref(db: firestore.Client, uid: str):
    return db.collection(settings.USERS_COLLECTION).document(uid)


def get_user_data(db: firestore.Client, uid: str) -> Dict[str, Any]:
    """Reads users/{uid}. Raises UserNotFoundError when the document is missing."""
    user_snap = user_ref(db, uid).get()
    if not user_snap.exists:
        logger.warning(f"User document not found: {uid}")
        raise UserNotFoundError(f"User with ID {uid} not found.")
    return user_snap.to_dict() or {}


def store_failure(action: str, uid: Optional[str], error: Exception) -> HandlerResult:
    logger.error(f"Failed to {action} for user {uid}: {error}", exc_info=True)
    return HandlerResult.failure(ErrorKind.STORE, STORE_FAILURE_MESSAGE)


def user_not_found() -> HandlerResult:
    return HandlerResult.failure(ErrorKind.NOT_FOUND, USER_NOT_FOUND_MESSAGE)


def initial_user_record(nickname: str, now: datetime.datetime) -> Dict[str, Any]:
    time_table = {
        str(day): [False] * schema.TIME_TABLE_SLOTS_PER_DAY
        for day in range(schema.TIME_TABLE_DAYS)
    }
    return {
        schema.USER_CHECKIN_PROGRAM_IDS_FIELD: [],
        schema.USER_LIKES_FIELD: [],
        schema.USER_CREATED_AT_FIELD: now,
        schema.USER_REWARD_FIELD: 0,
        schema.USER_CURRENT_PLACE_FIELD: schema.INITIAL_CURRENT_PLACE,
        schema.USER_NOTIFICATION_FIELD: {
            schema.NOTIFICATION_IS_NOTIFY: False,
            schema.NOTIFICATION_ID: "",
            schema.NOTIFICATION_CREATED_AT: now,
        },
        schema.USER_SETTINGS_FIELD: {
            schema.SETTINGS_NICKNAME: nickname,
            schema.SETTINGS_MODE_OF_TRANSPORTATION: "",
            schema.SETTINGS_TIME_TABLE: time_table,
        },
        schema.USER_DEV_FIELD: False,
        schema.USER_UNIVERSITY_FIELD: False,
        schema.USER_FORM_FIELD: {form_id: False for form_id in schema.FORM_IDS},
    }


async def create_user_record(
    db: firestore.Client, uid: str, nickname: str
) -> HandlerResult[Dict[str, Any]]:
    """
    Writes the initial user document. This is a full overwrite (no merge):
    provisioning the same uid twice resets the user.
    """
    user_record = initial_user_record(
        nickname, datetime.datetime.now(datetime.timezone.utc)
    )
    try:
        user_ref(db, uid).set(user_record)
    except STORE_ERRORS as e:
        return store_failure("create user record", uid, e)

    logger.info(f"User record created: {uid}")
    return HandlerResult[Dict[str, Any]].success(data=user_record)


async def fetch_settings(
    db: firestore.Client, identity: Optional[Identity]
) -> HandlerResult[UserSettings]:
    if identity is None:
        return HandlerResult.unauthenticated()
    try:
        user_data = get_user_data(db, identity.uid)
    except UserNotFoundError:
        return user_not_found()
    except STORE_ERRORS as e:
        return store_failure("fetch settings", identity.uid, e)

    stored_settings = user_data.get(schema.USER_SETTINGS_FIELD) or {}
    return HandlerResult[UserSettings].success(
        data=UserSettings.model_validate(stored_settings)
    )


async def update_settings(
    db: firestore.Client, identity: Optional[Identity], form: Mapping[str, Any]
) -> HandlerResult[UserSettings]:
    """
    Validates the submitted settings form and merges it into users/{uid}.settings.
    Nothing is written when validation fails.
    """
    if identity is None:
        return HandlerResult.unauthenticated()

    try:
        submitted = UserSettingsForm.model_validate(dict(form))
    except ValidationError as e:
        first_error = e.errors()[0]
        logger.info(
            f"Settings rejected for user {identity.uid}: {first_error['msg']}"
        )
        return HandlerResult.failure(ErrorKind.VALIDATION, first_error["msg"])

    settings_doc = submitted.to_settings_doc()
    try:
        user_ref(db, identity.uid).set(
            {schema.USER_SETTINGS_FIELD: settings_doc}, merge=True
        )
    except STORE_ERRORS as e:
        logger.error(
            f"Failed to save settings for user {identity.uid}: {e}", exc_info=True
        )
        return HandlerResult.failure(ErrorKind.STORE, SETTINGS_SAVE_FAILURE_MESSAGE)

    logger.info(f"Settings updated for user {identity.uid}")
    return HandlerResult[UserSettings].success(
        data=UserSettings.model_validate(settings_doc),
        message=SETTINGS_SAVED_MESSAGE,
    )


async def fetch_reward(
    db: firestore.Client, identity: Optional[Identity]
) -> HandlerResult[RewardInfo]:
    if identity is None:
        return HandlerResult.unauthenticated()
    try:
        user_data = get_user_data(db, identity.uid)
    except UserNotFoundError:
        return user_not_found()
    except STORE_ERRORS as e:
        return store_failure("fetch reward", identity.uid, e)

    return HandlerResult[RewardInfo].success(
        data=RewardInfo(
            reward=user_data.get(schema.USER_REWARD_FIELD, 0),
            prev_reward=user_data.get(schema.USER_PREV_REWARD_FIELD),
        )
    )


def _parse_reward_point(reward_point: Union[int, float, str]) -> Union[int, float]:
    if isinstance(reward_point, bool):
        raise ValueError(f"Reward point must be a number, got {reward_point!r}")
    if isinstance(reward_point, int):
        return reward_point
    if isinstance(reward_point, float):
        value = reward_point
    else:
        value = float(reward_point.strip())
    # nan/inf would poison the stored balance and cannot be serialized to JSON
    if not math.isfinite(value):
        raise ValueError(f"Reward point must be finite, got {reward_point!r}")
    return int(value) if value.is_integer() else value


async def apply_reward(
    db: firestore.Client,
    identity: Optional[Identity],
    reward_point: Union[int, float, str],
) -> HandlerResult[RewardInfo]:
    """
    Adds reward_point to the balance and keeps the old balance in prevReward.
    Read-then-write without a transaction: concurrent calls can lose an update.
    """
    if identity is None:
        return HandlerResult.unauthenticated()
    try:
        delta = _parse_reward_point(reward_point)
    except ValueError:
        return HandlerResult.failure(ErrorKind.VALIDATION, INVALID_REWARD_MESSAGE)

    try:
        current_reward = get_user_data(db, identity.uid).get(
            schema.USER_REWARD_FIELD, 0
        )
        new_reward = current_reward + delta
        user_ref(db, identity.uid).set(
            {
                schema.USER_REWARD_FIELD: new_reward,
                schema.USER_PREV_REWARD_FIELD: current_reward,
            },
            merge=True,
        )
    except UserNotFoundError:
        return user_not_found()
    except STORE_ERRORS as e:
        return store_failure("apply reward", identity.uid, e)

    logger.info(
        f"Reward for user {identity.uid} changed {current_reward} -> {new_reward}"
    )
    return HandlerResult[RewardInfo].success(
        data=RewardInfo(reward=new_reward, prev_reward=current_reward)
    )
