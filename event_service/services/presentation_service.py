# event_service/services/presentation_service.py
# Data behind the web client's header menu and notification page.
import logging
from typing import Optional

from google.cloud import firestore

from .. import firestore_schema as schema
from ..firestore_client import STORE_ERRORS
from ..models import (
    HandlerResult,
    Identity,
    MenuItem,
    MenuView,
    NotificationInfo,
    NotificationView,
)
from .user_service import UserNotFoundError, get_user_data, store_failure, user_not_found

logger = logging.getLogger(__name__)

MENU_ITEMS = [
    MenuItem(label="設定", path="/settings"),
    MenuItem(label="パスワード変更", path="/changepassword"),
    MenuItem(label="ログアウト", path="/session/logout"),
]
NOTIFICATION_NOTICE = "Comming soon..."


async def build_menu(
    db: firestore.Client, identity: Optional[Identity]
) -> HandlerResult[MenuView]:
    if identity is None:
        return HandlerResult.unauthenticated()
    try:
        user_data = get_user_data(db, identity.uid)
    except UserNotFoundError:
        return user_not_found()
    except STORE_ERRORS as e:
        return store_failure("build menu", identity.uid, e)

    user_settings = user_data.get(schema.USER_SETTINGS_FIELD) or {}
    return HandlerResult[MenuView].success(
        data=MenuView(
            nick_name=user_settings.get(schema.SETTINGS_NICKNAME, ""),
            items=list(MENU_ITEMS),
        )
    )


async def fetch_notification(
    db: firestore.Client, identity: Optional[Identity]
) -> HandlerResult[NotificationView]:
    if identity is None:
        return HandlerResult.unauthenticated()
    try:
        user_data = get_user_data(db, identity.uid)
    except UserNotFoundError:
        return user_not_found()
    except STORE_ERRORS as e:
        return store_failure("fetch notification", identity.uid, e)

    stored = user_data.get(schema.USER_NOTIFICATION_FIELD)
    return HandlerResult[NotificationView].success(
        data=NotificationView(
            notification=NotificationInfo.model_validate(stored) if stored else None,
            notice=NOTIFICATION_NOTICE,
        )
    )
