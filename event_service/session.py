# event_service/session.py
import base64
import datetime
import json
import logging
from typing import Optional

from fastapi import Request
from firebase_admin import auth as firebase_auth, exceptions as firebase_exceptions

from .config import settings
from .firebase_admin_init import initialize_firebase_admin
from .models import Identity

logger = logging.getLogger(__name__)


def session_cookie_max_age() -> datetime.timedelta:
    return datetime.timedelta(days=settings.SESSION_COOKIE_EXPIRES_DAYS)


def create_session_cookie(id_token: str) -> str:
    """
    Exchanges a Firebase ID token (from client-side sign-in) for a session cookie.
    Raises firebase_exceptions.FirebaseError or ValueError if the token is rejected.
    """
    initialize_firebase_admin()
    return firebase_auth.create_session_cookie(
        id_token, expires_in=session_cookie_max_age()
    )


def revoke_sessions(uid: str) -> None:
    initialize_firebase_admin()
    firebase_auth.revoke_refresh_tokens(uid)
    logger.info(f"Revoked refresh tokens for user {uid}")


def verify_session_cookie(cookie: str) -> Optional[Identity]:
    initialize_firebase_admin()
    try:
        claims = firebase_auth.verify_session_cookie(cookie, check_revoked=True)
    except (
        firebase_auth.InvalidSessionCookieError,
        firebase_auth.UserDisabledError,
        ValueError,
    ) as e:
        logger.info(f"Session cookie rejected: {e}")
        return None
    except firebase_exceptions.FirebaseError as e:
        logger.error(f"Could not verify session cookie: {e}", exc_info=True)
        return None

    return Identity(uid=claims["uid"], email=claims.get("email"))


def decode_gateway_userinfo(encoded_userinfo: str) -> Optional[Identity]:
    """
    Decodes the X-Endpoint-API-UserInfo header that ESPv2 forwards
    after validating a Firebase ID token.
    """
    try:
        padded = encoded_userinfo
        missing_padding = len(padded) % 4
        if missing_padding:
            padded += "=" * (4 - missing_padding)

        userinfo = json.loads(base64.urlsafe_b64decode(padded).decode("utf-8"))
    except ValueError as e:
        logger.error(f"Error decoding/parsing X-Endpoint-API-UserInfo header: {e}")
        return None

    if not isinstance(userinfo, dict):
        logger.error("X-Endpoint-API-UserInfo does not hold a JSON object.")
        return None

    firebase_uid = userinfo.get("user_id") or userinfo.get("sub")
    if not firebase_uid:
        logger.error(
            f"Firebase UID ('user_id' or 'sub') not found in X-Endpoint-API-UserInfo: {userinfo}"
        )
        return None

    return Identity(uid=firebase_uid, email=userinfo.get("email"))


def resolve_identity(request: Request) -> Optional[Identity]:
    cookie = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if cookie:
        identity = verify_session_cookie(cookie)
        if identity:
            return identity

    if settings.TRUST_GATEWAY_USERINFO:
        userinfo = request.headers.get("x-endpoint-api-userinfo")
        if userinfo:
            return decode_gateway_userinfo(userinfo)

    return None


async def get_optional_identity(request: Request) -> Optional[Identity]:
    """
    Dependency resolving the caller, or None when nobody is signed in.
    Handlers decide what an anonymous call means for them.
    """
    identity = resolve_identity(request)
    if identity:
        logger.debug(f"Request authenticated as {identity.uid}")
    return identity
