# event_service/main.py
import logging
from contextlib import asynccontextmanager
from typing import Annotated, Optional

from fastapi import (
    Body,
    Depends,
    FastAPI,
    HTTPException,
    Path,
    Request,
    status as http_status,
)
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from firebase_admin import exceptions as firebase_exceptions
from google.cloud import firestore

# Setup logging first
from .utils.logging_config import setup_logging

setup_logging()

from .config import settings
from .firestore_client import get_db, get_firestore_client
from .firebase_admin_init import initialize_firebase_admin
from .models import (
    ErrorKind,
    FavoriteCountUpdateRequest,
    HandlerResult,
    Identity,
    LikesUpdateRequest,
    LogCreateRequest,
    RewardApplyRequest,
    SessionCreateRequest,
    SignatureCreateRequest,
    UserProvisionRequest,
)
from .session import (
    create_session_cookie,
    get_optional_identity,
    revoke_sessions,
    session_cookie_max_age,
)
from .services.lookup_service import (
    fetch_mode,
    fetch_places,
    fetch_program_info,
    fetch_qr_info,
)
from .services.photo_service import (
    fetch_likes,
    fetch_photo_feed,
    set_likes,
    update_photo_favorites,
)
from .services.presentation_service import build_menu, fetch_notification
from .services.program_service import (
    check_in,
    check_out,
    fetch_checkins,
    list_open_programs,
)
from .services.record_service import post_log, post_signature
from .services.user_service import (
    apply_reward,
    create_user_record,
    fetch_reward,
    fetch_settings,
    update_settings,
)

logger = logging.getLogger(__name__)

Db = Annotated[firestore.Client, Depends(get_db)]
OptionalIdentity = Annotated[Optional[Identity], Depends(get_optional_identity)]

STATUS_BY_ERROR = {
    ErrorKind.UNAUTHENTICATED: http_status.HTTP_401_UNAUTHORIZED,
    ErrorKind.VALIDATION: http_status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.NOT_FOUND: http_status.HTTP_404_NOT_FOUND,
    ErrorKind.STORE: http_status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def to_response(result: HandlerResult) -> JSONResponse:
    if result.ok:
        status_code = http_status.HTTP_200_OK
    else:
        status_code = STATUS_BY_ERROR.get(
            result.error, http_status.HTTP_500_INTERNAL_SERVER_ERROR
        )
    return JSONResponse(status_code=status_code, content=jsonable_encoder(result))


# --- Lifespan Event Handler ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Event Service starting up...")
    if not settings.SESSION_COOKIE_SECURE:
        logger.warning("SESSION_COOKIE_SECURE is off: session cookies may travel over plain HTTP.")
    try:
        get_firestore_client()
        initialize_firebase_admin()
        logger.info("EventService Firestore and Firebase Admin initialized on startup.")
    except Exception as e:
        logger.critical(
            f"EventService: Failed to initialize clients on startup: {e}",
            exc_info=True,
        )
    yield
    logger.info("Event Service shutting down...")


app = FastAPI(
    title="Event Guide Service",
    description="Photos, likes, program check-ins, rewards and user settings for the event guide app.",
    version="0.1.0",
    lifespan=lifespan,
)


# --- Session ---


@app.post("/session")
async def api_create_session(request_data: SessionCreateRequest = Body(...)):
    """
    Exchanges a Firebase ID token (from client-side sign-in) for an
    HTTP-only session cookie. Redirecting afterwards is up to the client.
    """
    try:
        session_cookie = create_session_cookie(request_data.id_token)
    except firebase_exceptions.FirebaseError as e:
        logger.warning(f"Session creation rejected: {e}")
        raise HTTPException(
            status_code=http_status.HTTP_401_UNAUTHORIZED, detail=str(e)
        )
    except ValueError as e:
        raise HTTPException(status_code=http_status.HTTP_400_BAD_REQUEST, detail=str(e))

    response = JSONResponse(content={"ok": True})
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=session_cookie,
        max_age=int(session_cookie_max_age().total_seconds()),
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
    )
    return response


@app.post("/session/logout")
async def api_logout(identity: OptionalIdentity):
    if identity is not None:
        try:
            revoke_sessions(identity.uid)
        except firebase_exceptions.FirebaseError as e:
            logger.error(
                f"Could not revoke sessions for user {identity.uid}: {e}", exc_info=True
            )

    response = JSONResponse(content={"ok": True})
    response.delete_cookie(key=settings.SESSION_COOKIE_NAME)
    return response


# --- Users ---


@app.post("/users")
async def api_create_user_record(
    db: Db, identity: OptionalIdentity, request_data: UserProvisionRequest = Body(...)
):
    """
    Creates the initial profile right after Firebase account registration.
    The caller must already hold a session for the uid being provisioned.
    """
    if identity is None:
        return to_response(HandlerResult.unauthenticated())
    if identity.uid != request_data.uid:
        logger.warning(
            f"User {identity.uid} attempted to provision record for {request_data.uid}"
        )
        raise HTTPException(
            status_code=http_status.HTTP_403_FORBIDDEN,
            detail="Cannot create a record for another user.",
        )

    result = await create_user_record(db, request_data.uid, request_data.nick_name)
    return to_response(result)


@app.get("/settings")
async def api_get_settings(db: Db, identity: OptionalIdentity):
    return to_response(await fetch_settings(db, identity))


@app.post("/settings")
async def api_update_settings(request: Request, db: Db, identity: OptionalIdentity):
    """Accepts the form-encoded settings form as the web client posts it."""
    form = await request.form()
    return to_response(await update_settings(db, identity, dict(form)))


@app.get("/reward")
async def api_get_reward(db: Db, identity: OptionalIdentity):
    return to_response(await fetch_reward(db, identity))


@app.post("/reward")
async def api_apply_reward(
    db: Db, identity: OptionalIdentity, request_data: RewardApplyRequest = Body(...)
):
    return to_response(await apply_reward(db, identity, request_data.reward_point))


# --- Photos & likes ---


@app.get("/photos")
async def api_get_photo_feed(db: Db):
    return to_response(await fetch_photo_feed(db))


@app.patch("/photos/{photo_id}/fav")
async def api_update_photo_favorites(
    db: Db,
    photo_id: str = Path(..., description="The photo document ID"),
    request_data: FavoriteCountUpdateRequest = Body(...),
):
    return to_response(await update_photo_favorites(db, photo_id, request_data.fav))


@app.get("/likes")
async def api_get_likes(db: Db, identity: OptionalIdentity):
    return to_response(await fetch_likes(db, identity))


@app.put("/likes")
async def api_set_likes(
    db: Db, identity: OptionalIdentity, request_data: LikesUpdateRequest = Body(...)
):
    return to_response(await set_likes(db, identity, request_data.likes))


# --- Programs & check-ins ---


@app.get("/checkins")
async def api_get_checkins(db: Db, identity: OptionalIdentity):
    return to_response(await fetch_checkins(db, identity))


@app.post("/checkins/{program_id}")
async def api_check_in(
    db: Db,
    identity: OptionalIdentity,
    program_id: str = Path(..., description="The program being checked in to"),
):
    return to_response(await check_in(db, identity, program_id))


@app.delete("/checkins/{program_id}")
async def api_check_out(
    db: Db,
    identity: OptionalIdentity,
    program_id: str = Path(..., description="The program being checked out of"),
):
    return to_response(await check_out(db, identity, program_id))


@app.get("/programs/open")
async def api_list_open_programs(db: Db):
    return to_response(await list_open_programs(db))


@app.get("/programs/{program_id}")
async def api_get_program(db: Db, program_id: str = Path(...)):
    return to_response(await fetch_program_info(db, program_id))


# --- Lookups ---


@app.get("/qr/{qr_id}")
async def api_get_qr_info(db: Db, qr_id: str = Path(...)):
    return to_response(await fetch_qr_info(db, qr_id))


@app.get("/places")
async def api_get_places(db: Db):
    return to_response(await fetch_places(db))


@app.get("/places/{place_id}")
async def api_get_place(db: Db, place_id: str = Path(...)):
    return to_response(await fetch_places(db, place_id))


@app.get("/mode/{uid}")
async def api_get_mode(db: Db, uid: str = Path(...)):
    return to_response(await fetch_mode(db, uid))


# --- Append-only records ---


@app.post("/logs")
async def api_post_log(
    db: Db, identity: OptionalIdentity, request_data: LogCreateRequest = Body(...)
):
    result = await post_log(
        db, identity, request_data.title, request_data.place, request_data.state
    )
    response = to_response(result)
    if result.ok:
        response.status_code = http_status.HTTP_201_CREATED
    return response


@app.post("/signatures")
async def api_post_signature(db: Db, request_data: SignatureCreateRequest = Body(...)):
    result = await post_signature(db, request_data.sign)
    response = to_response(result)
    if result.ok:
        response.status_code = http_status.HTTP_201_CREATED
    return response


# --- UI data ---


@app.get("/ui/menu")
async def api_get_menu(db: Db, identity: OptionalIdentity):
    return to_response(await build_menu(db, identity))


@app.get("/ui/notification")
async def api_get_notification(db: Db, identity: OptionalIdentity):
    return to_response(await fetch_notification(db, identity))


@app.get("/")
async def read_root():
    return {"message": "Welcome to the Event Guide Service"}


@app.get("/health")
async def health_check():
    db_ok = False
    try:
        get_firestore_client()
        db_ok = True
    except Exception:
        logger.warning("Health check: Firestore client not healthy for Event Service.")

    if db_ok:
        return {"status": "ok", "firestore_healthy": True}
    else:
        return {
            "status": "degraded",
            "firestore_healthy": False,
            "detail": "Firestore client issue.",
        }
