# event_service/models.py
import datetime
import enum
import json
from typing import Any, Dict, Generic, List, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_core import PydanticCustomError

from .config import settings

T = TypeVar("T")


class CamelModel(BaseModel):
    # Aliases carry the camelCase names stored in Firestore and used by the web client
    model_config = ConfigDict(populate_by_name=True)


# --- Handler results ---


class ErrorKind(str, enum.Enum):
    UNAUTHENTICATED = "unauthenticated"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    STORE = "store"


class HandlerResult(BaseModel, Generic[T]):
    """Outcome of every data-access handler."""

    ok: bool
    data: Optional[T] = None
    message: Optional[str] = None
    error: Optional[ErrorKind] = None

    @classmethod
    def success(cls, data: Any = None, message: Optional[str] = None):
        return cls(ok=True, data=data, message=message)

    @classmethod
    def failure(cls, error: ErrorKind, message: Optional[str] = None):
        return cls(ok=False, error=error, message=message)

    @classmethod
    def unauthenticated(cls):
        return cls.failure(ErrorKind.UNAUTHENTICATED, "ログインしてください")


# --- Identity ---


class Identity(BaseModel):
    uid: str
    email: Optional[str] = None


class SessionCreateRequest(CamelModel):
    id_token: str = Field(
        ...,
        alias="idToken",
        description="Firebase ID token obtained by the client after sign-in.",
    )


# --- Photos ---


class PhotoFeedItem(CamelModel):
    id: str
    nick_name: str = Field(alias="nickName")
    fav: int = 0
    url: Optional[str] = None
    place: Optional[str] = None
    post_date: str = Field(alias="postDate")


class LikesUpdateRequest(BaseModel):
    likes: List[str] = Field(..., examples=[["photoA", "photoB"]])


class FavoriteCountUpdateRequest(BaseModel):
    fav: int = Field(..., examples=[3])


# --- Rewards ---


class RewardApplyRequest(CamelModel):
    # The web client posts the point value as a string
    reward_point: Union[int, str] = Field(..., alias="rewardPoint", examples=["10"])


# --- User settings & provisioning ---


class UserSettings(CamelModel):
    notification: Optional[bool] = None
    nick_name: str = Field("", alias="nickName")
    mode_of_transportation: str = Field("", alias="modeOfTransportation")
    time_table: Dict[str, List[bool]] = Field(default_factory=dict, alias="timeTable")


class UserSettingsForm(CamelModel):
    """Settings as submitted by the settings form (all values arrive as strings)."""

    notification: bool = False
    nick_name: str = Field(..., alias="nickName")
    mode_of_transportation: str = Field("", alias="modeOfTransportation")
    time_table: Dict[str, List[bool]] = Field(..., alias="timeTable")

    @field_validator("notification", mode="before")
    @classmethod
    def _checkbox_to_bool(cls, value):
        if isinstance(value, bool):
            return value
        return value == "true"

    @field_validator("nick_name")
    @classmethod
    def _nickname_length(cls, value: str) -> str:
        # Counted in UTF-16 code units, the way the web client measures length
        if len(value.encode("utf-16-le")) // 2 > settings.NICKNAME_MAX_LENGTH:
            raise PydanticCustomError(
                "nickname_too_long",
                "ニックネームは{max_length}文字以内で入力してください",
                {"max_length": settings.NICKNAME_MAX_LENGTH},
            )
        return value

    @field_validator("mode_of_transportation", mode="before")
    @classmethod
    def _empty_transportation(cls, value):
        return value or ""

    @field_validator("time_table", mode="before")
    @classmethod
    def _parse_time_table(cls, value):
        if isinstance(value, str):
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                raise PydanticCustomError(
                    "time_table_invalid", "時間割の形式が正しくありません"
                )
        return value

    def to_settings_doc(self) -> Dict[str, Any]:
        return UserSettings(
            notification=self.notification,
            nick_name=self.nick_name,
            mode_of_transportation=self.mode_of_transportation,
            time_table=self.time_table,
        ).model_dump(by_alias=True)


class UserProvisionRequest(CamelModel):
    uid: str = Field(..., description="Firebase Authentication uid of the new user")
    nick_name: str = Field(..., alias="nickName", examples=["Alice"])


class RewardInfo(CamelModel):
    reward: Union[int, float]
    prev_reward: Optional[Union[int, float]] = Field(None, alias="prevReward")


# --- Lookups ---


class GeoCoordinate(BaseModel):
    latitude: float
    longitude: float


class Place(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None
    congestion: Optional[float] = None
    center: Optional[GeoCoordinate] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @field_validator("center", mode="before")
    @classmethod
    def _geopoint_to_dict(cls, value):
        # Firestore returns GeoPoint objects for geographic fields
        if value is not None and not isinstance(value, dict):
            return {"latitude": value.latitude, "longitude": value.longitude}
        return value


class ModeInfo(CamelModel):
    web_mode: bool = Field(False, alias="webMode")
    user_mode: bool = Field(False, alias="userMode")


# --- Append-only records ---


class LogCreateRequest(BaseModel):
    title: str
    place: str
    state: str


class SignatureCreateRequest(BaseModel):
    sign: str


# --- Presentation ---


class MenuItem(BaseModel):
    label: str
    path: str


class MenuView(CamelModel):
    nick_name: str = Field(alias="nickName")
    items: List[MenuItem]


class NotificationInfo(CamelModel):
    is_notify: bool = Field(False, alias="isNotify")
    id: str = ""
    created_at: Optional[datetime.datetime] = Field(None, alias="createdAt")


class NotificationView(BaseModel):
    notification: Optional[NotificationInfo] = None
    notice: str
