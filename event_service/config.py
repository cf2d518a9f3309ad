# event_service/config.py
import os
from dotenv import load_dotenv

load_dotenv()


class Settings:
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    FIRESTORE_DATABASE_NAME: str | None = os.getenv("FIRESTORE_DATABASE_NAME")
    GCP_PROJECT_ID: str | None = os.getenv("GCP_PROJECT_ID")

    # Firestore Collection Names (shared with the web client, do not rename)
    USERS_COLLECTION: str = "users"
    PHOTOS_COLLECTION: str = "photos"
    PROGRAMS_COLLECTION: str = "program"
    PLACES_COLLECTION: str = "place"
    QR_COLLECTION: str = "QR"
    LOGS_COLLECTION: str = "logs"
    SIGNATURES_COLLECTION: str = "signature"
    MODE_COLLECTION: str = "mode"
    MODE_DOCUMENT_ID: str = "mode"

    # Session cookie issued from a Firebase ID token
    SESSION_COOKIE_NAME: str = os.getenv("SESSION_COOKIE_NAME", "session")
    SESSION_COOKIE_EXPIRES_DAYS: int = int(
        os.getenv("SESSION_COOKIE_EXPIRES_DAYS", "5")
    )  # Firebase allows 5 minutes to 14 days
    SESSION_COOKIE_SECURE: bool = (
        os.getenv("SESSION_COOKIE_SECURE", "true").lower() == "true"
    )
    # Only enable when deployed behind ESPv2, which validates the caller and
    # forwards the Firebase claims in X-Endpoint-API-UserInfo.
    TRUST_GATEWAY_USERINFO: bool = (
        os.getenv("TRUST_GATEWAY_USERINFO", "false").lower() == "true"
    )

    # User settings
    NICKNAME_MAX_LENGTH: int = int(os.getenv("NICKNAME_MAX_LENGTH", "10"))

    # Photo feed
    DISPLAY_TIMEZONE: str = os.getenv("DISPLAY_TIMEZONE", "Asia/Tokyo")
    UNKNOWN_NICKNAME: str = os.getenv("UNKNOWN_NICKNAME", "unknown")


settings = Settings()
