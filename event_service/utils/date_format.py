# event_service/utils/date_format.py
import datetime
from zoneinfo import ZoneInfo

from ..config import settings

MINUTE_MS = 60_000
HOUR_MS = 3_600_000
DAY_MS = 86_400_000
WEEK_MS = 604_800_000


def format_post_age(
    posted_at: datetime.datetime,
    now: datetime.datetime | None = None,
    tz_name: str | None = None,
) -> str:
    """
    Formats how long ago a photo was posted.

    Under an hour gives minutes, under a day hours, under a week days; anything
    older is an absolute date in the display timezone. Each bucket excludes its
    upper bound, so exactly one hour reads "1時間前".
    """
    if now is None:
        now = datetime.datetime.now(datetime.timezone.utc)
    if posted_at.tzinfo is None:
        posted_at = posted_at.replace(tzinfo=datetime.timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=datetime.timezone.utc)

    elapsed_ms = (now - posted_at) // datetime.timedelta(milliseconds=1)

    if elapsed_ms < HOUR_MS:
        return f"{elapsed_ms // MINUTE_MS}分前"
    if elapsed_ms < DAY_MS:
        return f"{elapsed_ms // HOUR_MS}時間前"
    if elapsed_ms < WEEK_MS:
        return f"{elapsed_ms // DAY_MS}日前"

    local = posted_at.astimezone(ZoneInfo(tz_name or settings.DISPLAY_TIMEZONE))
    return f"{local.year}年{local.month}月{local.day}日"
