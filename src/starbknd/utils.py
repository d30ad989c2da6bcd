from datetime import datetime, timezone, tzinfo
from typing import Optional, Union
from urllib.parse import urlparse


def is_url(content: str) -> bool:
    try:
        parsed = urlparse(content.strip())
    except (AttributeError, ValueError):
        return False
    return bool(parsed.scheme) and bool(parsed.netloc or parsed.path) and " " not in content.strip()


def format_date(value: Optional[Union[str, datetime]], tz: Optional[tzinfo] = None) -> str:
    """
    Format like `Oct 19, 2:05 PM`; empty for missing or unparsable values.

    Naive values are stored UTC timestamps. They are shown in `tz`, the
    server's local time zone by default.
    """
    if not value:
        return ""
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            return ""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(tz)
    hour = value.hour % 12 or 12
    suffix = "AM" if value.hour < 12 else "PM"
    return f"{value.strftime('%b')} {value.day}, {hour}:{value.minute:02d} {suffix}"
