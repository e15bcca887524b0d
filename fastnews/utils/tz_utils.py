from datetime import datetime, timezone
from zoneinfo import ZoneInfo
from typing import Optional

DEFAULT_TIMEZONE = "Asia/Ho_Chi_Minh"
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

def utc_now() -> datetime:
    return datetime.now(timezone.utc)

def get_zone(tz_name: str = DEFAULT_TIMEZONE) -> ZoneInfo:
    """Resolve um nome IANA (ex.: 'Asia/Ho_Chi_Minh')."""
    return ZoneInfo(tz_name)

def utc_to_local(dt_utc: datetime, tz_name: str = DEFAULT_TIMEZONE) -> datetime:
    """Converte datetime UTC para timezone local."""
    if dt_utc.tzinfo is None:
        dt_utc = dt_utc.replace(tzinfo=timezone.utc)
    return dt_utc.astimezone(get_zone(tz_name))

def iso_to_local_str(iso_ts: str, tz_name: str = DEFAULT_TIMEZONE) -> Optional[str]:
    """Converte string ISO (em UTC) para string local formatada."""
    try:
        dt_utc = datetime.fromisoformat(iso_ts)
    except (TypeError, ValueError):
        return None
    return utc_to_local(dt_utc, tz_name).strftime("%Y-%m-%d %H:%M")
