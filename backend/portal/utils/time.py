import datetime as dt
from zoneinfo import ZoneInfo


def utc_now_naive() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc).replace(tzinfo=None)


def utc_naive_to_local(value: dt.datetime, tz_name: str) -> dt.datetime:
    return value.replace(tzinfo=dt.timezone.utc).astimezone(ZoneInfo(tz_name))


def format_time_range(start: dt.time, end: dt.time) -> str:
    return f"{start:%H:%M} - {end:%H:%M}"
