from datetime import datetime

from ordo.schemas.settings import WEEKDAYS, AppSettings


def _minutes(hhmm: str) -> int:
    h, m = hhmm.split(":")
    return int(h) * 60 + int(m)


def is_open_now(settings: AppSettings, now: datetime) -> bool:
    """
    Whether the store takes orders at ``now`` (a local wall-clock time).

    The branch's manual switch wins. Otherwise the first schedule decides:
    no schedule means open, a missing or closed day means closed, an open
    day with no shifts is open all day, and shifts are half-open ``start <= t < end``.
    """
    if not settings.branch.is_open:
        return False
    if not settings.schedules:
        return True

    today = WEEKDAYS[now.weekday()]
    day = next((d for d in settings.schedules[0].days if d.day == today), None)
    if day is None or not day.is_open:
        return False
    if not day.shifts:
        return True

    t = now.hour * 60 + now.minute
    return any(_minutes(s.start) <= t < _minutes(s.end) for s in day.shifts)
