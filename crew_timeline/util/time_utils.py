"""Tiny time helpers for workday offsets and date keys."""

from datetime import date, datetime, time


def parse_hhmm(s: str) -> int:
    t = time.fromisoformat(s)  # 'HH:MM' -> time
    return t.hour * 60 + t.minute  # minutes since midnight


def format_offset(offset_minutes: int, workday_start: str = "06:00") -> str:
    total = parse_hhmm(workday_start) + offset_minutes  # offset -> clock minutes
    return f"{total // 60:02d}:{total % 60:02d}"


def parse_clock(s: str, workday_start: str = "06:00") -> int:
    return parse_hhmm(s) - parse_hhmm(workday_start)  # clock -> workday offset


def date_key(d) -> str:
    if isinstance(d, datetime):
        d = d.date()
    if isinstance(d, date):
        return d.isoformat()  # YYYY-MM-DD
    return date.fromisoformat(str(d)[:10]).isoformat()
