# hrms_server/services/attendance.py
import re
from typing import Any, Dict, List, Optional, Union

TIME_PATTERN = re.compile(r"(\d{2}:\d{2})")
EMPTY_TIME = "--:--"
ZERO_HOURS = "00:00"

Records = Union[str, List[str], None]


def format_punch_time(punch: Optional[str]) -> str:
    """First HH:MM found in a punch entry, e.g. '09:13 (IN 1)' -> '09:13'"""
    if not punch:
        return EMPTY_TIME
    match = TIME_PATTERN.search(punch)
    return match.group(1) if match else punch


def punch_type(punch: Optional[str]) -> str:
    if not punch:
        return "UNKNOWN"
    if "(IN" in punch:
        return "IN"
    if "(OUT" in punch:
        return "OUT"
    return "UNKNOWN"


def clean_punch_records(records: Records) -> List[str]:
    """
    Split a comma separated punch string into entries.
    Blank entries and repeats are dropped; first occurrence wins.
    """
    if not records:
        return []

    if isinstance(records, str):
        entries = records.split(",")
    else:
        entries = list(records)

    cleaned = []
    seen = set()
    for entry in entries:
        entry = (entry or "").strip()
        if not entry:
            continue
        key = " ".join(entry.split())
        if key in seen:
            continue
        seen.add(key)
        cleaned.append(entry)
    return cleaned


def _minutes(punch: str) -> Optional[int]:
    match = TIME_PATTERN.search(punch)
    if not match:
        return None
    hours, minutes = (int(part) for part in match.group(1).split(":"))
    if hours > 23 or minutes > 59:
        return None
    return hours * 60 + minutes


def calculate_total_hours(records: Records) -> str:
    """Time from the first IN punch to the last OUT punch as HH:MM"""
    punches = clean_punch_records(records)
    if not punches:
        return ZERO_HOURS

    first_in = None
    last_out = None
    for punch in punches:
        minutes = _minutes(punch)
        if minutes is None:
            continue
        kind = punch_type(punch)
        if kind == "IN" and first_in is None:
            first_in = minutes
        elif kind == "OUT":
            last_out = minutes

    if first_in is None or last_out is None or last_out < first_in:
        return ZERO_HOURS

    total = last_out - first_in
    return f"{total // 60:02d}:{total % 60:02d}"


def summarize_attendance(
    punch_records: Records,
    status: str = "Present",
    in_time: Optional[str] = None,
    out_time: Optional[str] = None,
) -> Dict[str, Any]:
    punches = clean_punch_records(punch_records)
    first_in = next((p for p in punches if punch_type(p) == "IN"), None)
    last_out = next((p for p in reversed(punches) if punch_type(p) == "OUT"), None)

    return {
        "status": status,
        "in_time": format_punch_time(in_time or first_in),
        "out_time": format_punch_time(out_time or last_out),
        "punches": [
            {"time": format_punch_time(p), "type": punch_type(p), "raw": p}
            for p in punches
        ],
        "total_hours": calculate_total_hours(punches),
    }
