"""Normalization helpers for loosely shaped platform payload values."""

import math
import re
from datetime import timezone
from typing import Any, Optional

from dateutil import parser as date_parser

_NON_DIGITS = re.compile(r"[^0-9]")


def extract_text(value: Any) -> Optional[str]:
    """Read a text value given as a plain string, ``simpleText`` or ``runs`` wrapper."""
    if isinstance(value, str):
        return value
    if not isinstance(value, dict):
        return None

    if isinstance(value.get("simpleText"), str):
        return value["simpleText"]

    runs = value.get("runs")
    if isinstance(runs, list):
        return "".join(
            run["text"] for run in runs if isinstance(run, dict) and isinstance(run.get("text"), str)
        )

    return None


def parse_viewer_count(value: Any) -> Optional[int]:
    """Reduce a viewer count to a non-negative integer.

    Accepts numbers, digit-bearing strings ("1,234 watching") and the
    ``simpleText`` / ``runs`` / ``viewCountText`` wrappers.
    """
    if isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        return max(int(value), 0)

    if isinstance(value, str):
        digits = _NON_DIGITS.sub("", value)
        return int(digits) if digits else None

    if not isinstance(value, dict):
        return None

    if "simpleText" in value:
        return parse_viewer_count(value["simpleText"])
    if isinstance(value.get("runs"), list):
        return parse_viewer_count(extract_text(value))
    if "viewCountText" in value:
        return parse_viewer_count(value["viewCountText"])

    return None


def normalize_timestamp(value: Any) -> Optional[str]:
    """Re-emit a timestamp as ``YYYY-MM-DDTHH:MM:SS.mmmZ`` in UTC.

    Naive timestamps are taken as UTC. Anything unparsable becomes None.
    """
    if not isinstance(value, str) or not value.strip():
        return None

    try:
        parsed = date_parser.parse(value.strip())
    except (ValueError, OverflowError):
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    parsed = parsed.astimezone(timezone.utc)
    return parsed.strftime("%Y-%m-%dT%H:%M:%S.") + f"{parsed.microsecond // 1000:03d}Z"


def first_present(*values: Any) -> Any:
    """Return the first value that is not None."""
    return next((value for value in values if value is not None), None)
