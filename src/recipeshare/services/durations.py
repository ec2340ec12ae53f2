"""ISO-8601 duration parsing for recipe cook/prep times.

Accepts the ``PnDTnHnMnS`` subset used by recipe datasets, e.g. ``PT45M``,
``PT1H30M`` or ``P1DT2H``. Totals are written back in the canonical
hours/minutes/seconds form (``PT26H``, ``PT0S``).
"""

from __future__ import annotations

import re
from datetime import timedelta

from recipeshare.core.exceptions import ValidationError


_DURATION_PATTERN = re.compile(
    r"^(?P<sign>[-+])?P"
    r"(?:(?P<days>\d+)D)?"
    r"(?:T(?:(?P<hours>\d+)H)?(?:(?P<minutes>\d+)M)?(?:(?P<seconds>\d+(?:\.\d+)?)S)?)?$"
)


def parse_duration(value: str | None, field: str = "duration") -> timedelta:
    """Parse an ISO-8601 duration; ``None`` or blank is zero.

    Raises:
        ValidationError: If the text is not a duration or is negative.
    """
    if value is None or not value.strip():
        return timedelta(0)

    text = value.strip().upper()
    match = _DURATION_PATTERN.match(text)
    # "P" and "PT" alone carry no component
    if not match or text.endswith(("P", "T")):
        raise ValidationError(f"Invalid ISO-8601 duration: {value}", field=field)

    parts = match.groupdict()
    duration = timedelta(
        days=int(parts["days"] or 0),
        hours=int(parts["hours"] or 0),
        minutes=int(parts["minutes"] or 0),
        seconds=float(parts["seconds"] or 0),
    )
    if parts["sign"] == "-" and duration:
        raise ValidationError(f"Negative duration: {value}", field=field)
    return duration


def format_duration(duration: timedelta) -> str:
    """Canonical ``PT#H#M#S`` text; zero is ``PT0S``."""
    total = duration.total_seconds()
    if total < 0:
        raise ValidationError("Negative duration")

    hours, remainder = divmod(int(total), 3600)
    minutes, seconds = divmod(remainder, 60)
    fraction = total - int(total)

    text = "PT"
    if hours:
        text += f"{hours}H"
    if minutes:
        text += f"{minutes}M"
    if seconds or fraction:
        text += f"{seconds + fraction:g}S" if fraction else f"{seconds}S"
    return text if text != "PT" else "PT0S"


def total_time(cook_time: str | None, prep_time: str | None) -> str:
    """Canonical sum of two durations."""
    return format_duration(
        parse_duration(cook_time, "cookTime") + parse_duration(prep_time, "prepTime")
    )
