from __future__ import annotations

import logging
import re
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
CLOSED = "none"

_TIME_TOKEN = re.compile(r"^(\d{1,2})(?::(\d{2}))?(am|pm)$")
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class HoursLabel:
    """A normalized open-hours label; ``parsed`` is False when any token fell through."""

    text: str
    parsed: bool = True

    @property
    def closed(self) -> bool:
        return self.text == CLOSED


DayHoursGroup = dict[HoursLabel, list[str]]


def normalize_hours(hours: str) -> HoursLabel:
    """Normalize ``"9am-5 PM"`` style ranges to ``"9:00am - 5:00pm"``."""
    compact = _WHITESPACE.sub("", hours.lower())
    tokens: list[str] = []
    parsed = True
    for token in compact.split("-"):
        match = _TIME_TOKEN.match(token)
        if not match:
            parsed = False
            tokens.append(token)
            continue
        hour, minute, period = match.groups()
        tokens.append(f"{hour}:{minute or '00'}{period}")
    return HoursLabel(text=" - ".join(tokens), parsed=parsed)


def _is_consecutive(days: list[int]) -> bool:
    """True when the ascending day indices form an unbroken run of at least 3."""
    if len(days) <= 2:
        return False
    return days[-1] - days[0] + 1 == len(days)


def _split_days(hours_csv: str | None) -> list[str]:
    if not hours_csv or not hours_csv.strip():
        return [CLOSED] * len(DAY_NAMES)
    entries = hours_csv.split(",")
    if len(entries) > len(DAY_NAMES):
        logger.warning(
            "Open hours has %d entries, ignoring all after the first %d: %r",
            len(entries), len(DAY_NAMES), hours_csv,
        )
    entries = entries[: len(DAY_NAMES)]
    return entries + [CLOSED] * (len(DAY_NAMES) - len(entries))


def group_by_day(hours_csv: str | None) -> DayHoursGroup:
    """
    Group a Sunday-first, comma-separated list of daily hours by identical hours.

    Returns a mapping of label -> day display strings, in first-seen label
    order. Three or more consecutive days collapse to ``"Monday - Friday"``.
    """
    indices: dict[HoursLabel, list[int]] = {}
    for index, entry in enumerate(_split_days(hours_csv)):
        indices.setdefault(normalize_hours(entry), []).append(index)

    grouped: DayHoursGroup = {}
    for label, days in indices.items():
        if _is_consecutive(days):
            grouped[label] = [f"{DAY_NAMES[days[0]]} - {DAY_NAMES[days[-1]]}"]
        else:
            grouped[label] = [DAY_NAMES[day] for day in days]
    return grouped
