"""Fixed break type catalog (not user-configurable)."""

from __future__ import annotations

from typing import Optional

from ..core.enums import BreakType
from .model import BreakTypeConfig

BREAK_TYPES: dict[BreakType, BreakTypeConfig] = {
    BreakType.LUNCH: BreakTypeConfig(
        type=BreakType.LUNCH,
        name="Lunch Break",
        default_duration=60,
        is_paid=False,
        min_duration=30,
        max_duration=120,
        max_per_day=1,
        description="Unpaid lunch break (typically 1 hour)",
    ),
    BreakType.SHORT_BREAK: BreakTypeConfig(
        type=BreakType.SHORT_BREAK,
        name="Short Break",
        default_duration=15,
        is_paid=True,
        min_duration=5,
        max_duration=30,
        max_per_day=6,
        description="Paid short break for rest and refreshment",
    ),
    BreakType.EXTENDED_BREAK: BreakTypeConfig(
        type=BreakType.EXTENDED_BREAK,
        name="Extended Break",
        default_duration=45,
        is_paid=False,
        min_duration=30,
        max_duration=90,
        max_per_day=2,
        description="Extended unpaid break for personal matters",
    ),
}


def coerce_break_type(value: BreakType | str) -> Optional[BreakType]:
    if isinstance(value, BreakType):
        return value
    try:
        return BreakType(str(value))
    except ValueError:
        return None


def get_config(value: BreakType | str) -> Optional[BreakTypeConfig]:
    break_type = coerce_break_type(value)
    return BREAK_TYPES.get(break_type) if break_type else None
