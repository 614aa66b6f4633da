"""
HotelOps Core Time — Public API
=================================
Explicit clock protocol and business date helpers.
"""

from core.time.clock import (
    Clock,
    FixedClock,
    SystemClock,
    get_default_clock,
    set_default_clock,
)
from core.time.temporal import (
    DateWindow,
    as_date,
    ceil_div,
    month_bounds,
    nights_between,
)

__all__ = [
    "Clock",
    "FixedClock",
    "SystemClock",
    "get_default_clock",
    "set_default_clock",
    "DateWindow",
    "as_date",
    "ceil_div",
    "month_bounds",
    "nights_between",
]
