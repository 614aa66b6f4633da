"""
HotelOps Stock Engine — Replay Calculator
===========================================
Opening / closing stock by replaying movements from the latest
baseline snapshot.

    opening(item, d) = baseline + Σrestock[b.date, d) − Σissued[b.date, d)
    closing(item, d) = opening(item, d) + restock(d) − issued(d)

baseline = latest opening_stock with date <= d (0 from the beginning
of the log if none). A baseline dated d is the stock on the morning
of d.

Monthly sheets partition the same stream around the month start:
    opening_month = opening(item, first day)
    closing_month = opening_month + Σrestock(month) − Σissued(month)

Negative results are clamped to 0 and logged on hotelops.stock.
All functions are pure: explicit movements in, values out.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Optional

from core.time import DateWindow
from engines.stock.movements import MovementKind, StockMovement

logger = logging.getLogger("hotelops.stock")

ZERO = Decimal(0)


@dataclass(frozen=True)
class Baseline:
    quantity: Decimal = ZERO
    date: Optional[date] = None  # None: no snapshot, replay from the start


@dataclass(frozen=True)
class DailyStockPosition:
    item_name: str
    date: date
    opening: Decimal
    restocked: Decimal
    issued: Decimal
    closing: Decimal


@dataclass(frozen=True)
class MonthlyStockPosition:
    item_name: str
    year: int
    month: int
    opening: Decimal
    restocked: Decimal
    issued: Decimal
    closing: Decimal


def clamp_non_negative(value: Decimal, item_name: str, on_date: date, label: str) -> Decimal:
    if value < 0:
        logger.warning(
            "Negative %s stock for %s on %s (%s) clamped to 0",
            label, item_name, on_date.isoformat(), value,
        )
        return ZERO
    return value


def find_baseline(movements: Iterable[StockMovement], item_name: str, on_date: date) -> Baseline:
    latest: Optional[StockMovement] = None
    for m in movements:
        if m.item_name != item_name or m.kind != MovementKind.BASELINE or m.date > on_date:
            continue
        if latest is None or m.sort_key > latest.sort_key:
            latest = m
    if latest is None:
        return Baseline()
    return Baseline(quantity=latest.quantity, date=latest.date)


def sum_movements(
    movements: Iterable[StockMovement],
    item_name: str,
    kind: MovementKind,
    start: Optional[date],
    end: date,
) -> Decimal:
    """Σ quantity of one kind over [start, end); start None means unbounded."""
    total = ZERO
    for m in movements:
        if m.item_name != item_name or m.kind != kind:
            continue
        if (start is None or m.date >= start) and m.date < end:
            total += m.quantity
    return total


def _raw_opening(movements, item_name: str, on_date: date) -> Decimal:
    movements = list(movements)
    baseline = find_baseline(movements, item_name, on_date)
    restocked = sum_movements(movements, item_name, MovementKind.RESTOCK, baseline.date, on_date)
    issued = sum_movements(movements, item_name, MovementKind.ISSUE, baseline.date, on_date)
    return baseline.quantity + restocked - issued


def opening_stock(movements: Iterable[StockMovement], item_name: str, on_date: date) -> Decimal:
    return clamp_non_negative(
        _raw_opening(movements, item_name, on_date), item_name, on_date, "opening"
    )


def movements_on(
    movements: Iterable[StockMovement], item_name: str, on_date: date
) -> tuple[Decimal, Decimal]:
    """(restocked, issued) on one day."""
    movements = list(movements)
    next_day = on_date + timedelta(days=1)
    return (
        sum_movements(movements, item_name, MovementKind.RESTOCK, on_date, next_day),
        sum_movements(movements, item_name, MovementKind.ISSUE, on_date, next_day),
    )


def daily_position(
    movements: Iterable[StockMovement], item_name: str, on_date: date
) -> DailyStockPosition:
    movements = list(movements)
    opening = opening_stock(movements, item_name, on_date)
    restocked, issued = movements_on(movements, item_name, on_date)
    closing = clamp_non_negative(opening + restocked - issued, item_name, on_date, "closing")
    return DailyStockPosition(
        item_name=item_name,
        date=on_date,
        opening=opening,
        restocked=restocked,
        issued=issued,
        closing=closing,
    )


def closing_stock(movements: Iterable[StockMovement], item_name: str, on_date: date) -> Decimal:
    return daily_position(movements, item_name, on_date).closing


def monthly_position(
    movements: Iterable[StockMovement], item_name: str, year: int, month: int
) -> MonthlyStockPosition:
    movements = list(movements)
    window = DateWindow.for_month(year, month)
    opening = opening_stock(movements, item_name, window.start)
    restocked = sum_movements(movements, item_name, MovementKind.RESTOCK, window.start, window.end)
    issued = sum_movements(movements, item_name, MovementKind.ISSUE, window.start, window.end)
    closing = clamp_non_negative(
        opening + restocked - issued, item_name, window.end - timedelta(days=1), "month-end"
    )
    return MonthlyStockPosition(
        item_name=item_name,
        year=year,
        month=month,
        opening=opening,
        restocked=restocked,
        issued=issued,
        closing=closing,
    )
