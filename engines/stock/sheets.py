"""
HotelOps Stock Engine — Daily / Monthly Sheets
================================================
A daily sheet row keeps what is already persisted for the day
(submitted_*) apart from what the user is entering now (pending_*).
Re-opening a sheet for edits therefore never counts a persisted
movement twice: only pending quantities are written on submit.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Sequence, Union

from core.primitives.approval import initial_status
from core.records.entities import Department, OperationalRecord, new_record
from core.records.payloads import (
    DailyClosingStockPayload,
    OpeningStockPayload,
    StockIssuedPayload,
    StockRestockPayload,
)

ZERO = Decimal(0)


@dataclass(frozen=True)
class MovementTotals:
    restocked: Decimal = ZERO
    issued: Decimal = ZERO


@dataclass(frozen=True)
class DailySheetRow:
    item_name: str
    date: date
    opening: Decimal
    submitted_restocked: Decimal = ZERO
    submitted_issued: Decimal = ZERO
    pending_restocked: Decimal = ZERO
    pending_issued: Decimal = ZERO

    @property
    def total_restocked(self) -> Decimal:
        return self.submitted_restocked + self.pending_restocked

    @property
    def total_issued(self) -> Decimal:
        return self.submitted_issued + self.pending_issued

    @property
    def raw_closing(self) -> Decimal:
        return self.opening + self.total_restocked - self.total_issued

    @property
    def closing(self) -> Decimal:
        return max(ZERO, self.raw_closing)

    @property
    def has_pending(self) -> bool:
        return self.pending_restocked != 0 or self.pending_issued != 0


def build_daily_sheet(
    on_date: date,
    items: Sequence[str],
    openings: Mapping[str, Decimal],
    submitted: Mapping[str, MovementTotals],
    pending: Optional[Mapping[str, MovementTotals]] = None,
) -> List[DailySheetRow]:
    pending = pending or {}
    rows = []
    for item in items:
        done = submitted.get(item, MovementTotals())
        new = pending.get(item, MovementTotals())
        rows.append(DailySheetRow(
            item_name=item,
            date=on_date,
            opening=openings.get(item, ZERO),
            submitted_restocked=done.restocked,
            submitted_issued=done.issued,
            pending_restocked=new.restocked,
            pending_issued=new.issued,
        ))
    return rows


# ══════════════════════════════════════════════════════════════
# RECORD BUILDERS
# ══════════════════════════════════════════════════════════════

def build_stock_records(
    rows: Sequence[DailySheetRow],
    *,
    department: Union[Department, str],
    submitted_by: str,
    role: Union[Department, str],
    created_at: datetime,
    sale_prices: Optional[Mapping[str, Decimal]] = None,
    include_closing_snapshot: bool = False,
) -> List[OperationalRecord]:
    """
    One record per non-zero pending movement. Call validate_stock_input first.

    sale_prices: per-item selling price; when given, issued records
    carry quantity × price as their financial_amount (bar and kitchen
    sales feed department income).
    """
    department = Department.parse(department)
    status = initial_status(role)
    prices: Dict[str, Decimal] = dict(sale_prices or {})
    records = []
    for row in rows:
        if row.pending_restocked > 0:
            records.append(new_record(
                entity_type=department,
                data=StockRestockPayload(
                    item_name=row.item_name, quantity=row.pending_restocked, date=row.date,
                ),
                created_at=created_at,
                status=status,
                submitted_by=submitted_by,
            ))
        if row.pending_issued > 0:
            price = prices.get(row.item_name)
            records.append(new_record(
                entity_type=department,
                data=StockIssuedPayload(
                    item_name=row.item_name, quantity=row.pending_issued, date=row.date,
                ),
                created_at=created_at,
                status=status,
                submitted_by=submitted_by,
                financial_amount=row.pending_issued * price if price is not None else 0,
            ))
        if include_closing_snapshot and row.has_pending:
            records.append(new_record(
                entity_type=department,
                data=DailyClosingStockPayload(
                    item_name=row.item_name,
                    date=row.date,
                    opening_stock=row.opening,
                    restocked=row.total_restocked,
                    issued=row.total_issued,
                    closing_stock=row.closing,
                ),
                created_at=created_at,
                status=status,
                submitted_by=submitted_by,
            ))
    return records


def build_opening_stock_record(
    item_name: str,
    quantity: Decimal,
    on_date: date,
    *,
    department: Union[Department, str],
    submitted_by: str,
    role: Union[Department, str],
    created_at: datetime,
    notes: str = "",
) -> OperationalRecord:
    """A new baseline snapshot; replay restarts from it."""
    if quantity < 0:
        raise ValueError(f"Opening stock for {item_name} cannot be negative.")
    return new_record(
        entity_type=department,
        data=OpeningStockPayload(item_name=item_name, quantity=quantity, date=on_date, notes=notes),
        created_at=created_at,
        status=initial_status(role),
        submitted_by=submitted_by,
    )
