"""
HotelOps Stock Engine — Policies
==================================
Pre-write validation for a daily sheet submission. Runs before any
insert; the first violation rejects the whole submission and names
the offending item.
"""

from __future__ import annotations

from typing import Optional, Sequence

from engines.stock.sheets import DailySheetRow


class StockValidationError(ValueError):
    """A stock submission was rejected before writing."""

    def __init__(self, item_name: Optional[str], message: str):
        self.item_name = item_name
        super().__init__(message)


def validate_stock_input(rows: Sequence[DailySheetRow]) -> None:
    """Raise StockValidationError for the first invalid row."""
    for row in rows:
        if not row.item_name or not row.item_name.strip():
            raise StockValidationError(None, "Every stock line needs an item name.")
        if row.pending_restocked < 0 or row.pending_issued < 0:
            raise StockValidationError(
                row.item_name,
                f"Quantities for {row.item_name} cannot be negative.",
            )
        if row.total_issued > row.opening + row.total_restocked:
            raise StockValidationError(
                row.item_name,
                f"Total issued ({row.total_issued}) for {row.item_name} cannot exceed "
                f"opening ({row.opening}) + total restocked ({row.total_restocked}).",
            )
        if row.raw_closing < 0:
            raise StockValidationError(
                row.item_name,
                f"Closing stock for {row.item_name} cannot be negative.",
            )
    if not any(row.has_pending for row in rows):
        raise StockValidationError(None, "No new changes to submit.")
