"""
HotelOps Stock Engine — Movements
===================================
Flattened view of stock records: one StockMovement per approved
opening_stock / stock_restock / stock_issued record. The calculator
only ever sees movements, never raw records.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, Iterable, List

from core.records.entities import OperationalRecord
from core.records.payloads import STOCK_PAYLOAD_TYPES


class MovementKind(str, Enum):
    BASELINE = "opening_stock"
    RESTOCK = "stock_restock"
    ISSUE = "stock_issued"


@dataclass(frozen=True)
class StockMovement:
    item_name: str
    kind: MovementKind
    quantity: Decimal
    date: date
    record_id: str
    created_at: datetime

    @property
    def sort_key(self) -> tuple:
        return (self.date, self.created_at, self.record_id)


def movements_from_records(records: Iterable[OperationalRecord]) -> List[StockMovement]:
    """Decode stock records into movements; other payload types are ignored."""
    movements = []
    for record in records:
        if record.payload_type not in STOCK_PAYLOAD_TYPES:
            continue
        payload = record.payload()
        movements.append(StockMovement(
            item_name=payload.item_name,
            kind=MovementKind(record.payload_type),
            quantity=payload.quantity,
            date=payload.date,
            record_id=record.id,
            created_at=record.created_at,
        ))
    return sorted(movements, key=lambda m: m.sort_key)


def index_by_item(movements: Iterable[StockMovement]) -> Dict[str, List[StockMovement]]:
    indexed: Dict[str, List[StockMovement]] = defaultdict(list)
    for movement in movements:
        indexed[movement.item_name].append(movement)
    return dict(indexed)
