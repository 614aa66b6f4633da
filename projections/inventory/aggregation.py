"""
HotelOps Projections — Stock Aggregation Sources
==================================================
One interface, two interchangeable implementations:

    LocalReplayAggregation — replays raw stock records from the store
    RemoteAggregation      — calls pre-aggregated database procedures

FallbackAggregation tries the remote path and recomputes locally
when the procedure is absent, errors, or returns malformed rows.
select_aggregation() probes availability once and wires the chain.

Both paths must return identical values for the same log:
    opening_stock_batch → {item: opening (clamped at 0)}
    daily_movements     → {item: MovementTotals(restocked, issued)}
Items missing from a result are reported as 0.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Union

from core.config import HotelOpsSettings
from core.records.entities import Department, OperationalRecord
from core.records.payloads import STOCK_PAYLOAD_TYPES
from core.records.resolver import canonical_records
from core.records.store import RecordQuery, RecordStore
from engines.stock.calculator import movements_on, opening_stock
from engines.stock.movements import StockMovement, index_by_item, movements_from_records
from engines.stock.sheets import MovementTotals

logger = logging.getLogger("hotelops.aggregation")

ZERO = Decimal(0)

OPENING_STOCK_PROCEDURE = "get_expected_opening_stock"
DEPARTMENT_STOCK_PROCEDURE = "get_department_stock_state"


class RemoteAggregationError(Exception):
    """Remote procedure absent, failed, or returned rows we cannot read."""

    def __init__(self, procedure: str, detail: str):
        self.procedure = procedure
        super().__init__(f"{procedure}: {detail}")


class StockAggregation(Protocol):

    def opening_stock_batch(
        self, scope: Union[Department, str], items: Sequence[str], on_date: date
    ) -> Dict[str, Decimal]:
        ...

    def daily_movements(
        self, scope: Union[Department, str], items: Sequence[str], on_date: date
    ) -> Dict[str, MovementTotals]:
        ...


# ══════════════════════════════════════════════════════════════
# LOCAL REPLAY
# ══════════════════════════════════════════════════════════════

class LocalReplayAggregation:
    """Recompute from canonical stock records of one department scope."""

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    def records(self, scope: Union[Department, str], before: date) -> List[OperationalRecord]:
        # resolve before bounding: a correction may move a movement past `before`
        raw = self._store.query(RecordQuery(
            entity_types=(Department.parse(scope),),
            payload_types=STOCK_PAYLOAD_TYPES,
        ))
        return [r for r in canonical_records(raw) if r.business_date() < before]

    def movements(self, scope: Union[Department, str], before: date) -> Dict[str, List[StockMovement]]:
        return index_by_item(movements_from_records(self.records(scope, before)))

    def opening_stock_batch(self, scope, items, on_date):
        # a baseline dated on_date counts as that morning's stock
        by_item = self.movements(scope, on_date + timedelta(days=1))
        return {item: opening_stock(by_item.get(item, ()), item, on_date) for item in items}

    def daily_movements(self, scope, items, on_date):
        by_item = self.movements(scope, on_date + timedelta(days=1))
        totals = {}
        for item in items:
            restocked, issued = movements_on(by_item.get(item, ()), item, on_date)
            totals[item] = MovementTotals(restocked=restocked, issued=issued)
        return totals


# ══════════════════════════════════════════════════════════════
# REMOTE PROCEDURES
# ══════════════════════════════════════════════════════════════

class ProcedureClient(Protocol):

    def is_available(self) -> bool:
        ...

    def call(self, name: str, params: Sequence[Any]) -> List[Mapping[str, Any]]:
        ...


class DjangoProcedureClient:
    """
    Calls set-returning SQL functions over the default Django connection.

    Only the two known stock procedures may be called. Available only
    on PostgreSQL, where the functions are installed by the database
    team; other backends always take the local replay path.
    """

    PROCEDURES = frozenset({OPENING_STOCK_PROCEDURE, DEPARTMENT_STOCK_PROCEDURE})

    def __init__(self, using: str = "default") -> None:
        self._using = using

    def _connection(self):
        from django.db import connections

        return connections[self._using]

    def is_available(self) -> bool:
        return self._connection().vendor == "postgresql"

    def call(self, name, params):
        from django.db import DatabaseError

        if name not in self.PROCEDURES:
            raise RemoteAggregationError(name, "unknown procedure")
        placeholders = ", ".join(["%s"] * len(params))
        try:
            with self._connection().cursor() as cursor:
                cursor.execute(f"SELECT * FROM {name}({placeholders})", list(params))
                columns = [col[0] for col in cursor.description or ()]
                return [dict(zip(columns, row)) for row in cursor.fetchall()]
        except DatabaseError as exc:
            raise RemoteAggregationError(name, str(exc)) from exc


def _quantity(procedure: str, row: Mapping[str, Any], column: str) -> Decimal:
    if column not in row:
        raise RemoteAggregationError(procedure, f"row without {column}")
    value = row[column]
    if value is None:
        return ZERO
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise RemoteAggregationError(procedure, f"bad {column} value {value!r}") from exc


class RemoteAggregation:
    """
    Pre-aggregated stock figures from database procedures.

        get_expected_opening_stock(role, item_name, date) → [{opening_stock}]
        get_department_stock_state(date, role, category)  → [{item_name, restocked_today, sold_today, ...}]

    A NULL category covers every item the role stocks. Rows missing a
    movement column are malformed, never read as zero.

    The opening procedure is per item; the batch fans out sequentially.
    """

    def __init__(self, client: ProcedureClient) -> None:
        self._client = client

    def opening_stock_batch(self, scope, items, on_date):
        role = Department.parse(scope).value
        result = {}
        for item in items:
            rows = self._client.call(OPENING_STOCK_PROCEDURE, (role, item, on_date))
            if len(rows) != 1:
                raise RemoteAggregationError(
                    OPENING_STOCK_PROCEDURE, f"expected one row for {item}, got {len(rows)}"
                )
            result[item] = max(ZERO, _quantity(OPENING_STOCK_PROCEDURE, rows[0], "opening_stock"))
        return result

    def daily_movements(self, scope, items, on_date):
        role = Department.parse(scope).value
        rows = self._client.call(DEPARTMENT_STOCK_PROCEDURE, (on_date, role, None))
        by_item: Dict[str, MovementTotals] = {}
        for row in rows:
            name = row.get("item_name")
            if not name:
                raise RemoteAggregationError(DEPARTMENT_STOCK_PROCEDURE, "row without item_name")
            by_item[str(name)] = MovementTotals(
                restocked=_quantity(DEPARTMENT_STOCK_PROCEDURE, row, "restocked_today"),
                issued=_quantity(DEPARTMENT_STOCK_PROCEDURE, row, "sold_today"),
            )
        return {item: by_item.get(item, MovementTotals()) for item in items}


# ══════════════════════════════════════════════════════════════
# FALLBACK
# ══════════════════════════════════════════════════════════════

class FallbackAggregation:

    def __init__(self, primary: StockAggregation, fallback: StockAggregation) -> None:
        self._primary = primary
        self._fallback = fallback

    def opening_stock_batch(self, scope, items, on_date):
        try:
            return self._primary.opening_stock_batch(scope, items, on_date)
        except RemoteAggregationError as exc:
            logger.warning("Opening stock via procedure failed (%s); replaying locally", exc)
            return self._fallback.opening_stock_batch(scope, items, on_date)

    def daily_movements(self, scope, items, on_date):
        try:
            return self._primary.daily_movements(scope, items, on_date)
        except RemoteAggregationError as exc:
            logger.warning("Daily movements via procedure failed (%s); replaying locally", exc)
            return self._fallback.daily_movements(scope, items, on_date)


def select_aggregation(
    store: RecordStore,
    client: Optional[ProcedureClient] = None,
    settings: Optional[HotelOpsSettings] = None,
) -> StockAggregation:
    """Remote-with-fallback when a procedure client is usable, else local replay."""
    settings = settings or HotelOpsSettings()
    local = LocalReplayAggregation(store)
    if client is None or not settings.remote_aggregation_enabled:
        return local
    if not client.is_available():
        logger.info("Stock procedures unavailable; using local replay")
        return local
    return FallbackAggregation(RemoteAggregation(client), local)
