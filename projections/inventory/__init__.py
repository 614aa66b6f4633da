"""
HotelOps Projections — Inventory Stock Sheets
===============================================
Read model behind the bar / kitchen / store daily stock sheets.

Daily sheet = config graph items for the role (or one category)
            + opening stock and already-submitted movements from the
              aggregation source
            + the user's pending input, kept apart from what is stored

Submitting validates the rows and writes only the pending quantities,
so re-opening and re-submitting a sheet never counts a movement twice.
Monthly sheets always replay locally.
"""

from __future__ import annotations

import time
from datetime import date
from decimal import Decimal
from typing import Callable, Dict, List, Mapping, Optional, Union

from core.config import HotelOpsSettings
from core.records.batch import BatchWriter, BatchWriteResult
from core.records.entities import Department
from core.records.store import RecordStore
from core.session import SessionGuard
from core.time import Clock, DateWindow, get_default_clock
from engines.config_graph.graph import ConfigGraph
from engines.config_graph.sources import ConfigGraphProvider
from engines.stock.calculator import MonthlyStockPosition, monthly_position
from engines.stock.policies import validate_stock_input
from engines.stock.sheets import (
    DailySheetRow,
    MovementTotals,
    build_daily_sheet,
    build_stock_records,
)
from projections.inventory.aggregation import (
    DjangoProcedureClient,
    FallbackAggregation,
    LocalReplayAggregation,
    ProcedureClient,
    RemoteAggregation,
    RemoteAggregationError,
    StockAggregation,
    select_aggregation,
)

SALES_DEPARTMENTS = frozenset({Department.BAR, Department.KITCHEN})


class StockSheetService:

    def __init__(
        self,
        *,
        store: RecordStore,
        config: ConfigGraphProvider,
        session: SessionGuard,
        clock: Optional[Clock] = None,
        aggregation: Optional[StockAggregation] = None,
        settings: Optional[HotelOpsSettings] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._settings = settings or HotelOpsSettings()
        self._config = config
        self._clock = clock or get_default_clock()
        self._local = LocalReplayAggregation(store)
        self._aggregation = aggregation or self._local
        self._batch = BatchWriter(store, session, self._settings, sleep=sleep)

    def _items(self, graph: ConfigGraph, department: Department, category: Optional[str]) -> List[str]:
        if category:
            items = graph.items_in_category(category)
        else:
            items = graph.items_for_role(department)
        return [item.item_name for item in items]

    def daily_sheet(
        self,
        department: Union[Department, str],
        on_date: date,
        *,
        category: Optional[str] = None,
        pending: Optional[Mapping[str, MovementTotals]] = None,
    ) -> List[DailySheetRow]:
        department = Department.parse(department)
        items = self._items(self._config.current(), department, category)
        if not items:
            return []
        openings = self._aggregation.opening_stock_batch(department, items, on_date)
        submitted = self._aggregation.daily_movements(department, items, on_date)
        return build_daily_sheet(on_date, items, openings, submitted, pending)

    def monthly_sheet(
        self,
        department: Union[Department, str],
        year: int,
        month: int,
        *,
        category: Optional[str] = None,
    ) -> List[MonthlyStockPosition]:
        department = Department.parse(department)
        items = self._items(self._config.current(), department, category)
        window = DateWindow.for_month(year, month)
        by_item = self._local.movements(department, window.end)
        return [monthly_position(by_item.get(item, ()), item, year, month) for item in items]

    def submit_daily_sheet(
        self,
        department: Union[Department, str],
        on_date: date,
        pending: Mapping[str, MovementTotals],
        *,
        actor_id: str,
        actor_role: Union[Department, str],
        category: Optional[str] = None,
    ) -> BatchWriteResult:
        """
        Validate and persist pending movements for one day.

        Bar and kitchen issues carry quantity × configured unit price
        as their financial amount (department sales income).
        """
        department = Department.parse(department)
        graph = self._config.current()
        unknown = set(pending) - set(self._items(graph, department, category))
        if unknown:
            raise ValueError(
                f"Items not on the {department.value} sheet: {', '.join(sorted(unknown))}."
            )
        rows = self.daily_sheet(department, on_date, category=category, pending=pending)
        validate_stock_input(rows)

        sale_prices: Optional[Dict[str, Decimal]] = None
        if department in SALES_DEPARTMENTS:
            sale_prices = {row.item_name: graph.unit_price(row.item_name) for row in rows}
        records = build_stock_records(
            rows,
            department=department,
            submitted_by=actor_id,
            role=actor_role,
            created_at=self._clock.now_utc(),
            sale_prices=sale_prices,
            include_closing_snapshot=True,
        )
        return self._batch.write(records)


__all__ = [
    "DjangoProcedureClient",
    "FallbackAggregation",
    "LocalReplayAggregation",
    "ProcedureClient",
    "RemoteAggregation",
    "RemoteAggregationError",
    "SALES_DEPARTMENTS",
    "StockAggregation",
    "StockSheetService",
    "select_aggregation",
]
