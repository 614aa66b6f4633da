"""
HotelOps Projections — Department Finance Reports
===================================================
Daily and monthly income / expenditure / net per collection
(Rooms, Bar, Restaurant, Provisions), recomputed on every read.

Two reads per report:
    1. range query for the window → the logical entities touched
    2. every version of those entities → canonical resolution

Resolving over all versions means a correction that moves a record
out of the window removes it, and a deletion removes it entirely.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional

from core.config import HotelOpsSettings
from core.records.entities import Department, OperationalRecord
from core.records.resolver import canonical_records
from core.records.store import RecordQuery, RecordStore
from core.time import DateWindow
from engines.config_graph.sources import ConfigGraphProvider
from engines.ledger.attribution import DepartmentReport, department_report

logger = logging.getLogger("hotelops.finance")

REPORT_DEPARTMENTS = (
    Department.FRONT_DESK,
    Department.BAR,
    Department.KITCHEN,
    Department.STOREKEEPER,
)


class FinanceReportService:

    def __init__(
        self,
        *,
        store: RecordStore,
        config: ConfigGraphProvider,
        settings: Optional[HotelOpsSettings] = None,
    ) -> None:
        self._store = store
        self._config = config
        self._settings = settings or HotelOpsSettings()

    def _records(self, window: DateWindow) -> List[OperationalRecord]:
        touched = self._store.query(RecordQuery(
            entity_types=REPORT_DEPARTMENTS,
            on_or_after=window.start,
            before=window.end,
        ))
        if not touched:
            return []
        original_ids = tuple(sorted({r.original_id for r in touched}))
        versions = self._store.query(RecordQuery(original_ids=original_ids))
        return canonical_records(versions)

    def report(self, window: DateWindow) -> DepartmentReport:
        records = self._records(window)
        result = department_report(
            records,
            self._config.current(),
            window,
            default_collection=self._settings.default_collection,
        )
        logger.debug(
            "Department report %s..%s over %d records: income=%s expenditure=%s",
            window.start, window.end, len(records),
            result.total_income, result.total_expenditure,
        )
        return result

    def daily_report(self, day: date) -> DepartmentReport:
        return self.report(DateWindow.for_day(day))

    def monthly_report(self, year: int, month: int) -> DepartmentReport:
        return self.report(DateWindow.for_month(year, month))


__all__ = ["FinanceReportService", "REPORT_DEPARTMENTS"]
