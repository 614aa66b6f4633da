"""
HotelOps Ledger Engine — Department Attribution
=================================================
Income / expenditure / net per collection for a day or month.

    income       Σ financial_amount of front_desk (Rooms),
                 bar (Bar) and kitchen (Restaurant) records
    expenditure  Σ storekeeper stock_issued quantity × unit_price,
                 attributed through the config graph: an item whose
                 category is assigned to bar → Bar, else kitchen →
                 Restaurant, else the default collection (Provisions)
    net          income − expenditure

Records are attributed by business date (payload `date`, else the
day they were written). Callers pass canonical, approved records.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Dict, Iterable, Optional, Tuple

from core.records.entities import Department, OperationalRecord
from core.records.payloads import StockIssuedPayload
from core.time import DateWindow
from engines.config_graph.graph import ConfigGraph

ZERO = Decimal(0)


class Collection(str, Enum):
    ROOMS = "Rooms"
    BAR = "Bar"
    RESTAURANT = "Restaurant"
    PROVISIONS = "Provisions"


INCOME_COLLECTIONS: Dict[Department, str] = {
    Department.FRONT_DESK: Collection.ROOMS.value,
    Department.BAR: Collection.BAR.value,
    Department.KITCHEN: Collection.RESTAURANT.value,
}

REPORT_ORDER: Tuple[str, ...] = tuple(c.value for c in Collection)


def collection_for_issue(
    item_name: str, graph: ConfigGraph, default: str = Collection.PROVISIONS.value
) -> str:
    roles = graph.departments_for_item(item_name)
    if Department.BAR.value in roles:
        return Collection.BAR.value
    if Department.KITCHEN.value in roles:
        return Collection.RESTAURANT.value
    return default


@dataclass(frozen=True)
class CollectionTotals:
    collection: str
    income: Decimal = ZERO
    expenditure: Decimal = ZERO

    @property
    def net(self) -> Decimal:
        return self.income - self.expenditure


@dataclass(frozen=True)
class DepartmentReport:
    window: DateWindow
    rows: Tuple[CollectionTotals, ...]

    def row(self, collection: str) -> Optional[CollectionTotals]:
        for row in self.rows:
            if row.collection == collection:
                return row
        return None

    @property
    def total_income(self) -> Decimal:
        return sum((r.income for r in self.rows), ZERO)

    @property
    def total_expenditure(self) -> Decimal:
        return sum((r.expenditure for r in self.rows), ZERO)

    @property
    def net(self) -> Decimal:
        return self.total_income - self.total_expenditure


def department_report(
    records: Iterable[OperationalRecord],
    graph: ConfigGraph,
    window: DateWindow,
    default_collection: str = Collection.PROVISIONS.value,
) -> DepartmentReport:
    income: Dict[str, Decimal] = defaultdict(lambda: ZERO)
    expenditure: Dict[str, Decimal] = defaultdict(lambda: ZERO)

    for record in records:
        if not window.contains(record.business_date()):
            continue
        collection = INCOME_COLLECTIONS.get(record.entity_type)
        if collection is not None:
            income[collection] += record.financial_amount
            continue
        if record.entity_type == Department.STOREKEEPER and \
                record.payload_type == StockIssuedPayload.TYPE:
            payload = record.payload()
            target = collection_for_issue(payload.item_name, graph, default_collection)
            expenditure[target] += payload.quantity * graph.unit_price(payload.item_name)

    names = list(REPORT_ORDER)
    for extra in sorted(set(income) | set(expenditure)):
        if extra not in names:
            names.append(extra)
    return DepartmentReport(
        window=window,
        rows=tuple(
            CollectionTotals(collection=n, income=income[n], expenditure=expenditure[n])
            for n in names
        ),
    )
