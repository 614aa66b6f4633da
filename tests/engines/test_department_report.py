"""
Tests for engines.ledger.attribution — income / expenditure per collection.
"""

from datetime import date, datetime, timezone
from decimal import Decimal

from core.records.entities import Department, RecordStatus, new_record
from core.time import DateWindow
from engines.config_graph.graph import ConfigCategory, ConfigGraph, ConfigItem
from engines.ledger.attribution import (
    Collection,
    REPORT_ORDER,
    collection_for_issue,
    department_report,
)

T0 = datetime(2024, 1, 10, 9, 0, 0, tzinfo=timezone.utc)
JAN_10 = DateWindow.for_day(date(2024, 1, 10))


def _graph():
    return ConfigGraph(
        categories=[
            ConfigCategory("Spirits", ["bar"]),
            ConfigCategory("Grains", ["kitchen"]),
            ConfigCategory("Shared", ["bar", "kitchen"]),
            ConfigCategory("Cleaning", []),
        ],
        items=[
            ConfigItem("Gin", "Spirits", unit_price=Decimal("4500")),
            ConfigItem("Rice", "Grains", unit_price=Decimal("1200")),
            ConfigItem("Lemons", "Shared", unit_price=Decimal("100")),
            ConfigItem("Bleach", "Cleaning", unit_price=Decimal("800")),
        ],
    )


def _rec(entity_type, data, amount=0, at=T0):
    return new_record(
        entity_type=entity_type, data=data, created_at=at,
        status=RecordStatus.APPROVED, financial_amount=amount,
    )


def _issue(item, qty, day="2024-01-10"):
    return _rec(Department.STOREKEEPER, {
        "type": "stock_issued", "item_name": item, "quantity": qty, "date": day,
    })


class TestCollectionForIssue:
    def test_bar_wins_over_kitchen(self):
        assert collection_for_issue("Lemons", _graph()) == Collection.BAR.value

    def test_kitchen_item(self):
        assert collection_for_issue("Rice", _graph()) == Collection.RESTAURANT.value

    def test_unassigned_and_unknown_default(self):
        graph = _graph()
        assert collection_for_issue("Bleach", graph) == Collection.PROVISIONS.value
        assert collection_for_issue("Mystery", graph) == Collection.PROVISIONS.value
        assert collection_for_issue("Mystery", graph, default="General") == "General"


class TestDepartmentReport:
    def test_income_and_expenditure(self):
        records = [
            _rec(Department.FRONT_DESK, {"type": "payment_record", "booking_id": "b1",
                                         "amount": 30000, "date": "2024-01-10"}, amount=30000),
            _rec(Department.BAR, {"type": "stock_issued", "item_name": "Gin", "quantity": 2,
                                  "date": "2024-01-10"}, amount=9000),
            _rec(Department.KITCHEN, {"type": "stock_issued", "item_name": "Rice", "quantity": 3,
                                      "date": "2024-01-10"}, amount=3600),
            _issue("Gin", 1),
            _issue("Rice", 5),
            _issue("Bleach", 2),
        ]
        report = department_report(records, _graph(), JAN_10)

        assert [r.collection for r in report.rows] == list(REPORT_ORDER)
        rooms = report.row("Rooms")
        assert (rooms.income, rooms.expenditure, rooms.net) == (Decimal(30000), Decimal(0), Decimal(30000))
        bar = report.row("Bar")
        assert (bar.income, bar.expenditure) == (Decimal(9000), Decimal(4500))
        restaurant = report.row("Restaurant")
        assert (restaurant.income, restaurant.expenditure) == (Decimal(3600), Decimal(6000))
        assert restaurant.net == Decimal(-2400)
        assert report.row("Provisions").expenditure == Decimal(1600)
        assert report.total_income == Decimal(42600)
        assert report.total_expenditure == Decimal(12100)
        assert report.net == Decimal(30500)

    def test_window_by_business_date(self):
        records = [_issue("Gin", 1, day="2024-01-09"), _issue("Gin", 2)]
        report = department_report(records, _graph(), JAN_10)
        assert report.row("Bar").expenditure == Decimal(9000)

    def test_undated_record_uses_creation_day(self):
        booking = _rec(Department.FRONT_DESK, {"type": "checkout_record", "booking_id": "b1",
                                               "checkout": {"checkout_date": "2024-01-12"}},
                       amount=500)
        assert department_report([booking], _graph(), JAN_10).row("Rooms").income == Decimal(500)

    def test_restocks_and_other_roles_ignored(self):
        records = [
            _rec(Department.STOREKEEPER, {"type": "stock_restock", "item_name": "Gin",
                                          "quantity": 10, "date": "2024-01-10"}, amount=45000),
            _rec(Department.ADMIN, {"type": "config_item", "item_name": "Gin", "category": "Spirits"},
                 amount=100),
        ]
        report = department_report(records, _graph(), JAN_10)
        assert report.total_income == Decimal(0)
        assert report.total_expenditure == Decimal(0)

    def test_custom_default_collection_appended(self):
        report = department_report([_issue("Bleach", 1)], _graph(), JAN_10, default_collection="General")
        assert [r.collection for r in report.rows] == list(REPORT_ORDER) + ["General"]
        assert report.row("General").expenditure == Decimal(800)

    def test_empty_month(self):
        report = department_report([], _graph(), DateWindow.for_month(2024, 2))
        assert report.net == Decimal(0)
        assert len(report.rows) == 4
