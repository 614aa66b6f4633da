"""
Tests for engines.stock — baseline replay, daily sheets, validation.
"""

import logging
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from core.records.entities import Department, RecordStatus, new_record
from engines.stock.calculator import (
    closing_stock,
    daily_position,
    find_baseline,
    monthly_position,
    opening_stock,
)
from engines.stock.movements import MovementKind, index_by_item, movements_from_records
from engines.stock.policies import StockValidationError, validate_stock_input
from engines.stock.sheets import (
    DailySheetRow,
    MovementTotals,
    build_daily_sheet,
    build_opening_stock_record,
    build_stock_records,
)

T0 = datetime(2024, 1, 1, 7, 0, 0, tzinfo=timezone.utc)


def _rec(kind, item, qty, day, *, minutes=0):
    return new_record(
        entity_type=Department.KITCHEN,
        data={"type": kind, "item_name": item, "quantity": qty, "date": day},
        created_at=T0 + timedelta(minutes=minutes),
        status=RecordStatus.APPROVED,
    )


def _rice_movements():
    return movements_from_records([
        _rec("opening_stock", "Rice", 50, "2024-01-01"),
        _rec("stock_restock", "Rice", 20, "2024-01-05"),
        _rec("stock_issued", "Rice", 10, "2024-01-06"),
    ])


class TestMovements:
    def test_other_payloads_ignored(self):
        records = [
            _rec("stock_issued", "Rice", 1, "2024-01-02"),
            new_record(
                entity_type="kitchen",
                data={"type": "daily_closing_stock", "item_name": "Rice", "date": "2024-01-02"},
                created_at=T0,
            ),
        ]
        [movement] = movements_from_records(records)
        assert movement.kind == MovementKind.ISSUE
        assert movement.quantity == Decimal(1)

    def test_index_by_item(self):
        movements = movements_from_records([
            _rec("stock_issued", "Rice", 1, "2024-01-02"),
            _rec("stock_issued", "Beans", 1, "2024-01-02"),
        ])
        assert set(index_by_item(movements)) == {"Rice", "Beans"}


class TestReplay:
    def test_rice_opening_on_seventh(self):
        assert opening_stock(_rice_movements(), "Rice", date(2024, 1, 7)) == Decimal(60)

    def test_no_baseline_replays_from_start(self):
        movements = movements_from_records([_rec("stock_restock", "Beans", 5, "2024-01-02")])
        assert find_baseline(movements, "Beans", date(2024, 1, 3)).date is None
        assert opening_stock(movements, "Beans", date(2024, 1, 3)) == Decimal(5)

    def test_baseline_dated_today_is_the_morning_figure(self):
        movements = movements_from_records([
            _rec("stock_restock", "Rice", 100, "2024-01-02"),
            _rec("opening_stock", "Rice", 30, "2024-01-03"),
            _rec("stock_issued", "Rice", 4, "2024-01-03"),
        ])
        position = daily_position(movements, "Rice", date(2024, 1, 3))
        assert position.opening == Decimal(30)
        assert position.closing == Decimal(26)

    def test_latest_baseline_on_same_day_wins(self):
        movements = movements_from_records([
            _rec("opening_stock", "Rice", 30, "2024-01-03"),
            _rec("opening_stock", "Rice", 45, "2024-01-03", minutes=5),
        ])
        assert opening_stock(movements, "Rice", date(2024, 1, 3)) == Decimal(45)

    @pytest.mark.parametrize("day", [date(2024, 1, d) for d in range(1, 9)])
    def test_closing_identity_and_continuity(self, day):
        movements = _rice_movements()
        position = daily_position(movements, "Rice", day)
        assert position.opening + position.restocked - position.issued == position.closing
        assert closing_stock(movements, "Rice", day) == opening_stock(movements, "Rice", day + timedelta(days=1))

    def test_negative_clamped_and_logged(self, caplog):
        movements = movements_from_records([
            _rec("opening_stock", "Rice", 5, "2024-01-01"),
            _rec("stock_issued", "Rice", 8, "2024-01-01"),
        ])
        with caplog.at_level(logging.WARNING, logger="hotelops.stock"):
            assert closing_stock(movements, "Rice", date(2024, 1, 1)) == Decimal(0)
            assert opening_stock(movements, "Rice", date(2024, 1, 2)) == Decimal(0)
        assert "Rice" in caplog.text


class TestMonthlyPosition:
    def test_month_partition(self):
        movements = movements_from_records([
            _rec("opening_stock", "Rice", 50, "2023-12-20"),
            _rec("stock_restock", "Rice", 10, "2023-12-28"),
            _rec("stock_issued", "Rice", 5, "2023-12-30"),
            _rec("stock_restock", "Rice", 20, "2024-01-05"),
            _rec("stock_issued", "Rice", 30, "2024-01-20"),
            _rec("stock_restock", "Rice", 99, "2024-02-01"),
        ])
        month = monthly_position(movements, "Rice", 2024, 1)
        assert month.opening == Decimal(55)
        assert month.restocked == Decimal(20)
        assert month.issued == Decimal(30)
        assert month.closing == Decimal(45)

    def test_month_closing_matches_last_day_without_new_baseline(self):
        movements = _rice_movements()
        month = monthly_position(movements, "Rice", 2024, 1)
        assert month.closing == closing_stock(movements, "Rice", date(2024, 1, 31))


class TestDailySheet:
    def test_submitted_and_pending_kept_apart(self):
        [row] = build_daily_sheet(
            date(2024, 1, 7), ["Rice"],
            openings={"Rice": Decimal(60)},
            submitted={"Rice": MovementTotals(restocked=Decimal(5), issued=Decimal(10))},
            pending={"Rice": MovementTotals(issued=Decimal(3))},
        )
        assert row.total_restocked == Decimal(5)
        assert row.total_issued == Decimal(13)
        assert row.closing == Decimal(52)
        assert row.has_pending

    def test_unknown_items_default_to_zero(self):
        [row] = build_daily_sheet(date(2024, 1, 7), ["Beans"], openings={}, submitted={})
        assert row.opening == Decimal(0)
        assert not row.has_pending


class TestValidation:
    def _row(self, **kw):
        values = dict(item_name="Rice", date=date(2024, 1, 7), opening=Decimal(10))
        values.update(kw)
        return DailySheetRow(**values)

    def test_accepts_valid_rows(self):
        validate_stock_input([self._row(pending_issued=Decimal(4))])

    def test_negative_quantity(self):
        with pytest.raises(StockValidationError, match="Quantities for Rice") as exc:
            validate_stock_input([self._row(pending_issued=Decimal(-1))])
        assert exc.value.item_name == "Rice"

    def test_issued_exceeds_available(self):
        with pytest.raises(StockValidationError, match="cannot exceed"):
            validate_stock_input([self._row(submitted_issued=Decimal(8), pending_issued=Decimal(3))])

    def test_missing_item_name(self):
        with pytest.raises(StockValidationError, match="item name"):
            validate_stock_input([self._row(item_name=" ", pending_issued=Decimal(1))])

    def test_nothing_pending(self):
        with pytest.raises(StockValidationError, match="No new changes"):
            validate_stock_input([self._row(submitted_issued=Decimal(2))])


class TestRecordBuilders:
    def test_one_record_per_pending_movement(self):
        rows = [
            DailySheetRow("Gin", date(2024, 1, 7), Decimal(10),
                          pending_restocked=Decimal(2), pending_issued=Decimal(3)),
            DailySheetRow("Rum", date(2024, 1, 7), Decimal(10), submitted_issued=Decimal(1)),
        ]
        records = build_stock_records(
            rows, department="bar", submitted_by="bar-1", role="bar", created_at=T0,
            sale_prices={"Gin": Decimal("4500")},
        )
        assert [r.payload_type for r in records] == ["stock_restock", "stock_issued"]
        assert all(r.status == RecordStatus.PENDING for r in records)
        assert records[1].financial_amount == Decimal("13500")
        assert records[0].entity_type == Department.BAR

    def test_closing_snapshot_optional(self):
        row = DailySheetRow("Gin", date(2024, 1, 7), Decimal(10), pending_issued=Decimal(3))
        records = build_stock_records(
            [row], department="bar", submitted_by="sup-1", role="supervisor", created_at=T0,
            include_closing_snapshot=True,
        )
        assert [r.payload_type for r in records] == ["stock_issued", "daily_closing_stock"]
        assert records[1].payload().closing_stock == Decimal(7)
        assert all(r.status == RecordStatus.APPROVED for r in records)

    def test_snapshot_does_not_move_replay(self):
        row = DailySheetRow("Gin", date(2024, 1, 7), Decimal(10), pending_issued=Decimal(3))
        records = build_stock_records(
            [row], department="bar", submitted_by="sup-1", role="supervisor", created_at=T0,
            include_closing_snapshot=True,
        )
        movements = movements_from_records(records)
        assert opening_stock(movements, "Gin", date(2024, 1, 8)) == Decimal(0)

    def test_opening_stock_record(self):
        record = build_opening_stock_record(
            "Rice", Decimal(50), date(2024, 1, 1),
            department="kitchen", submitted_by="mgr-1", role="manager", created_at=T0,
        )
        assert record.payload_type == "opening_stock"
        assert record.status == RecordStatus.APPROVED
        with pytest.raises(ValueError, match="cannot be negative"):
            build_opening_stock_record(
                "Rice", Decimal(-1), date(2024, 1, 1),
                department="kitchen", submitted_by="mgr-1", role="manager", created_at=T0,
            )
