"""
HotelOps Records — Payload Variants
=====================================
Every record's `data` carries a `type` discriminator. Each tag maps
to exactly one frozen dataclass below; decode_payload() validates and
converts the raw mapping before any field is read, so engines never
index into an open dictionary.

Amounts decode to Decimal, dates to datetime.date. Encoding writes
Decimals as strings and dates as ISO strings (JSON safe).
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, ClassVar, Dict, Mapping, Optional, Union

from core.records.errors import PayloadDecodeError
from core.time import as_date


HOUSEKEEPING_REPORT_STATUSES = frozenset({"cleaned", "dirty", "maintenance", "inspected"})


# ══════════════════════════════════════════════════════════════
# FIELD DECODERS
# ══════════════════════════════════════════════════════════════

_MISSING = object()


def _raw(data: Mapping[str, Any], key: str, tag: str, default: Any = _MISSING) -> Any:
    value = data.get(key)
    if value is None or value == "":
        if default is _MISSING:
            raise PayloadDecodeError(f"missing required field '{key}'.", tag)
        return default
    return value


def _text(data: Mapping[str, Any], key: str, tag: str, default: Any = _MISSING) -> Any:
    value = _raw(data, key, tag, default)
    return value if value is default else str(value)


def _decimal(data: Mapping[str, Any], key: str, tag: str, default: Any = _MISSING) -> Any:
    value = _raw(data, key, tag, default)
    if value is default:
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise PayloadDecodeError(f"field '{key}' is not a number: {value!r}.", tag) from None


def _int(data: Mapping[str, Any], key: str, tag: str, default: Any = _MISSING) -> Any:
    value = _raw(data, key, tag, default)
    if value is default:
        return value
    try:
        return int(Decimal(str(value)))
    except (InvalidOperation, ValueError):
        raise PayloadDecodeError(f"field '{key}' is not an integer: {value!r}.", tag) from None


def _day(data: Mapping[str, Any], key: str, tag: str, default: Any = _MISSING) -> Any:
    value = _raw(data, key, tag, default)
    if value is default:
        return value
    try:
        return as_date(value)
    except ValueError:
        raise PayloadDecodeError(f"field '{key}' is not a date: {value!r}.", tag) from None


def _section(data: Mapping[str, Any], key: str, tag: str) -> Mapping[str, Any]:
    value = data.get(key)
    if not isinstance(value, Mapping):
        raise PayloadDecodeError(f"missing required section '{key}'.", tag)
    return value


def _encode(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, date):
        return value.isoformat()
    if dataclasses.is_dataclass(value):
        return {f.name: _encode(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Mapping):
        return {k: _encode(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, frozenset, set)):
        return [_encode(v) for v in value]
    return value


class _Variant:
    TYPE: ClassVar[str] = ""

    def to_data(self) -> Dict[str, Any]:
        data = {"type": self.TYPE}
        data.update(_encode(self))
        return data


# ══════════════════════════════════════════════════════════════
# CONFIGURATION
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ConfigCategoryPayload(_Variant):
    """assigned_to is kept as submitted: a role list or a {role: bool} map."""
    TYPE: ClassVar[str] = "config_category"
    name: str
    assigned_to: Any = None
    active: bool = True

    @classmethod
    def from_data(cls, data: Mapping[str, Any]) -> "ConfigCategoryPayload":
        name = data.get("category_name") or data.get("name")
        if not name:
            raise PayloadDecodeError("missing required field 'category_name'.", cls.TYPE)
        return cls(
            name=str(name),
            assigned_to=data.get("assigned_to"),
            active=bool(data.get("active", True)),
        )


@dataclass(frozen=True)
class ConfigCollectionPayload(_Variant):
    TYPE: ClassVar[str] = "config_collection"
    name: str
    active: bool = True

    @classmethod
    def from_data(cls, data: Mapping[str, Any]) -> "ConfigCollectionPayload":
        name = data.get("collection_name") or data.get("name")
        if not name:
            raise PayloadDecodeError("missing required field 'name'.", cls.TYPE)
        return cls(name=str(name), active=bool(data.get("active", True)))


@dataclass(frozen=True)
class ConfigItemPayload(_Variant):
    TYPE: ClassVar[str] = "config_item"
    item_name: str
    category: str
    collection: str = ""
    unit: str = ""
    unit_price: Decimal = Decimal(0)
    active: bool = True

    @classmethod
    def from_data(cls, data: Mapping[str, Any]) -> "ConfigItemPayload":
        t = cls.TYPE
        return cls(
            item_name=_text(data, "item_name", t),
            category=_text(data, "category", t),
            collection=_text(data, "collection", t, ""),
            unit=_text(data, "unit", t, ""),
            unit_price=_decimal(data, "unit_price", t, Decimal(0)),
            active=bool(data.get("active", True)),
        )


# ══════════════════════════════════════════════════════════════
# STOCK MOVEMENTS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class OpeningStockPayload(_Variant):
    """Baseline snapshot: the stock on the morning of `date`."""
    TYPE: ClassVar[str] = "opening_stock"
    item_name: str
    quantity: Decimal
    date: date
    notes: str = ""

    @classmethod
    def from_data(cls, data: Mapping[str, Any]) -> "OpeningStockPayload":
        t = cls.TYPE
        return cls(
            item_name=_text(data, "item_name", t),
            quantity=_decimal(data, "quantity", t),
            date=_day(data, "date", t),
            notes=_text(data, "notes", t, ""),
        )


@dataclass(frozen=True)
class StockRestockPayload(_Variant):
    TYPE: ClassVar[str] = "stock_restock"
    item_name: str
    quantity: Decimal
    date: date
    unit_price: Optional[Decimal] = None
    notes: str = ""

    @classmethod
    def from_data(cls, data: Mapping[str, Any]) -> "StockRestockPayload":
        t = cls.TYPE
        return cls(
            item_name=_text(data, "item_name", t),
            quantity=_decimal(data, "quantity", t),
            date=_day(data, "date", t),
            unit_price=_decimal(data, "unit_price", t, None),
            notes=_text(data, "notes", t, ""),
        )


@dataclass(frozen=True)
class StockIssuedPayload(_Variant):
    """Stock leaving a department: issued by stores, sold at the bar, used in the kitchen."""
    TYPE: ClassVar[str] = "stock_issued"
    item_name: str
    quantity: Decimal
    date: date
    issued_to: str = ""
    notes: str = ""

    @classmethod
    def from_data(cls, data: Mapping[str, Any]) -> "StockIssuedPayload":
        t = cls.TYPE
        return cls(
            item_name=_text(data, "item_name", t),
            quantity=_decimal(data, "quantity", t),
            date=_day(data, "date", t),
            issued_to=_text(data, "issued_to", t, ""),
            notes=_text(data, "notes", t, ""),
        )


@dataclass(frozen=True)
class DailyClosingStockPayload(_Variant):
    """Informational end-of-day snapshot. Replay never reads it."""
    TYPE: ClassVar[str] = "daily_closing_stock"
    item_name: str
    date: date
    opening_stock: Decimal = Decimal(0)
    restocked: Decimal = Decimal(0)
    issued: Decimal = Decimal(0)
    closing_stock: Decimal = Decimal(0)

    @classmethod
    def from_data(cls, data: Mapping[str, Any]) -> "DailyClosingStockPayload":
        t = cls.TYPE
        return cls(
            item_name=_text(data, "item_name", t),
            date=_day(data, "date", t),
            opening_stock=_decimal(data, "opening_stock", t, Decimal(0)),
            restocked=_decimal(data, "restocked", t, Decimal(0)),
            issued=_decimal(data, "issued", t, Decimal(0)),
            closing_stock=_decimal(data, "closing_stock", t, Decimal(0)),
        )


# ══════════════════════════════════════════════════════════════
# BOOKINGS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class GuestInfo:
    full_name: str
    phone: str = ""
    email: str = ""

    @classmethod
    def from_data(cls, data: Mapping[str, Any], tag: str) -> "GuestInfo":
        name = data.get("full_name") or data.get("name")
        if not name:
            raise PayloadDecodeError("missing required field 'guest.full_name'.", tag)
        return cls(
            full_name=str(name),
            phone=_text(data, "phone", tag, ""),
            email=_text(data, "email", tag, ""),
        )


@dataclass(frozen=True)
class StayInfo:
    room_id: str
    check_in: date
    check_out: date
    adults: int = 1
    children: int = 0
    status: str = "checked_in"

    @classmethod
    def from_data(cls, data: Mapping[str, Any], tag: str) -> "StayInfo":
        return cls(
            room_id=_text(data, "room_id", tag),
            check_in=_day(data, "check_in", tag),
            check_out=_day(data, "check_out", tag),
            adults=_int(data, "adults", tag, 1),
            children=_int(data, "children", tag, 0),
            status=_text(data, "status", tag, "checked_in"),
        )


@dataclass(frozen=True)
class PricingInfo:
    room_rate: Decimal
    nights: int
    total_room_cost: Decimal

    @classmethod
    def from_data(cls, data: Mapping[str, Any], tag: str) -> "PricingInfo":
        return cls(
            room_rate=_decimal(data, "room_rate", tag),
            nights=_int(data, "nights", tag, 0),
            total_room_cost=_decimal(data, "total_room_cost", tag, Decimal(0)),
        )


@dataclass(frozen=True)
class PaymentInfo:
    paid_amount: Decimal = Decimal(0)
    method: str = ""
    balance: Decimal = Decimal(0)

    @classmethod
    def from_data(cls, data: Mapping[str, Any], tag: str) -> "PaymentInfo":
        return cls(
            paid_amount=_decimal(data, "paid_amount", tag, Decimal(0)),
            method=str(data.get("method") or data.get("payment_method") or ""),
            balance=_decimal(data, "balance", tag, Decimal(0)),
        )


@dataclass(frozen=True)
class RoomBookingPayload(_Variant):
    """
    One stay segment in one room.

    original_id links transfer and resume segments back to the first
    segment of the stay; it is None on the first segment itself.
    """
    TYPE: ClassVar[str] = "room_booking"
    guest: GuestInfo
    stay: StayInfo
    pricing: PricingInfo
    payment: PaymentInfo = field(default_factory=PaymentInfo)
    booking_id: Optional[str] = None
    original_id: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_data(cls, data: Mapping[str, Any]) -> "RoomBookingPayload":
        t = cls.TYPE
        payment = data.get("payment")
        return cls(
            guest=GuestInfo.from_data(_section(data, "guest", t), t),
            stay=StayInfo.from_data(_section(data, "stay", t), t),
            pricing=PricingInfo.from_data(_section(data, "pricing", t), t),
            payment=PaymentInfo.from_data(payment, t) if isinstance(payment, Mapping) else PaymentInfo(),
            booking_id=data.get("booking_id") or None,
            original_id=data.get("original_id") or None,
            meta=dict(data.get("meta") or {}),
        )


# ══════════════════════════════════════════════════════════════
# FOLIO MOVEMENTS (reference a booking)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CheckoutInfo:
    checkout_date: date
    total_due: Decimal = Decimal(0)
    final_payment: Decimal = Decimal(0)
    payment_method: str = ""
    notes: str = ""

    @classmethod
    def from_data(cls, data: Mapping[str, Any], tag: str) -> "CheckoutInfo":
        return cls(
            checkout_date=_day(data, "checkout_date", tag),
            total_due=_decimal(data, "total_due", tag, Decimal(0)),
            final_payment=_decimal(data, "final_payment", tag, Decimal(0)),
            payment_method=_text(data, "payment_method", tag, ""),
            notes=_text(data, "notes", tag, ""),
        )


@dataclass(frozen=True)
class CheckoutPayload(_Variant):
    TYPE: ClassVar[str] = "checkout_record"
    booking_id: str
    checkout: CheckoutInfo

    @classmethod
    def from_data(cls, data: Mapping[str, Any]) -> "CheckoutPayload":
        t = cls.TYPE
        return cls(
            booking_id=_text(data, "booking_id", t),
            checkout=CheckoutInfo.from_data(_section(data, "checkout", t), t),
        )


@dataclass(frozen=True)
class _AmountPayload(_Variant):
    booking_id: str
    amount: Decimal
    reason: str = ""
    date: Optional[date] = None

    @classmethod
    def from_data(cls, data: Mapping[str, Any]):
        t = cls.TYPE
        return cls(
            booking_id=_text(data, "booking_id", t),
            amount=_decimal(data, "amount", t),
            reason=_text(data, "reason", t, ""),
            date=_day(data, "date", t, None),
        )


@dataclass(frozen=True)
class PenaltyFeePayload(_AmountPayload):
    TYPE: ClassVar[str] = "penalty_fee"


@dataclass(frozen=True)
class DiscountPayload(_AmountPayload):
    TYPE: ClassVar[str] = "discount_applied"


@dataclass(frozen=True)
class RefundPayload(_AmountPayload):
    TYPE: ClassVar[str] = "refund_record"


@dataclass(frozen=True)
class PaymentRecordPayload(_Variant):
    TYPE: ClassVar[str] = "payment_record"
    booking_id: str
    amount: Decimal
    method: str = ""
    reason: str = ""
    date: Optional[date] = None

    @classmethod
    def from_data(cls, data: Mapping[str, Any]) -> "PaymentRecordPayload":
        t = cls.TYPE
        return cls(
            booking_id=_text(data, "booking_id", t),
            amount=_decimal(data, "amount", t),
            method=str(data.get("method") or data.get("payment_method") or ""),
            reason=_text(data, "reason", t, ""),
            date=_day(data, "date", t, None),
        )


@dataclass(frozen=True)
class ExtensionInfo:
    previous_check_out: date
    new_check_out: date
    nights_added: int
    additional_cost: Decimal
    reason: str = ""

    @classmethod
    def from_data(cls, data: Mapping[str, Any], tag: str) -> "ExtensionInfo":
        return cls(
            previous_check_out=_day(data, "previous_check_out", tag),
            new_check_out=_day(data, "new_check_out", tag),
            nights_added=_int(data, "nights_added", tag),
            additional_cost=_decimal(data, "additional_cost", tag, Decimal(0)),
            reason=_text(data, "reason", tag, ""),
        )


@dataclass(frozen=True)
class StayExtensionPayload(_Variant):
    TYPE: ClassVar[str] = "stay_extension"
    booking_id: str
    extension: ExtensionInfo

    @classmethod
    def from_data(cls, data: Mapping[str, Any]) -> "StayExtensionPayload":
        t = cls.TYPE
        return cls(
            booking_id=_text(data, "booking_id", t),
            extension=ExtensionInfo.from_data(_section(data, "extension", t), t),
        )


# ══════════════════════════════════════════════════════════════
# ROOM MOVEMENTS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TransferInfo:
    previous_room_id: str
    new_room_id: str
    transfer_date: date
    reason: str = ""
    refund_amount: Decimal = Decimal(0)
    new_charge_amount: Decimal = Decimal(0)

    @classmethod
    def from_data(cls, data: Mapping[str, Any], tag: str) -> "TransferInfo":
        return cls(
            previous_room_id=_text(data, "previous_room_id", tag),
            new_room_id=_text(data, "new_room_id", tag),
            transfer_date=_day(data, "transfer_date", tag),
            reason=_text(data, "reason", tag, ""),
            refund_amount=_decimal(data, "refund_amount", tag, Decimal(0)),
            new_charge_amount=_decimal(data, "new_charge_amount", tag, Decimal(0)),
        )


@dataclass(frozen=True)
class RoomTransferPayload(_Variant):
    TYPE: ClassVar[str] = "room_transfer"
    booking_id: str
    transfer: TransferInfo

    @classmethod
    def from_data(cls, data: Mapping[str, Any]) -> "RoomTransferPayload":
        t = cls.TYPE
        return cls(
            booking_id=_text(data, "booking_id", t),
            transfer=TransferInfo.from_data(_section(data, "transfer", t), t),
        )


@dataclass(frozen=True)
class TransferCompletionPayload(_Variant):
    """Idempotency marker: the successor segment for this transfer exists."""
    TYPE: ClassVar[str] = "transfer_completion"
    booking_id: str
    previous_room_id: str
    new_room_id: str
    completed_date: date
    successor_booking_id: Optional[str] = None

    @classmethod
    def from_data(cls, data: Mapping[str, Any]) -> "TransferCompletionPayload":
        t = cls.TYPE
        return cls(
            booking_id=_text(data, "booking_id", t),
            previous_room_id=_text(data, "previous_room_id", t),
            new_room_id=_text(data, "new_room_id", t),
            completed_date=_day(data, "completed_date", t),
            successor_booking_id=data.get("successor_booking_id") or None,
        )


@dataclass(frozen=True)
class StayInterruptionPayload(_Variant):
    """Closes a booking segment without settlement."""
    TYPE: ClassVar[str] = "stay_interruption"
    booking_id: str
    room_id: str
    interruption_date: date
    used_days: int = 0
    used_cost: Decimal = Decimal(0)
    credit_remaining: Decimal = Decimal(0)
    reason: str = ""

    @classmethod
    def from_data(cls, data: Mapping[str, Any]) -> "StayInterruptionPayload":
        t = cls.TYPE
        return cls(
            booking_id=_text(data, "booking_id", t),
            room_id=_text(data, "room_id", t),
            interruption_date=_day(data, "interruption_date", t),
            used_days=_int(data, "used_days", t, 0),
            used_cost=_decimal(data, "used_cost", t, Decimal(0)),
            credit_remaining=_decimal(data, "credit_remaining", t, Decimal(0)),
            reason=_text(data, "reason", t, ""),
        )


@dataclass(frozen=True)
class InterruptedStayCreditPayload(_Variant):
    TYPE: ClassVar[str] = "interrupted_stay_credit"
    booking_id: str
    guest_name: str
    room_id: str
    credit_remaining: Decimal
    interruption_date: date
    used_days: int = 0
    used_cost: Decimal = Decimal(0)
    total_paid: Decimal = Decimal(0)
    can_resume: bool = True
    status: str = "available"
    resumed_booking_id: Optional[str] = None

    @classmethod
    def from_data(cls, data: Mapping[str, Any]) -> "InterruptedStayCreditPayload":
        t = cls.TYPE
        return cls(
            booking_id=_text(data, "booking_id", t),
            guest_name=_text(data, "guest_name", t),
            room_id=_text(data, "room_id", t),
            credit_remaining=_decimal(data, "credit_remaining", t, Decimal(0)),
            interruption_date=_day(data, "interruption_date", t),
            used_days=_int(data, "used_days", t, 0),
            used_cost=_decimal(data, "used_cost", t, Decimal(0)),
            total_paid=_decimal(data, "total_paid", t, Decimal(0)),
            can_resume=bool(data.get("can_resume", True)),
            status=_text(data, "status", t, "available"),
            resumed_booking_id=data.get("resumed_booking_id") or None,
        )


@dataclass(frozen=True)
class HousekeepingReportPayload(_Variant):
    TYPE: ClassVar[str] = "housekeeping_report"
    room_id: str
    housekeeping_status: str
    report_date: date
    room_condition: str = ""
    maintenance_required: bool = False
    housekeeper_id: str = ""
    housekeeper_name: str = ""
    notes: str = ""

    @classmethod
    def from_data(cls, data: Mapping[str, Any]) -> "HousekeepingReportPayload":
        t = cls.TYPE
        status = _text(data, "housekeeping_status", t)
        if status not in HOUSEKEEPING_REPORT_STATUSES:
            raise PayloadDecodeError(
                f"housekeeping_status must be one of "
                f"{sorted(HOUSEKEEPING_REPORT_STATUSES)}, got '{status}'.",
                t,
            )
        return cls(
            room_id=_text(data, "room_id", t),
            housekeeping_status=status,
            report_date=_day(data, "report_date", t),
            room_condition=_text(data, "room_condition", t, ""),
            maintenance_required=bool(data.get("maintenance_required", False)),
            housekeeper_id=_text(data, "housekeeper_id", t, ""),
            housekeeper_name=_text(data, "housekeeper_name", t, ""),
            notes=_text(data, "notes", t, ""),
        )


# ══════════════════════════════════════════════════════════════
# DECODER
# ══════════════════════════════════════════════════════════════

Payload = Union[
    ConfigCategoryPayload, ConfigCollectionPayload, ConfigItemPayload,
    OpeningStockPayload, StockRestockPayload, StockIssuedPayload,
    DailyClosingStockPayload, RoomBookingPayload, CheckoutPayload,
    PenaltyFeePayload, PaymentRecordPayload, DiscountPayload, RefundPayload,
    StayExtensionPayload, RoomTransferPayload, StayInterruptionPayload,
    TransferCompletionPayload, HousekeepingReportPayload,
    InterruptedStayCreditPayload,
]

PAYLOAD_TYPES: Dict[str, type] = {
    cls.TYPE: cls
    for cls in (
        ConfigCategoryPayload, ConfigCollectionPayload, ConfigItemPayload,
        OpeningStockPayload, StockRestockPayload, StockIssuedPayload,
        DailyClosingStockPayload, RoomBookingPayload, CheckoutPayload,
        PenaltyFeePayload, PaymentRecordPayload, DiscountPayload, RefundPayload,
        StayExtensionPayload, RoomTransferPayload, StayInterruptionPayload,
        TransferCompletionPayload, HousekeepingReportPayload,
        InterruptedStayCreditPayload,
    )
}

STOCK_PAYLOAD_TYPES = (
    OpeningStockPayload.TYPE, StockRestockPayload.TYPE, StockIssuedPayload.TYPE,
)
CONFIG_PAYLOAD_TYPES = (
    ConfigCategoryPayload.TYPE, ConfigCollectionPayload.TYPE, ConfigItemPayload.TYPE,
)


def decode_payload(data: Mapping[str, Any]) -> Payload:
    """
    Validate a raw record payload and return its typed variant.

    Raises PayloadDecodeError for a missing/unknown tag or a missing
    or malformed required field.
    """
    if not isinstance(data, Mapping):
        raise PayloadDecodeError(f"payload must be a mapping, got {type(data).__name__}.")
    tag = data.get("type")
    if not tag:
        raise PayloadDecodeError("payload has no 'type' discriminator.")
    variant = PAYLOAD_TYPES.get(tag)
    if variant is None:
        raise PayloadDecodeError("unknown payload type.", tag)
    return variant.from_data(data)
