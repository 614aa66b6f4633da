"""
HotelOps Config Graph — Item → Category → Department(s)
=========================================================
Read-only view of inventory configuration. Built from a
ConfigSnapshot (see sources.py); never reads storage itself.

Category assignment is stored either as a role list
(["bar", "kitchen"]) or as a boolean map ({"bar": true}). Both
normalize through assigned_roles(), so every caller asks one
predicate: is_assigned_to_role().
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple


# ══════════════════════════════════════════════════════════════
# ROLE ASSIGNMENT
# ══════════════════════════════════════════════════════════════

def _role_key(role: Any) -> str:
    return role.value if isinstance(role, Enum) else str(role)


def assigned_roles(assigned: Any) -> FrozenSet[str]:
    """Normalize a role list or {role: bool} map to a set of role ids."""
    if not assigned:
        return frozenset()
    if isinstance(assigned, Mapping):
        return frozenset(_role_key(k) for k, v in assigned.items() if v)
    if isinstance(assigned, (list, tuple, set, frozenset)):
        return frozenset(_role_key(r) for r in assigned)
    return frozenset()


def is_assigned_to_role(assigned: Any, role: Any) -> bool:
    return _role_key(role) in assigned_roles(assigned)


# ══════════════════════════════════════════════════════════════
# NODES
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ConfigCategory:
    name: str
    assigned_to: FrozenSet[str] = frozenset()
    active: bool = True

    def __post_init__(self):
        if not self.name:
            raise ValueError("category name must be non-empty.")
        object.__setattr__(self, "assigned_to", assigned_roles(self.assigned_to))

    def is_assigned_to(self, role: Any) -> bool:
        return is_assigned_to_role(self.assigned_to, role)


@dataclass(frozen=True)
class ConfigItem:
    item_name: str
    category: str
    collection: str = ""
    unit: str = ""
    unit_price: Decimal = Decimal(0)
    active: bool = True

    def __post_init__(self):
        if not self.item_name:
            raise ValueError("item_name must be non-empty.")
        if not self.category:
            raise ValueError("category must be non-empty.")
        object.__setattr__(self, "unit_price", Decimal(str(self.unit_price)))


@dataclass(frozen=True)
class ConfigSnapshot:
    categories: Tuple[ConfigCategory, ...] = ()
    items: Tuple[ConfigItem, ...] = ()
    collections: Tuple[str, ...] = ()


# ══════════════════════════════════════════════════════════════
# GRAPH
# ══════════════════════════════════════════════════════════════

class ConfigGraph:
    """
    Lookup structure over one configuration snapshot.

    Inactive nodes stay resolvable (historical records still need to
    classify) but are left out of role listings.
    """

    def __init__(
        self,
        categories: Iterable[ConfigCategory] = (),
        items: Iterable[ConfigItem] = (),
        collections: Iterable[str] = (),
    ) -> None:
        self._categories: Dict[str, ConfigCategory] = {c.name: c for c in categories}
        self._items: Dict[str, ConfigItem] = {i.item_name: i for i in items}
        self._collections: Tuple[str, ...] = tuple(collections)

    @classmethod
    def from_snapshot(cls, snapshot: ConfigSnapshot) -> "ConfigGraph":
        return cls(snapshot.categories, snapshot.items, snapshot.collections)

    # ── Lookup ────────────────────────────────────────────────

    def classify(self, item_name: str) -> Optional[str]:
        """Category of an item, or None if the item is unknown."""
        item = self._items.get(item_name)
        return item.category if item else None

    def item(self, item_name: str) -> Optional[ConfigItem]:
        return self._items.get(item_name)

    def category(self, name: str) -> Optional[ConfigCategory]:
        return self._categories.get(name)

    def unit_price(self, item_name: str) -> Decimal:
        item = self._items.get(item_name)
        return item.unit_price if item else Decimal(0)

    def departments_for_item(self, item_name: str) -> FrozenSet[str]:
        """Roles assigned to the item's category (empty if unassigned/unknown)."""
        category = self._categories.get(self.classify(item_name) or "")
        return category.assigned_to if category else frozenset()

    # ── Listings ──────────────────────────────────────────────

    def categories_for_role(self, role: Any) -> List[ConfigCategory]:
        return sorted(
            (c for c in self._categories.values() if c.active and c.is_assigned_to(role)),
            key=lambda c: c.name,
        )

    def items_in_category(self, category: str) -> List[ConfigItem]:
        return sorted(
            (i for i in self._items.values() if i.active and i.category == category),
            key=lambda i: i.item_name,
        )

    def items_for_role(self, role: Any) -> List[ConfigItem]:
        items: List[ConfigItem] = []
        for category in self.categories_for_role(role):
            items.extend(self.items_in_category(category.name))
        return items

    @property
    def collections(self) -> Tuple[str, ...]:
        return self._collections

    @property
    def item_count(self) -> int:
        return len(self._items)
