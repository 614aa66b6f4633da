"""
HotelOps Config Graph — Sources + Provider
============================================
Configuration lives either as config_* records in the operational
log or in first-class tables. Both implement ConfigSource, so callers
never special-case the storage shape:

    version() — cheap stamp that changes whenever the config changes
    load()    — full ConfigSnapshot

ConfigGraphProvider caches graphs per (scope, version) in a
VersionedCache; a config edit changes the version, which evicts the
stale graph on the next read.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Hashable, Optional, Protocol

from core.caching import VersionedCache
from core.config import HotelOpsSettings
from core.records.entities import OperationalRecord
from core.records.payloads import (
    CONFIG_PAYLOAD_TYPES,
    ConfigCategoryPayload,
    ConfigCollectionPayload,
    ConfigItemPayload,
)
from core.records.resolver import canonical_records
from core.records.store import RecordQuery, RecordStore
from engines.config_graph.graph import (
    ConfigCategory,
    ConfigGraph,
    ConfigItem,
    ConfigSnapshot,
)

logger = logging.getLogger("hotelops.config_graph")


class ConfigSource(Protocol):

    def version(self) -> Hashable:
        ...  # pragma: no cover

    def load(self) -> ConfigSnapshot:
        ...  # pragma: no cover


# ══════════════════════════════════════════════════════════════
# RECORD-BACKED SOURCE
# ══════════════════════════════════════════════════════════════

def _record_fingerprint(record: OperationalRecord) -> str:
    deleted = record.deleted_at.isoformat() if record.deleted_at else ""
    return f"{record.id}:{record.status.value}:{deleted}"


class RecordConfigSource:
    """Config read through the same version resolution as every other record."""

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    def _records(self):
        return self._store.query(RecordQuery(payload_types=CONFIG_PAYLOAD_TYPES))

    def version(self) -> Hashable:
        records = self._records()
        digest = hashlib.sha256()
        for record in sorted(records, key=lambda r: r.id):
            digest.update(_record_fingerprint(record).encode("utf-8"))
            digest.update(b"\n")
        return (len(records), digest.hexdigest())

    def load(self) -> ConfigSnapshot:
        categories = []
        items = []
        collections = []
        for record in canonical_records(self._records()):
            payload = record.payload()
            if isinstance(payload, ConfigCategoryPayload):
                categories.append(ConfigCategory(
                    name=payload.name,
                    assigned_to=payload.assigned_to,
                    active=payload.active,
                ))
            elif isinstance(payload, ConfigItemPayload):
                items.append(ConfigItem(
                    item_name=payload.item_name,
                    category=payload.category,
                    collection=payload.collection,
                    unit=payload.unit,
                    unit_price=payload.unit_price,
                    active=payload.active,
                ))
            elif isinstance(payload, ConfigCollectionPayload) and payload.active:
                collections.append(payload.name)
        return ConfigSnapshot(
            categories=tuple(categories),
            items=tuple(items),
            collections=tuple(sorted(collections)),
        )


# ══════════════════════════════════════════════════════════════
# TABLE-BACKED SOURCE
# ══════════════════════════════════════════════════════════════

class TableConfigSource:
    """Config read from the InventoryCategory / InventoryItem tables."""

    def version(self) -> Hashable:
        from django.db.models import Count, Max

        from core.records.models import InventoryCategory, InventoryItem

        cats = InventoryCategory.objects.aggregate(n=Count("id"), latest=Max("updated_at"))
        items = InventoryItem.objects.aggregate(n=Count("id"), latest=Max("updated_at"))
        return (cats["n"], cats["latest"], items["n"], items["latest"])

    def load(self) -> ConfigSnapshot:
        from core.records.models import InventoryCategory, InventoryItem

        categories = tuple(
            ConfigCategory(name=row.name, assigned_to=row.assigned_to, active=row.active)
            for row in InventoryCategory.objects.all()
        )
        items = tuple(
            ConfigItem(
                item_name=row.item_name,
                category=row.category.name,
                collection=row.collection,
                unit=row.unit,
                unit_price=row.unit_price,
                active=row.active,
            )
            for row in InventoryItem.objects.select_related("category")
        )
        collections = tuple(sorted({i.collection for i in items if i.collection}))
        return ConfigSnapshot(categories=categories, items=items, collections=collections)


# ══════════════════════════════════════════════════════════════
# PROVIDER
# ══════════════════════════════════════════════════════════════

class ConfigGraphProvider:
    """Read-through access to the current ConfigGraph."""

    SCOPE = "config_graph"

    def __init__(
        self,
        source: ConfigSource,
        cache: Optional[VersionedCache] = None,
        settings: Optional[HotelOpsSettings] = None,
    ) -> None:
        self._source = source
        if cache is None:
            cache = VersionedCache(max_size=(settings or HotelOpsSettings()).config_cache_size)
        self._cache = cache

    def current(self) -> ConfigGraph:
        version = self._source.version()
        return self._cache.get_or_load(self.SCOPE, version, lambda: self._build(version))

    def _build(self, version: Hashable) -> ConfigGraph:
        graph = ConfigGraph.from_snapshot(self._source.load())
        logger.debug("Config graph rebuilt at version %s (%d items)", version, graph.item_count)
        return graph
