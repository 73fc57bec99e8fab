"""Per-entity cache of the rows a site has handed out."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any

from snapweb.models.events import Observable

from .condition import Condition, ConditionList
from .query import Query


if TYPE_CHECKING:
    from snapweb.core.site import WebSite

    from .entity import Entity
    from .row import Row


class DataTable(Observable):
    """The rows of one entity in one site, keyed by primary value.

    The local row map is the identity cache behind
    [WebSite.create_row()][snapweb.core.site.WebSite.create_row] and
    [WebSite.get_row()][snapweb.core.site.WebSite.get_row]. Additions and
    removals fire a ``LocalRow`` property change.
    """

    LOCAL_ROW = "LocalRow"

    def __init__(self, site: WebSite, entity: Entity) -> None:
        self.site = site
        self.entity = entity
        self._local_rows: dict[Any, Row] = {}
        self._lock = threading.RLock()

    def __repr__(self) -> str:
        return f"DataTable({self.entity.name!r}, local_rows={len(self._local_rows)})"

    @property
    def name(self) -> str:
        return self.entity.name

    @property
    def local_rows(self) -> list[Row]:
        with self._lock:
            return list(self._local_rows.values())

    def get_local_row(self, primary_value: Any) -> Row | None:
        with self._lock:
            return self._local_rows.get(primary_value)

    def add_local_row(self, row: Row) -> None:
        """Register *row* under its primary value (rows without one are skipped)."""
        key = row.primary_value
        if key is None:
            return
        with self._lock:
            old = self._local_rows.get(key)
            if old is row:
                return
            self._local_rows[key] = row
        self.fire_property_change(self.LOCAL_ROW, old, row)

    def remove_local_row(self, row: Row) -> None:
        key = row.primary_value
        with self._lock:
            if self._local_rows.get(key) is not row:
                return
            del self._local_rows[key]
        self.fire_property_change(self.LOCAL_ROW, row, None)

    def get_rows(self, condition: Condition | ConditionList | None = None) -> list[Row]:
        """Query the site for this entity's rows matching *condition*."""
        return self.site.get_rows(Query(self.entity, condition))
