"""
A record of an [Entity][snapweb.data.entity.Entity] stored in a site.

Rows keep their values by property name. Relation values may be held as
[Row][snapweb.data.row.Row] objects or as the primary value of the related
row; ``get()`` resolves the latter through the site on first access.

``exists`` tracks whether the backend holds the row and ``modified``
whether it has unsaved changes.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from snapweb.models.events import Observable

from .entity import Entity, Property


if TYPE_CHECKING:
    from snapweb.core.site import WebSite


class Row(Observable):
    """One record of an entity.

    Instances are created through
    [WebSite.create_row()][snapweb.core.site.WebSite.create_row] so that at
    most one row exists per primary value.
    """

    def __init__(self, site: WebSite, entity: Entity) -> None:
        self.site = site
        self.entity = entity
        self.exists = False
        self.modified = False
        self._values: dict[str, Any] = {}

    def __repr__(self) -> str:
        return f"Row({self.entity.name}, {self.primary_value!r})"

    @property
    def primary_value(self) -> Any:
        prop = self.entity.primary
        return self._values.get(prop.name) if prop is not None else None

    @property
    def values(self) -> dict[str, Any]:
        return dict(self._values)

    @staticmethod
    def _name(key: str | Property) -> str:
        return key.name if isinstance(key, Property) else key

    # --- Access ---

    def get(self, key: str | Property) -> Any:
        """Return a value, resolving stored relation keys into rows.

        Keys whose row cannot be found stay stored; a missing to-one row
        reads as ``None`` and to-many lists skip missing rows.
        """
        name = self._name(key)
        value = self._values.get(name)
        prop = self.entity.get_property(name)
        if value is None or prop is None or not prop.is_relation:
            return value
        resolved, complete = self._resolve(prop, value)
        if complete:
            self._values[name] = resolved
        return resolved

    def _resolve(self, prop: Property, value: Any) -> tuple[Any, bool]:
        target = prop.get_relation_entity()
        if target is None or target.primary is None:
            return value, False
        primary = target.primary

        def lookup(item: Any) -> Row | None:
            if isinstance(item, Row):
                return item
            return self.site.get_row(target, primary.convert_value(item))

        if prop.to_many:
            items = value if isinstance(value, list) else [value]
            rows = [lookup(item) for item in items]
            found = [row for row in rows if row is not None]
            return found, len(found) == len(rows)
        row = lookup(value)
        return row, row is not None

    def get_raw(self, key: str | Property) -> Any:
        """Return the stored value without resolving relations."""
        return self._values.get(self._name(key))

    def get_storage_value(self, key: str | Property) -> Any:
        """Return the value as persisted: related rows become primary values."""
        value = self._values.get(self._name(key))
        if isinstance(value, Row):
            return value.primary_value
        if isinstance(value, list):
            return [item.primary_value if isinstance(item, Row) else item for item in value]
        return value

    def put(self, key: str | Property, value: Any) -> None:
        """Set a value, marking the row modified and firing a change event."""
        name = self._name(key)
        prop = self.entity.get_property(name)
        if prop is not None and not prop.is_relation:
            value = prop.convert_value(value)
        old = self._values.get(name)
        if old is value or (type(old) is type(value) and old == value):
            return
        self._values[name] = value
        self.modified = True
        self.fire_property_change(name, old, value)

    def init_values(self, values: Mapping[str, Any]) -> None:
        """Load stored *values* without marking the row modified."""
        for prop in self.entity.properties:
            if prop.name in values:
                value = values[prop.name]
                self._values[prop.name] = value if prop.is_relation else prop.convert_value(value)

    def get_unresolved_relation_rows(self) -> list[Row]:
        """Return related rows that do not exist in the backend yet."""
        unresolved: list[Row] = []
        for prop in self.entity.properties:
            if not prop.is_relation or prop.derived:
                continue
            value = self._values.get(prop.name)
            items = value if isinstance(value, list) else [value]
            for item in items:
                if isinstance(item, Row) and not item.exists and all(
                    item is not seen for seen in unresolved
                ):
                    unresolved.append(item)
        return unresolved

    # --- Persistence ---

    def save(self) -> None:
        self.site.save_row(self)

    def delete(self) -> None:
        self.site.delete_row(self)
