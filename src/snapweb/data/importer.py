"""
Import nested dictionaries as rows of a site.

[WebSiteImporter][snapweb.data.importer.WebSiteImporter] maps a graph of
plain dicts (as parsed from JSON) onto rows. Each distinct dict object
becomes exactly one row, so graphs that reference the same dict from
several places, including cycles, produce shared rows rather than
duplicates.

Examples:
    ```python
    alice = {"name": "Alice"}
    bob = {"name": "Bob", "friend": alice}
    alice["friend"] = bob

    importer = WebSiteImporter(site)
    importer.create_row("Person", alice)
    rows = importer.save_rows()   # both people, each saved once
    ```
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .entity import Entity


if TYPE_CHECKING:
    from snapweb.core.site import WebSite

    from .row import Row


class WebSiteImporter:
    """Batch creator of rows from nested dictionaries."""

    def __init__(self, site: WebSite) -> None:
        self.site = site
        self._rows: dict[int, Row] = {}
        self._provided: list[tuple[dict[str, Any], Row]] = []

    def _entity(self, entity: Entity | str) -> Entity:
        if isinstance(entity, Entity):
            return entity
        resolved = self.site.get_entity(entity)
        if resolved is None:
            raise ValueError(f"Unknown entity: {entity}")
        return resolved

    def create_row(self, entity: Entity | str, values: dict[str, Any]) -> Row:
        """Return the row for *values*, creating it on first sight of the dict."""
        row = self._rows.get(id(values))
        if row is not None:
            return row
        entity = self._entity(entity)
        primary = entity.primary
        primary_value = None
        if primary is not None and not primary.auto_generated:
            primary_value = values.get(primary.name)
        row = self.site.create_row(entity, primary_value)
        self._rows[id(values)] = row
        self._provided.append((values, row))
        return row

    def create_row_deep(self, row: Row, values: dict[str, Any]) -> None:
        """Copy *values* into *row*, turning nested dicts into related rows."""
        for prop in row.entity.properties:
            if prop.primary or prop.derived or prop.name not in values:
                continue
            value = values[prop.name]
            target = prop.get_relation_entity() if prop.is_relation else None
            if target is not None and value is not None:
                if prop.to_many:
                    items = value if isinstance(value, list) else [value]
                    value = [self.create_row(target, v) if isinstance(v, dict) else v for v in items]
                elif isinstance(value, dict):
                    value = self.create_row(target, value)
            row.put(prop.name, value)

    def save_rows(self) -> list[Row]:
        """Populate and save every pending row, then reset the importer.

        Rows discovered while populating (nested dicts) are included.

        Returns:
            The saved rows in creation order.
        """
        index = 0
        while index < len(self._provided):
            values, row = self._provided[index]
            self.create_row_deep(row, values)
            index += 1
        rows = [row for _, row in self._provided]
        for row in rows:
            row.save()
        self._rows.clear()
        self._provided.clear()
        return rows
