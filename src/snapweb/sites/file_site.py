"""
Local disk backend, with rows stored as CSV in the site's sandbox.

A [FileSite][snapweb.sites.file_site.FileSite] maps site paths onto the
filesystem below the site address's path (``file:`` alone is the whole
filesystem, ``file:/srv/data`` is rooted at ``/srv/data``).

Structured data never touches the user's directories: entity descriptions
live at ``/FileDB/<entity>.entity`` and rows at ``/FileDB/<entity>.csv``
inside the sandbox (``local:/Sandboxes/...``). Saved rows are buffered in
memory and written by [flush()][snapweb.sites.file_site.FileSite.flush].
"""

from __future__ import annotations

import csv
import io
import json
import os
from pathlib import Path
from typing import TYPE_CHECKING, Any

from snapweb.core.site import WebSite
from snapweb.models.paths import path_child


if TYPE_CHECKING:
    from snapweb.core.file import WebFile
    from snapweb.core.web import Web
    from snapweb.data.entity import Entity, Property
    from snapweb.data.query import Query
    from snapweb.data.row import Row
    from snapweb.models.url import WebURL


_IGNORED_NAMES = frozenset({".DS_Store"})
_IGNORED_DIRS = frozenset({"CVS"})
_DB_DIR = "/FileDB"


class FileSite(WebSite):
    """Files on the local disk."""

    def __init__(self, url: WebURL, web: Web) -> None:
        super().__init__(url, web)
        self._entity_rows: dict[str, list[Row]] = {}
        self._dirty_entities: set[str] = set()

    # --- Filesystem mapping ---

    def get_path_in_filesystem(self) -> str:
        """Filesystem directory that the site root maps onto."""
        return self.url.path or ""

    def get_standard_path(self, path: str) -> Path:
        root = self.get_path_in_filesystem().rstrip("/")
        return Path(root + path)

    def get_standard_file(self, file: WebFile) -> Path | None:
        return self.get_standard_path(file.path)

    # --- Backend hooks ---

    def get_file_impl(self, path: str) -> WebFile | None:
        fs_path = self.get_standard_path(path)
        if not fs_path.exists():
            return None
        is_dir = fs_path.is_dir()
        file = self.create_file(path, is_dir)
        stat = fs_path.stat()
        file.set_modified_time(int(stat.st_mtime * 1000))
        if not is_dir:
            file.set_size(stat.st_size)
        return file

    def get_files_impl(self, file: WebFile) -> list[WebFile]:
        files: list[WebFile] = []
        for entry in sorted(self.get_standard_path(file.path).iterdir()):
            if entry.name in _IGNORED_NAMES or (entry.name in _IGNORED_DIRS and entry.is_dir()):
                continue
            child = self.get_file_impl(path_child(file.path, entry.name))
            if child is not None:
                files.append(child)
        return files

    def get_file_bytes_impl(self, file: WebFile) -> bytes:
        return self.get_standard_path(file.path).read_bytes()

    def save_file_impl(self, file: WebFile) -> None:
        fs_path = self.get_standard_path(file.path)
        if file.is_dir:
            fs_path.mkdir(parents=True, exist_ok=True)
        else:
            data = file.get_bytes() or b""
            fs_path.parent.mkdir(parents=True, exist_ok=True)
            # Write beside the target and rename so readers never see a partial file
            tmp_path = fs_path.with_name(fs_path.name + ".snapweb-tmp")
            tmp_path.write_bytes(data)
            tmp_path.replace(fs_path)
        file.set_modified_time(int(fs_path.stat().st_mtime * 1000))

    def delete_file_impl(self, file: WebFile) -> None:
        fs_path = self.get_standard_path(file.path)
        if fs_path.is_dir():
            fs_path.rmdir()
        else:
            fs_path.unlink()

    def get_modified_time_impl(self, file: WebFile) -> int:
        fs_path = self.get_standard_path(file.path)
        if not fs_path.exists():
            return 0
        return int(fs_path.stat().st_mtime * 1000)

    def set_modified_time_impl(self, file: WebFile, modified_time: int) -> None:
        fs_path = self.get_standard_path(file.path)
        if fs_path.exists():
            seconds = modified_time / 1000
            os.utime(fs_path, (seconds, seconds))

    def refresh(self) -> None:
        """Write buffered rows, then drop every cache including loaded rows."""
        self.flush()
        with self.lock:
            self._entity_rows.clear()
        super().refresh()

    # --- Entities ---

    @staticmethod
    def _db_path(name: str, suffix: str) -> str:
        return f"{_DB_DIR}/{name}{suffix}"

    def get_entity_impl(self, name: str) -> Entity | None:
        entity = super().get_entity_impl(name)
        if entity is not None:
            return entity
        file = self.get_sandbox().get_file(self._db_path(name, ".entity"))
        if file is None:
            return None
        data = file.get_bytes()
        if data is None:
            return None
        entity = self.create_entity(name)
        entity.load_bytes(data)
        return entity

    def save_entity_impl(self, entity: Entity) -> None:
        if entity.source_file is not None:
            super().save_entity_impl(entity)
            return
        file = self.get_sandbox().create_file(self._db_path(entity.name, ".entity"), False)
        file.set_bytes(entity.to_bytes())
        file.save()

    def delete_entity_impl(self, entity: Entity) -> None:
        if entity.source_file is not None:
            super().delete_entity_impl(entity)
        sandbox = self.get_sandbox()
        for suffix in (".entity", ".csv"):
            file = sandbox.get_file(self._db_path(entity.name, suffix))
            if file is not None:
                file.delete()
        with self.lock:
            self._entity_rows.pop(entity.name, None)
            self._dirty_entities.discard(entity.name)

    # --- Rows ---

    def _get_entity_rows(self, entity: Entity) -> list[Row]:
        with self.lock:
            rows = self._entity_rows.get(entity.name)
            if rows is not None:
                return rows
            rows = []
            file = self.get_sandbox().get_file(self._db_path(entity.name, ".csv"))
            text = file.get_text() if file is not None else None
            if text:
                primary = entity.primary
                for record in csv.DictReader(io.StringIO(text)):
                    primary_value = primary.convert_value(record.get(primary.name)) if primary else None
                    rows.append(self.create_row(entity, primary_value, _decode(entity, record)))
            self._entity_rows[entity.name] = rows
            return rows

    def get_rows_impl(self, entity: Entity, query: Query) -> list[Row]:
        return [row for row in self._get_entity_rows(entity) if query.matches(row)]

    def save_row_impl(self, row: Row) -> None:
        entity = row.entity
        with self.lock:
            rows = self._get_entity_rows(entity)
            primary = entity.primary
            if primary is not None and row.get_raw(primary) is None:
                if not primary.auto_generated:
                    raise ValueError(f"{entity.name} row has no value for {primary.name}")
                keys = [r.get_raw(primary) for r in rows]
                row.put(primary, max((k for k in keys if isinstance(k, int)), default=0) + 1)
            if all(r is not row for r in rows):
                rows.append(row)
            self._dirty_entities.add(entity.name)

    def delete_row_impl(self, row: Row) -> None:
        with self.lock:
            rows = self._get_entity_rows(row.entity)
            self._entity_rows[row.entity.name] = [r for r in rows if r is not row]
            self._dirty_entities.add(row.entity.name)

    def flush(self) -> None:
        """Write the CSV file of every entity with unsaved row changes."""
        with self.lock:
            if not self._dirty_entities:
                return
            sandbox = self.get_sandbox()
            for name in sorted(self._dirty_entities):
                entity = self._entities.get(name) or self.get_entity(name)
                if entity is None:
                    continue
                columns = [p for p in entity.properties if not p.derived]
                buffer = io.StringIO()
                writer = csv.writer(buffer)
                writer.writerow([p.name for p in columns])
                rows = self._entity_rows.get(name, [])
                for row in rows:
                    writer.writerow([_encode(row, p) for p in columns])
                file = sandbox.create_file(self._db_path(name, ".csv"), False)
                file.set_text(buffer.getvalue())
                file.save()
                self._logger.debug("rows_flushed", entity=name, count=len(rows))
            self._dirty_entities.clear()


def _encode(row: Row, prop: Property) -> str:
    value = row.get_storage_value(prop)
    if value is None:
        return ""
    if isinstance(value, list):
        return json.dumps(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _decode(entity: Entity, record: dict[str, Any]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for prop in entity.properties:
        raw = record.get(prop.name)
        if raw is None or raw == "":
            continue
        if not prop.is_relation:
            values[prop.name] = raw
            continue
        # Relation keys are stored as text; restore the target's key type
        target = prop.get_relation_entity()
        convert = target.primary.convert_value if target and target.primary else str
        if prop.to_many:
            values[prop.name] = [convert(item) for item in json.loads(raw)]
        else:
            values[prop.name] = convert(raw)
    return values
