"""
Pytest configuration and shared fixtures for snapweb tests.

Provides:
- A registry whose ``local:`` and ``sandbox:`` roots live under ``tmp_path``
- An in-memory site backend (``mem://`` addresses) with row storage
"""

from __future__ import annotations

import logging
from typing import Any

import pytest

from snapweb.core.configs import LocalConfig, SandboxConfig, WebConfig
from snapweb.core.file import WebFile
from snapweb.core.site import WebSite
from snapweb.core.web import Web
from snapweb.data.entity import Entity, Property, PropertyType
from snapweb.data.query import Query
from snapweb.data.row import Row
from snapweb.models.paths import path_parent
from snapweb.models.url import WebURL
from snapweb.sites import create_site


# ============================================================================
# In-memory backend
# ============================================================================


class MemorySite(WebSite):
    """Backend keeping contents in a dict; ``None`` values are directories."""

    def __init__(self, url: WebURL, web: Web) -> None:
        super().__init__(url, web)
        self.store: dict[str, bytes | None] = {"/": None}
        self.stored_rows: dict[str, list[Row]] = {}
        self.calls: list[tuple[str, str]] = []

    def get_file_impl(self, path: str) -> WebFile | None:
        self.calls.append(("head", path))
        if path not in self.store:
            return None
        data = self.store[path]
        file = self.create_file(path, data is None)
        if data is not None:
            file.set_size(len(data))
        return file

    def get_files_impl(self, file: WebFile) -> list[WebFile]:
        self.calls.append(("list", file.path))
        children = [p for p in self.store if p != "/" and path_parent(p) == file.path]
        return [self.create_file(p, self.store[p] is None) for p in children]

    def get_file_bytes_impl(self, file: WebFile) -> bytes:
        self.calls.append(("get", file.path))
        data = self.store[file.path]
        assert data is not None
        return data

    def save_file_impl(self, file: WebFile) -> None:
        self.calls.append(("put", file.path))
        self.store[file.path] = None if file.is_dir else (file.get_bytes() or b"")

    def delete_file_impl(self, file: WebFile) -> None:
        self.calls.append(("delete", file.path))
        del self.store[file.path]

    def get_rows_impl(self, entity: Entity, query: Query) -> list[Row]:
        return [row for row in self.stored_rows.get(entity.name, []) if query.matches(row)]

    def save_row_impl(self, row: Row) -> None:
        self.calls.append(("save_row", row.entity.name))
        rows = self.stored_rows.setdefault(row.entity.name, [])
        primary = row.entity.primary
        if primary is not None and primary.auto_generated and row.primary_value is None:
            row.put(primary, max((r.primary_value or 0 for r in rows), default=0) + 1)
        if all(r is not row for r in rows):
            rows.append(row)

    def delete_row_impl(self, row: Row) -> None:
        self.calls.append(("delete_row", row.entity.name))
        rows = self.stored_rows.get(row.entity.name, [])
        self.stored_rows[row.entity.name] = [r for r in rows if r is not row]


def memory_site_factory(url: WebURL, web: Web) -> WebSite | None:
    if url.scheme == "mem" and not url.path:
        return MemorySite(url, web)
    return create_site(url, web)


# ============================================================================
# Logging Configuration
# ============================================================================


@pytest.fixture(scope="session", autouse=True)
def setup_logging() -> None:
    """Configure logging for tests."""
    logging.basicConfig(level=logging.DEBUG)


# ============================================================================
# Registry Fixtures
# ============================================================================


@pytest.fixture
def web_config(tmp_path: Any) -> WebConfig:
    """Configuration whose private stores live under tmp_path."""
    return WebConfig(
        local=LocalConfig(home_dir=tmp_path / "home"),
        sandbox=SandboxConfig(root_dir=tmp_path / "sandboxes"),
    )


@pytest.fixture
def web(web_config: WebConfig) -> Web:
    """Registry that serves mem:// addresses from memory."""
    return Web(web_config, site_factory=memory_site_factory)


@pytest.fixture
def memory_site(web: Web) -> MemorySite:
    """A MemorySite holding /docs/readme.txt and /docs/notes.md."""
    site = web.get_as_site("mem://test")
    assert isinstance(site, MemorySite)
    site.store.update(
        {
            "/docs": None,
            "/docs/readme.txt": b"hello",
            "/docs/notes.md": b"# notes",
        }
    )
    return site


# ============================================================================
# Data Fixtures
# ============================================================================


@pytest.fixture
def person_entity() -> Entity:
    """Person with an auto-generated id and a to-one friend relation."""
    return Entity(
        "Person",
        [
            Property("id", PropertyType.NUMBER, primary=True, auto_generated=True),
            Property("name"),
            Property("age", PropertyType.NUMBER),
            Property("friend", PropertyType.RELATION, relation_entity_name="Person"),
        ],
    )


@pytest.fixture
def stored_person(memory_site: MemorySite, person_entity: Entity) -> Entity:
    """person_entity saved into memory_site as /Person.table."""
    memory_site.save_entity(person_entity)
    return person_entity
