"""
Read-only backends over zip and jar archives.

The archive itself is a file of another site: ``file:/tmp/a.zip`` is the
site whose root lists the archive's entries, and
``file:/tmp/a.zip!/docs/readme.txt`` is one entry. The entry index is
built on first use. Archives without a local path (remote or nested ones)
are copied into the owning site's sandbox first.

Directories the archive does not list explicitly are inferred from the
entry paths, and ``/`` always exists.
"""

from __future__ import annotations

import time
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from snapweb.core.site import WebSite
from snapweb.models.paths import normalize_path, path_parent


if TYPE_CHECKING:
    from snapweb.core.file import WebFile
    from snapweb.core.web import Web
    from snapweb.models.url import WebURL


@dataclass(frozen=True, slots=True)
class ArchiveEntry:
    """Index record of one plain file in an archive."""

    name: str
    size: int
    modified_time: int


class ZipFileSite(WebSite):
    """Entries of a zip archive (or of a plain directory standing in for one)."""

    supports_put = False
    supports_delete = False

    def __init__(self, url: WebURL, web: Web) -> None:
        super().__init__(url, web)
        self._source: Path | None = None
        self._entries: dict[str, ArchiveEntry] = {}
        self._children: dict[str, set[str]] = {}

    def is_interesting_path(self, path: str) -> bool:  # noqa: ARG002
        """Return whether an archive entry is exposed as a file."""
        return True

    # --- Index ---

    def _archive_path(self) -> Path:
        archive = self.web.get_file(self.url)
        if archive is None:
            raise FileNotFoundError(f"Archive not found: {self.url}")
        local = archive.standard_file
        if local is not None and local.exists():
            return local
        copy = archive.site.get_sandbox().create_file(archive.path, False)
        if not copy.confirm_exists() or copy.modified_time < archive.modified_time:
            copy.set_bytes(archive.get_bytes())
            copy.save()
        local = copy.standard_file
        if local is None:
            raise FileNotFoundError(f"No local copy of archive {self.url}")
        return local

    def _ensure_loaded(self) -> Path:
        with self.lock:
            if self._source is not None:
                return self._source
            source = self._archive_path()
            self._children = {"/": set()}
            self._entries = {}
            if source.is_dir():
                for entry in source.rglob("*"):
                    if entry.is_file():
                        stat = entry.stat()
                        name = entry.relative_to(source).as_posix()
                        self._add_entry(name, stat.st_size, int(stat.st_mtime * 1000))
            else:
                with zipfile.ZipFile(source) as archive:
                    for info in archive.infolist():
                        if info.is_dir():
                            self._add_dir(normalize_path(info.filename))
                        else:
                            modified = int(time.mktime((*info.date_time, 0, 0, -1)) * 1000)
                            self._add_entry(info.filename, info.file_size, modified)
            self._source = source
            self._logger.debug("archive_indexed", entries=len(self._entries))
            return source

    def _add_entry(self, name: str, size: int, modified_time: int) -> None:
        path = normalize_path(name)
        if path == "/" or not self.is_interesting_path(path):
            return
        self._entries[path] = ArchiveEntry(name, size, modified_time)
        self._add_child(path)

    def _add_dir(self, path: str) -> None:
        if path == "/" or not self.is_interesting_path(path):
            return
        self._children.setdefault(path, set())
        self._add_child(path)

    def _add_child(self, path: str) -> None:
        parent = path_parent(path)
        while parent is not None:
            siblings = self._children.setdefault(parent, set())
            if path in siblings:
                return
            siblings.add(path)
            path, parent = parent, path_parent(parent)

    # --- Backend hooks ---

    def get_file_impl(self, path: str) -> WebFile | None:
        self._ensure_loaded()
        if path in self._children:
            return self.create_file(path, True)
        entry = self._entries.get(path)
        if entry is None:
            return None
        file = self.create_file(path, False)
        file.set_size(entry.size)
        file.set_modified_time(entry.modified_time)
        return file

    def get_files_impl(self, file: WebFile) -> list[WebFile]:
        self._ensure_loaded()
        files: list[WebFile] = []
        for path in sorted(self._children.get(file.path, ())):
            child = self.get_file_impl(path)
            if child is not None:
                files.append(child)
        return files

    def get_file_bytes_impl(self, file: WebFile) -> bytes:
        source = self._ensure_loaded()
        entry = self._entries.get(file.path)
        if entry is None:
            raise FileNotFoundError(f"No archive entry {file.path}")
        if source.is_dir():
            return (source / entry.name).read_bytes()
        with zipfile.ZipFile(source) as archive:
            return archive.read(entry.name)

    def get_standard_file(self, file: WebFile) -> Path | None:
        source = self._ensure_loaded()
        if source.is_dir():
            entry = self._entries.get(file.path)
            return source / entry.name if entry is not None else None
        return None

    def refresh(self) -> None:
        with self.lock:
            self._source = None
            self._entries.clear()
            self._children.clear()
        super().refresh()


class JarFileSite(ZipFileSite):
    """A jar archive, hiding platform classes and anonymous inner classes.

    Pack200 archives (``.jar.pack.gz``) are addressed here but cannot be
    unpacked; resolving their entries fails with ``zipfile.BadZipFile``.
    """

    _HIDDEN_PREFIXES = ("/sun", "/com/sun", "/com/apple", "/javax/swing/plaf", "/org/omg")

    def is_interesting_path(self, path: str) -> bool:
        if path.startswith(self._HIDDEN_PREFIXES):
            return False
        if path.endswith(".class"):
            dollar = path.rfind("$")
            if 0 < dollar < len(path) - 1 and path[dollar + 1].isdigit():
                return False
        return True
