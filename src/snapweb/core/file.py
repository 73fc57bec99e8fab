"""
A file or directory inside a [WebSite][snapweb.core.site.WebSite].

A [WebFile][snapweb.core.file.WebFile] is the unit of identity in a site:
for any path the site hands out at most one instance, so listeners, cached
payloads and parent/child links are shared by everyone holding it.

Payloads are lazy. The first ``get_bytes()`` on a plain file (or
``get_files()`` on a directory) sends a GET through the site; the result is
kept until the site refreshes or deletes the file. Every payload transition
runs under the owning site's lock and follows
[LoadState][snapweb.models.constants.LoadState]:
``UNLOADED -> LOADING -> LOADED``, and ``STALE`` after a refresh.

Existence is tri-state: ``None`` (unknown), ``True`` (confirmed by the
backend) or ``False`` (known missing or deleted).
"""

from __future__ import annotations

import re
from bisect import bisect_left
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any

from snapweb.models.constants import DataType, LoadState
from snapweb.models.events import Observable
from snapweb.models.paths import (
    normalize_path,
    path_child,
    path_extension,
    path_name,
    path_parent,
    path_simple_name,
)
from snapweb.models.url import WebURL


if TYPE_CHECKING:
    from .site import WebSite


Updater = Callable[["WebFile"], None]


class WebFile(Observable):
    """A file or directory in a site.

    Instances are created only through
    [WebSite.create_file()][snapweb.core.site.WebSite.create_file].

    Attributes:
        site: The owning site.
        path: Normalized absolute path inside the site.
        is_dir: Whether the file is a directory.
        props: Free-form client properties.
    """

    # Property names carried by change events
    PATH = "Path"
    MODIFIED_TIME = "ModifiedTime"
    BYTES = "Bytes"
    SIZE = "Size"
    FILE = "File"
    FILES = "Files"
    EXISTS = "Exists"
    UPDATER = "Updater"

    def __init__(self, site: WebSite, path: str, is_dir: bool) -> None:
        self.site = site
        self.path = normalize_path(path)
        self.is_dir = is_dir
        self.props: dict[str, Any] = {}
        self._parent: WebFile | None = None
        self._exists: bool | None = None
        self._modified_time = 0
        self._size = 0
        self._bytes: bytes | None = None
        self._files: list[WebFile] | None = None
        self._state = LoadState.UNLOADED
        self._updater: Updater | None = None
        self._url: WebURL | None = None

    # --- Identity and ordering ---

    @property
    def url(self) -> WebURL:
        if self._url is None:
            self._url = self.site.get_url(self.path)
        return self._url

    @property
    def url_string(self) -> str:
        return self.url.string

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, WebFile):
            return NotImplemented
        return self.url == other.url

    def __hash__(self) -> int:
        return hash(self.url)

    def __lt__(self, other: WebFile) -> bool:
        if path_parent(self.path) != path_parent(other.path):
            return self.path.lower() < other.path.lower()
        return self.sort_key < other.sort_key

    @property
    def sort_key(self) -> tuple[str, str]:
        """Ordering key among siblings: simple name, then name, case-insensitive."""
        return (self.simple_name.lower(), self.name.lower())

    def __repr__(self) -> str:
        return f"WebFile({self.url_string}{'/' if self.is_dir and not self.is_root else ''})"

    # --- Path accessors ---

    @property
    def is_file(self) -> bool:
        return not self.is_dir

    @property
    def is_root(self) -> bool:
        return self.path == "/"

    @property
    def name(self) -> str:
        return path_name(self.path)

    @property
    def simple_name(self) -> str:
        return path_simple_name(self.path)

    @property
    def type(self) -> str:
        """Lower-cased extension without the dot."""
        return path_extension(self.path)

    @property
    def data_type(self) -> DataType:
        return DataType.from_path(self.path)

    @property
    def dir_path(self) -> str:
        """Path with a trailing slash for directories, else the parent's."""
        if self.is_dir:
            return self.path if self.is_root else self.path + "/"
        parent = path_parent(self.path) or "/"
        return parent if parent == "/" else parent + "/"

    @property
    def standard_file(self) -> Path | None:
        """The local filesystem path backing this file, when there is one."""
        return self.site.get_standard_file(self)

    # --- Parent ---

    def get_parent(self) -> WebFile | None:
        """Return the parent directory through the site identity cache."""
        if self._parent is None and not self.is_root:
            self._parent = self.site.create_file(path_parent(self.path) or "/", True)
        return self._parent

    @property
    def parent(self) -> WebFile | None:
        return self.get_parent()

    def _set_parent(self, parent: WebFile | None) -> None:
        self._parent = parent

    # --- Existence ---

    @property
    def exists(self) -> bool | None:
        return self._exists

    def set_exists(self, value: bool) -> None:
        if value == self._exists:
            return
        old, self._exists = self._exists, value
        self.fire_property_change(self.EXISTS, old, value)

    def confirm_exists(self, do_confirm: bool = True) -> bool:  # noqa: ARG002
        """Return whether the file exists, asking the site if unknown.

        The *do_confirm* flag is accepted for callers that pass it but
        does not change the behaviour.
        """
        if self._exists is None:
            self._exists = self.site.get_file(self.path) is not None
        return self._exists

    # --- Metadata ---

    @property
    def modified_time(self) -> int:
        """Last modification time in milliseconds since the epoch."""
        return self._modified_time

    def set_modified_time(self, value: int) -> None:
        if value == self._modified_time:
            return
        old, self._modified_time = self._modified_time, value
        self.fire_property_change(self.MODIFIED_TIME, old, value)

    @property
    def size(self) -> int:
        return self._size

    def set_size(self, value: int) -> None:
        if value == self._size:
            return
        old, self._size = self._size, value
        self.fire_property_change(self.SIZE, old, value)

    @property
    def load_state(self) -> LoadState:
        return self._state

    # --- Bytes ---

    @property
    def is_bytes_set(self) -> bool:
        return self._state is LoadState.LOADED and self._bytes is not None

    @property
    def bytes(self) -> bytes | None:
        return self.get_bytes()

    def get_bytes(self) -> bytes | None:
        """Return the file's bytes, fetching them through a GET if needed."""
        with self.site.lock:
            if self._state is not LoadState.LOADED:
                if self._exists is False:
                    return self._bytes
                self._state = LoadState.LOADING
                try:
                    data = self.site.get_file_bytes(self)
                finally:
                    if self._state is LoadState.LOADING:
                        self._state = LoadState.UNLOADED
                if self._state is not LoadState.LOADED:
                    self._install_bytes(data)
            return self._bytes

    def set_bytes(self, data: bytes | None) -> None:
        """Replace the payload; the change is persisted by ``save()``."""
        with self.site.lock:
            if self._state is LoadState.LOADED and data == self._bytes:
                return
            old, self._bytes = self._bytes, data
            self._state = LoadState.LOADED if data is not None else LoadState.UNLOADED
            self.fire_property_change(self.BYTES, old, data)
            self.set_size(len(data) if data is not None else 0)

    def get_text(self) -> str | None:
        data = self.get_bytes()
        return data.decode("utf-8", errors="replace") if data is not None else None

    def set_text(self, text: str) -> None:
        self.set_bytes(text.encode("utf-8"))

    def _install_bytes(self, data: bytes | None) -> None:
        self._bytes = data
        self._state = LoadState.LOADED
        if data is not None:
            self._size = len(data)

    # --- Children ---

    @property
    def files(self) -> list[WebFile]:
        return self.get_files()

    def get_files(self) -> list[WebFile]:
        """Return the sorted children, listing the directory if needed.

        Plain files have no children and return an empty list.
        """
        if not self.is_dir:
            return []
        with self.site.lock:
            if self._state is not LoadState.LOADED:
                if self._exists is False:
                    self._install_files([])
                else:
                    self._state = LoadState.LOADING
                    try:
                        files = self.site.get_files(self)
                    finally:
                        if self._state is LoadState.LOADING:
                            self._state = LoadState.UNLOADED
                    if self._state is not LoadState.LOADED:
                        self._install_files(files or [])
            return list(self._files or [])

    def set_files(self, files: list[WebFile] | None) -> None:
        with self.site.lock:
            old = self._files
            if files is None:
                self._files = None
                self._state = LoadState.UNLOADED
            else:
                self._install_files(files)
            self.fire_property_change(self.FILES, old, self._files)

    def _install_files(self, files: list[WebFile]) -> None:
        ordered = sorted(files, key=lambda f: f.sort_key)
        for file in ordered:
            file._set_parent(self)
        self._files = ordered
        self._state = LoadState.LOADED

    def _reset_payload(self, state: LoadState) -> None:
        self._bytes = None
        self._files = None
        self._state = state

    @property
    def file_count(self) -> int:
        return len(self.get_files())

    def get_file_names(self) -> list[str]:
        return [file.name for file in self.get_files()]

    def get_file(self, name: str) -> WebFile | None:
        """Return the file at *name*, relative to this directory unless absolute."""
        path = name if name.startswith("/") else path_child(self.dir_path, name)
        return self.site.get_file(path)

    def get_files_matching(self, regex: str | re.Pattern[str]) -> list[WebFile]:
        """Return the children whose full name matches *regex*."""
        pattern = re.compile(regex) if isinstance(regex, str) else regex
        return [file for file in self.get_files() if pattern.fullmatch(file.name)]

    def get_file_index(self, file: WebFile) -> int:
        """Return the position of *file* among the children, or ``-1``."""
        for index, child in enumerate(self.get_files()):
            if child is file:
                return index
        return -1

    def get_insert_index(self, file: WebFile) -> int:
        """Return the sorted position at which *file* would be inserted."""
        keys = [child.sort_key for child in self.get_files()]
        return bisect_left(keys, file.sort_key)

    def add_file(self, file: WebFile) -> None:
        """Insert *file* among the children in sorted position."""
        with self.site.lock:
            if self.get_file_index(file) >= 0:
                return
            index = self.get_insert_index(file)
            if self._files is None:
                raise ValueError(f"Cannot add a child to plain file {self.path}")
            self._files.insert(index, file)
            file._set_parent(self)
            self.fire_property_change(self.FILE, None, file, index)

    def remove_file(self, file: WebFile) -> None:
        with self.site.lock:
            index = self.get_file_index(file)
            if index < 0 or self._files is None:
                return
            self._files.pop(index)
            self.fire_property_change(self.FILE, file, None, index)

    # --- Updater ---

    @property
    def updater(self) -> Updater | None:
        return self._updater

    def set_updater(self, updater: Updater | None) -> None:
        """Register a callback that writes pending edits into the file on save."""
        if updater is self._updater:
            return
        old, self._updater = self._updater, updater
        self.fire_property_change(self.UPDATER, old, updater)

    # --- Site operations ---

    def save(self) -> None:
        self.site.save_file(self)

    def delete(self) -> None:
        self.site.delete_file(self)

    def refresh(self) -> None:
        self.site.refresh_file(self)

    def get_url(self, relative: str) -> WebURL:
        """Resolve *relative* against this file's directory."""
        if self.is_dir:
            return self.url.join(relative)
        parent = self.get_parent()
        base = parent.url if parent is not None else self.url
        return base.join(relative)
