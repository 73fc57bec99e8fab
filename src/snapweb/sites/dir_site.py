"""A site rooted at a directory of another site."""

from __future__ import annotations

from typing import TYPE_CHECKING

from snapweb.core.site import WebSite
from snapweb.models.paths import normalize_path


if TYPE_CHECKING:
    from pathlib import Path

    from snapweb.core.file import WebFile


class DirSite(WebSite):
    """Exposes directory ``<site>!/dir`` as a site of its own.

    Every operation is forwarded to the owning site's file at
    ``/dir + path``, so ``file:/a.zip!/docs`` reads its files out of the
    ``file:/a.zip`` archive.
    """

    @property
    def directory(self) -> WebFile:
        """The backing directory in the owning site."""
        directory = self.web.create_file(self.url, True)
        if directory is None:
            raise FileNotFoundError(f"No site owns {self.url}")
        return directory

    def _parent_path(self, path: str) -> str:
        return normalize_path(self.directory.path + path)

    def _parent_file(self, path: str) -> WebFile | None:
        return self.directory.site.get_file(self._parent_path(path))

    def get_file_impl(self, path: str) -> WebFile | None:
        parent_file = self._parent_file(path)
        if parent_file is None:
            return None
        file = self.create_file(path, parent_file.is_dir)
        file.set_modified_time(parent_file.modified_time)
        if parent_file.is_file:
            file.set_size(parent_file.size)
        return file

    def get_files_impl(self, file: WebFile) -> list[WebFile]:
        parent_file = self._parent_file(file.path)
        if parent_file is None:
            return []
        files: list[WebFile] = []
        for child in parent_file.get_files():
            mine = self.get_file_impl(normalize_path(f"{file.path}/{child.name}"))
            if mine is not None:
                files.append(mine)
        return files

    def get_file_bytes_impl(self, file: WebFile) -> bytes:
        parent_file = self._parent_file(file.path)
        if parent_file is None:
            raise FileNotFoundError(f"File not found: {self._parent_path(file.path)}")
        return parent_file.get_bytes() or b""

    def save_file_impl(self, file: WebFile) -> None:
        site = self.directory.site
        parent_file = site.create_file(self._parent_path(file.path), file.is_dir)
        if file.is_file:
            parent_file.set_bytes(file.get_bytes() or b"")
        parent_file.save()
        file.set_modified_time(parent_file.modified_time)

    def delete_file_impl(self, file: WebFile) -> None:
        parent_file = self._parent_file(file.path)
        if parent_file is not None:
            parent_file.delete()

    def get_standard_file(self, file: WebFile) -> Path | None:
        return self.directory.site.create_file(self._parent_path(file.path), file.is_dir).standard_file
