"""Read-only backend over packaged resources (``class:`` addresses).

The first path segment names an importable package and the rest a
resource inside it, so ``class:/snapweb/models/url.py`` is the ``url.py``
module file of the ``snapweb.models`` package. Lookups go through
``importlib.resources`` and work for zipped distributions too.
"""

from __future__ import annotations

from importlib import resources
from pathlib import Path
from typing import TYPE_CHECKING

from snapweb.core.site import WebSite
from snapweb.models.paths import path_child


if TYPE_CHECKING:
    from importlib.resources.abc import Traversable

    from snapweb.core.file import WebFile


_SKIPPED = frozenset({"__pycache__"})


class ClassSite(WebSite):
    """Resources of importable packages."""

    supports_put = False
    supports_delete = False

    @staticmethod
    def resource(path: str) -> Traversable | None:
        """Return the resource at *path*, or ``None`` for the root and unknown packages."""
        parts = [part for part in path.split("/") if part]
        if not parts:
            return None
        try:
            root = resources.files(parts[0])
        except (ModuleNotFoundError, TypeError):
            return None
        return root.joinpath(*parts[1:]) if len(parts) > 1 else root

    def get_file_impl(self, path: str) -> WebFile | None:
        if path == "/":
            return self.create_file(path, True)
        resource = self.resource(path)
        if resource is None:
            return None
        if resource.is_dir():
            return self.create_file(path, True)
        if not resource.is_file():
            return None
        return self.create_file(path, False)

    def get_files_impl(self, file: WebFile) -> list[WebFile]:
        resource = self.resource(file.path)
        if resource is None:
            # Importable packages are not enumerable from the root
            return []
        return [
            self.create_file(path_child(file.path, child.name), child.is_dir())
            for child in resource.iterdir()
            if child.name not in _SKIPPED
        ]

    def get_file_bytes_impl(self, file: WebFile) -> bytes:
        resource = self.resource(file.path)
        if resource is None:
            raise FileNotFoundError(f"No resource {file.path}")
        return resource.read_bytes()

    def get_standard_file(self, file: WebFile) -> Path | None:
        resource = self.resource(file.path)
        return resource if isinstance(resource, Path) else None
