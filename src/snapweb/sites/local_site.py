"""App-private stores behind the ``local:`` and ``sandbox:`` schemes.

Both are [FileSite][snapweb.sites.file_site.FileSite] variants whose root
lives under a configured directory instead of the site address's path.
Per-site sandboxes (``local:/Sandboxes/<name>``) are LocalSites.
"""

from __future__ import annotations

from .file_site import FileSite


class LocalSite(FileSite):
    """Files below ``config.local.home_dir`` plus the site address's path."""

    def get_path_in_filesystem(self) -> str:
        root = self.config.local.home_dir
        return str(root / (self.url.path or "").lstrip("/"))


class SandboxSite(FileSite):
    """Files below ``config.sandbox.root_dir`` plus the site address's path."""

    def get_path_in_filesystem(self) -> str:
        root = self.config.sandbox.root_dir
        return str(root / (self.url.path or "").lstrip("/"))
