"""Concrete storage backends and the factory that picks one per address.

Attributes:
    FileSite: Local disk, with rows stored as CSV in the sandbox.
    LocalSite: App-private store below ``config.local.home_dir``.
    SandboxSite: Store below ``config.sandbox.root_dir``.
    ZipFileSite: Read-only zip archive entries.
    JarFileSite: Read-only jar archive entries, hiding platform classes.
    DirSite: A directory of another site exposed as a site.
    HTTPSite: Files served over HTTP(S), via aiohttp.
    FTPSite: Files on an FTP server, via ftplib.
    ClassSite: Resources of importable packages.

See Also:
    [Web][snapweb.core.web.Web]: Calls [create_site][snapweb.sites.create_site]
        the first time an address is used.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .class_site import ClassSite
from .dir_site import DirSite
from .file_site import FileSite
from .ftp_site import FTPSite
from .http_site import HTTPSite
from .local_site import LocalSite, SandboxSite
from .zip_site import JarFileSite, ZipFileSite


if TYPE_CHECKING:
    from snapweb.core.site import WebSite
    from snapweb.core.web import Web
    from snapweb.models.url import WebURL


SCHEME_SITES: dict[str, type[WebSite]] = {
    "file": FileSite,
    "http": HTTPSite,
    "https": HTTPSite,
    "ftp": FTPSite,
    "class": ClassSite,
    "local": LocalSite,
    "sandbox": SandboxSite,
}


def create_site(url: WebURL, web: Web) -> WebSite | None:
    """Return a new backend for site address *url*, or ``None`` if none fits.

    Archives win over schemes: any address whose path ends in ``.zip`` is
    a [ZipFileSite][snapweb.sites.zip_site.ZipFileSite] and ``.jar`` or
    ``.jar.pack.gz`` a [JarFileSite][snapweb.sites.zip_site.JarFileSite].
    A path inside another site (``file:/a.zip!/docs``) is a
    [DirSite][snapweb.sites.dir_site.DirSite].
    """
    path = (url.path or "").lower()
    site_class: type[WebSite] | None
    if path.endswith((".jar", ".jar.pack.gz")):
        site_class = JarFileSite
    elif path.endswith(".zip"):
        site_class = ZipFileSite
    elif path and url.site_url.path:
        site_class = DirSite
    else:
        site_class = SCHEME_SITES.get(url.scheme)
    return site_class(url, web) if site_class is not None else None


__all__ = [
    "SCHEME_SITES",
    "ClassSite",
    "DirSite",
    "FTPSite",
    "FileSite",
    "HTTPSite",
    "JarFileSite",
    "LocalSite",
    "SandboxSite",
    "ZipFileSite",
    "create_site",
]
