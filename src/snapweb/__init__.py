r"""snapweb -- a virtual file system over local, archive and network storage.

Any resource (a directory, a zip entry, a web page, an FTP file, a packaged
resource) is addressed by a URL and reached through one
[WebSite][snapweb.core.site.WebSite] per site address. Sites hand out
[WebFile][snapweb.core.file.WebFile] objects with lazily loaded contents
and store structured [Row][snapweb.data.row.Row] records.

Architecture follows a **diamond DAG** dependency structure where imports
flow strictly downward:

```text
              sites            Concrete backends (disk, zip, HTTP, FTP, ...)
             /     \
          core     utils       Sites, files, registry; bounded HTTP helpers
           |
          data                 Entities, rows, queries (sites by duck typing)
           |
          models               Addresses, paths and enums (zero I/O)
```

Note:
    For lightweight usage, import directly from subpackages::

        from snapweb.models import WebURL
        from snapweb.core import Web

    Top-level imports (``from snapweb import Web``) use lazy loading
    and resolve on first access.
"""

import importlib
from importlib.metadata import version as _get_version


__version__ = _get_version("snapweb")

__all__ = [
    "DataType",
    "Entity",
    "Logger",
    "Query",
    "Request",
    "RequestType",
    "Response",
    "ResponseCode",
    "ResponseException",
    "Row",
    "Web",
    "WebConfig",
    "WebFile",
    "WebSite",
    "WebURL",
    "create_site",
    "get_url",
]

_LAZY_IMPORTS: dict[str, tuple[str, str]] = {
    "Logger": ("snapweb.core", "Logger"),
    "Request": ("snapweb.core", "Request"),
    "Response": ("snapweb.core", "Response"),
    "ResponseException": ("snapweb.core", "ResponseException"),
    "Web": ("snapweb.core", "Web"),
    "WebConfig": ("snapweb.core", "WebConfig"),
    "WebFile": ("snapweb.core", "WebFile"),
    "WebSite": ("snapweb.core", "WebSite"),
    "Entity": ("snapweb.data", "Entity"),
    "Query": ("snapweb.data", "Query"),
    "Row": ("snapweb.data", "Row"),
    "DataType": ("snapweb.models", "DataType"),
    "RequestType": ("snapweb.models", "RequestType"),
    "ResponseCode": ("snapweb.models", "ResponseCode"),
    "WebURL": ("snapweb.models", "WebURL"),
    "get_url": ("snapweb.models", "get_url"),
    "create_site": ("snapweb.sites", "create_site"),
}


def __getattr__(name: str) -> object:
    if name in _LAZY_IMPORTS:
        module_path, attr_name = _LAZY_IMPORTS[name]
        module = importlib.import_module(module_path)
        value = getattr(module, attr_name)
        globals()[name] = value  # Cache for subsequent access
        return value
    raise AttributeError(f"module 'snapweb' has no attribute {name!r}")


def __dir__() -> list[str]:
    return __all__
