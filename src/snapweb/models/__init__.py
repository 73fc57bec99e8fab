"""Pure values with zero I/O: addresses, path helpers and shared enums.

The models layer is the foundation of the diamond DAG. It has **no
dependencies** on any other snapweb package, only the Python standard
library and ``rfc3986`` for address parsing.

Attributes:
    WebURL: Normalized address of a site or of a file inside a site,
        split on the last ``!`` into site address and file path.
    RequestType: Request verbs (HEAD, GET, POST, PUT, DELETE).
    ResponseCode: Numeric response codes (200, 401, 404, 405, 420).
    DataType: Content classification derived from a path extension.
    LoadState: Lifecycle of a file's lazily fetched payload.

See Also:
    [snapweb.core][snapweb.core]: Sites and files built on these values.
"""

from .constants import DataType, LoadState, RequestType, ResponseCode
from .paths import (
    normalize_path,
    path_child,
    path_extension,
    path_name,
    path_parent,
    path_simple_name,
)
from .url import MalformedURLError, WebURL, get_resource_url, get_url


__all__ = [
    "DataType",
    "LoadState",
    "MalformedURLError",
    "RequestType",
    "ResponseCode",
    "WebURL",
    "get_resource_url",
    "get_url",
    "normalize_path",
    "path_child",
    "path_extension",
    "path_name",
    "path_parent",
    "path_simple_name",
]
