"""Shared constants for the models layer.

Defines the enumerations used by requests, responses and files across
every layer. Keeping them here lets the data layer and the site
backends share them without import cycles.

See Also:
    [Request][snapweb.core.protocol.Request]: Carries a
        [RequestType][snapweb.models.constants.RequestType].
    [Response][snapweb.core.protocol.Response]: Carries a
        [ResponseCode][snapweb.models.constants.ResponseCode].
    [WebFile][snapweb.core.file.WebFile]: Exposes a
        [DataType][snapweb.models.constants.DataType] derived from its path.
"""

from __future__ import annotations

from enum import IntEnum, StrEnum


class RequestType(StrEnum):
    """Request verbs understood by every site.

    Attributes:
        HEAD: Resolve metadata (existence, directory flag, size, time).
        GET: Fetch the byte payload or directory listing.
        POST: Reserved; sites answer ``405 Method Not Allowed``.
        PUT: Persist a file through the backend.
        DELETE: Remove a file from the backend.
    """

    HEAD = "HEAD"
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


class ResponseCode(IntEnum):
    """Numeric response codes returned by sites.

    ``UNKNOWN`` is the initial value of a freshly created response before
    a handler has decided the outcome.
    """

    UNKNOWN = 0
    OK = 200
    UNAUTHORIZED = 401
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    EXCEPTION_THROWN = 420

    @property
    def text(self) -> str:
        """Human readable description of the code."""
        return _CODE_TEXT.get(self, "Unknown")

    @property
    def is_success(self) -> bool:
        return 200 <= self < 300


_CODE_TEXT: dict[ResponseCode, str] = {
    ResponseCode.OK: "OK",
    ResponseCode.UNAUTHORIZED: "Unauthorized",
    ResponseCode.NOT_FOUND: "Not Found",
    ResponseCode.METHOD_NOT_ALLOWED: "Method Not Allowed",
    ResponseCode.EXCEPTION_THROWN: "Exception Thrown",
}


class DataType(StrEnum):
    """Coarse content classification derived from a path extension.

    Examples:
        ```python
        DataType.from_path("/docs/readme.txt")   # DataType.TEXT
        DataType.from_path("/archive.zip")       # DataType.ZIP
        DataType.from_path("/bin/tool")          # DataType.UNKNOWN
        ```
    """

    TEXT = "text"
    HTML = "html"
    XML = "xml"
    JSON = "json"
    CSV = "csv"
    IMAGE = "image"
    PDF = "pdf"
    ZIP = "zip"
    JAR = "jar"
    TABLE = "table"
    SOURCE = "source"
    UNKNOWN = "unknown"

    @classmethod
    def from_path(cls, path: str | None) -> DataType:
        """Classify *path* by its lower-cased extension."""
        if not path:
            return cls.UNKNOWN
        name = path.rsplit("/", 1)[-1]
        if "." not in name:
            return cls.UNKNOWN
        ext = name.rsplit(".", 1)[-1].lower()
        return _EXTENSION_TYPES.get(ext, cls.UNKNOWN)


_EXTENSION_TYPES: dict[str, DataType] = {
    "txt": DataType.TEXT,
    "md": DataType.TEXT,
    "log": DataType.TEXT,
    "html": DataType.HTML,
    "htm": DataType.HTML,
    "xml": DataType.XML,
    "json": DataType.JSON,
    "csv": DataType.CSV,
    "png": DataType.IMAGE,
    "jpg": DataType.IMAGE,
    "jpeg": DataType.IMAGE,
    "gif": DataType.IMAGE,
    "pdf": DataType.PDF,
    "zip": DataType.ZIP,
    "jar": DataType.JAR,
    "table": DataType.TABLE,
    "entity": DataType.TABLE,
    "py": DataType.SOURCE,
    "java": DataType.SOURCE,
}


class LoadState(StrEnum):
    """Lifecycle of a file's lazily fetched payload (bytes or children).

    Attributes:
        UNLOADED: Nothing fetched yet.
        LOADING: A fetch is in progress under the owning site's lock.
        LOADED: The payload is present and current.
        STALE: The payload was dropped by a refresh and must be refetched.
    """

    UNLOADED = "unloaded"
    LOADING = "loading"
    LOADED = "loaded"
    STALE = "stale"
