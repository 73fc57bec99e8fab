"""
Parsed, normalized address of a site or of a file inside a site.

A [WebURL][snapweb.models.url.WebURL] splits its address into the address
of the owning site and the file path inside that site. The last ``!`` in
the path separates an archive (or other nested site) from the path inside
it, so ``file:/a.zip!/b.zip!/c.txt`` names ``/c.txt`` inside the site
``file:/a.zip!/b.zip``, which in turn lives at ``/b.zip`` inside
``file:/a.zip``.

Parsing and normalization use ``rfc3986``: scheme and host are lower-cased,
percent-encodings are canonicalized and dot segments are removed, so
addresses produced by a resource lookup, a string parse or a filesystem
path compare equal when they name the same thing.

Examples:
    ```python
    url = WebURL("file:/tmp/docs.zip!/readme.txt")
    url.site_url.string    # 'file:/tmp/docs.zip'
    url.path               # '/readme.txt'

    WebURL("/tmp/x.txt").string           # 'file:/tmp/x.txt'
    WebURL("http://Example.COM/a").host   # 'example.com'
    ```
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from urllib.parse import parse_qsl, quote, unquote

from rfc3986 import uri_reference
from rfc3986.exceptions import ValidationError
from rfc3986.validators import Validator

from .paths import normalize_path, path_name, path_simple_name


class MalformedURLError(ValueError):
    """Raised when a string cannot be parsed as a [WebURL][snapweb.models.url.WebURL]."""


_SCHEME = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*:")
_WINDOWS_DRIVE = re.compile(r"^[A-Za-z]:[\\/]")
_STRIPPED_PREFIXES = ("jar:", "wsjar:")
# Characters kept literal when a decoded site path is turned back into an address
_PATH_SAFE = "/!$&'()*+,;=:@~"


@dataclass(frozen=True, slots=True)
class WebURL:
    """Immutable address of a site or of a file within a site.

    Equality and hashing use only the normalized ``string``; every other
    field is derived from it.

    Attributes:
        raw_url: The text the address was parsed from.
        string: Normalized address text.
        scheme: Lower-cased scheme (``file``, ``http``, ``class`` ...).
        authority: ``userinfo@host:port`` part, or ``None``.
        userinfo: User information from the authority, or ``None``.
        host: Lower-cased host, or ``None``.
        port: Explicit port, or ``None``.
        path: Decoded file path inside the owning site, or ``None`` when
            the address is a bare site address.
        query: Raw query text without ``?``, or ``None``.
        fragment: Raw fragment text without ``#``, or ``None``.
        site_string: Address of the site that owns ``path``.

    Raises:
        MalformedURLError: If the text has no scheme and is not an
            absolute filesystem path, or a component is invalid.
    """

    raw_url: str = field(repr=False, compare=False)

    string: str = field(init=False)
    scheme: str = field(init=False, compare=False)
    authority: str | None = field(init=False, compare=False)
    userinfo: str | None = field(init=False, compare=False)
    host: str | None = field(init=False, compare=False)
    port: int | None = field(init=False, compare=False)
    path: str | None = field(init=False, compare=False)
    query: str | None = field(init=False, compare=False)
    fragment: str | None = field(init=False, compare=False)
    site_string: str = field(init=False, compare=False, repr=False)

    def __post_init__(self) -> None:
        if not isinstance(self.raw_url, str):
            raise TypeError(f"raw_url must be a str, got {type(self.raw_url).__name__}")
        if "\x00" in self.raw_url:
            raise MalformedURLError("URL contains null bytes")

        parsed = self._parse(self.raw_url)
        for name, value in parsed.items():
            object.__setattr__(self, name, value)

    @staticmethod
    def _parse(raw: str) -> dict[str, Any]:
        """Parse *raw* into the computed fields of a WebURL."""
        text = raw.strip()
        for prefix in _STRIPPED_PREFIXES:
            if text[: len(prefix)].lower() == prefix:
                text = text[len(prefix) :]
        if text.startswith("/"):
            text = "file:" + text
        elif _WINDOWS_DRIVE.match(text):
            text = "file:/" + text.replace("\\", "/")
        if not _SCHEME.match(text):
            raise MalformedURLError(f"URL has no scheme: {raw!r}")

        uri = uri_reference(text).normalize()
        validator = Validator().require_presence_of("scheme").check_validity_of(
            "scheme", "host", "port"
        )
        try:
            validator.validate(uri)
        except ValidationError as e:
            raise MalformedURLError(f"Invalid URL {raw!r}: {e}") from None

        scheme = uri.scheme.lower()
        authority = uri.authority or None
        encoded_path = uri.path or ""
        prefix = f"{scheme}:" + (f"//{authority}" if authority else "")

        string = prefix + encoded_path
        if uri.query is not None:
            string += f"?{uri.query}"
        if uri.fragment is not None:
            string += f"#{uri.fragment}"

        # The last '!' separates the nested site from the path inside it
        bang = encoded_path.rfind("!")
        if not encoded_path:
            site_string, file_path = prefix, None
        elif bang > 0:
            site_string = prefix + encoded_path[:bang]
            file_path = unquote(encoded_path[bang + 1 :]) or "/"
        else:
            site_string, file_path = prefix, unquote(encoded_path)

        info = uri.authority_info() if authority else {}
        port = info.get("port")
        host = info.get("host")
        return {
            "string": string,
            "scheme": scheme,
            "authority": authority,
            "userinfo": info.get("userinfo"),
            "host": host.lower() if host else None,
            "port": int(port) if port else None,
            "path": file_path,
            "query": uri.query,
            "fragment": uri.fragment,
            "site_string": site_string,
        }

    def __str__(self) -> str:
        return self.string

    # --- Path accessors ---

    @property
    def path_name(self) -> str:
        """Last segment of the file path (empty for site addresses)."""
        return path_name(self.path) if self.path else ""

    @property
    def path_name_simple(self) -> str:
        """Last segment of the file path without its extension."""
        return path_simple_name(self.path) if self.path else ""

    # --- Query and fragment maps ---

    def query_value(self, key: str) -> str | None:
        """Return the value of *key* in a ``key=value&key=value`` query."""
        return _map_value(self.query, key)

    def fragment_value(self, key: str) -> str | None:
        """Return the value of *key* in a ``key=value&key=value`` fragment."""
        return _map_value(self.fragment, key)

    # --- Derived addresses ---

    @property
    def site_url(self) -> WebURL:
        """Address of the site that owns this address's path."""
        if self.site_string == self.string:
            return self
        return WebURL(self.site_string)

    @property
    def is_file_url(self) -> bool:
        return self.query is None and self.fragment is None

    @property
    def file_url_string(self) -> str:
        """Address text without query and fragment."""
        return self.string.split("#", 1)[0].split("?", 1)[0]

    @property
    def file_url(self) -> WebURL:
        return self if self.is_file_url else WebURL(self.file_url_string)

    @property
    def is_query_url(self) -> bool:
        return self.fragment is None

    @property
    def query_url_string(self) -> str:
        """Address text without the fragment."""
        return self.string.split("#", 1)[0]

    @property
    def query_url(self) -> WebURL:
        return self if self.is_query_url else WebURL(self.query_url_string)

    def site_child(self, path: str) -> WebURL:
        """Return the address of *path* inside the site at this address.

        Sites that already carry a path (archives, nested directories) are
        separated from *path* with ``!``.

        Examples:
            ```python
            WebURL("http://example.com").site_child("/a.txt").string
            # 'http://example.com/a.txt'
            WebURL("file:/tmp/x.zip").site_child("/b.txt").string
            # 'file:/tmp/x.zip!/b.txt'
            ```
        """
        separator = "!" if self.path else ""
        encoded = quote(normalize_path(path), safe=_PATH_SAFE)
        return WebURL(f"{self.file_url_string}{separator}{encoded}")

    def join(self, name: str) -> WebURL:
        """Resolve *name* against this address.

        Full addresses are parsed as-is, absolute paths resolve inside this
        address's site and anything else is appended below this address.
        """
        if _SCHEME.match(name) and not _WINDOWS_DRIVE.match(name):
            return WebURL(name)
        if name.startswith("/"):
            return self.site_url.site_child(name)
        base = self.file_url_string.rstrip("/")
        return WebURL(f"{base}/{quote(name, safe=_PATH_SAFE)}")


def _map_value(text: str | None, key: str) -> str | None:
    if not text:
        return None
    for k, v in parse_qsl(text, keep_blank_values=True):
        if k == key:
            return v
    return None


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------


def get_url(obj: Any) -> WebURL | None:
    """Coerce *obj* into a [WebURL][snapweb.models.url.WebURL].

    Accepts a ``WebURL``, any object exposing a ``url`` attribute holding
    one (such as a [WebFile][snapweb.core.file.WebFile]), an ``os.PathLike``
    or a string. Strings that fail to parse as addresses are treated as
    filesystem paths relative to the working directory.

    Returns:
        The address, or ``None`` when *obj* is ``None``.

    Raises:
        TypeError: If *obj* cannot be interpreted as an address.
    """
    if obj is None:
        return None
    if isinstance(obj, WebURL):
        return obj
    if isinstance(obj, os.PathLike):
        return _file_url(Path(obj))
    if isinstance(obj, str):
        try:
            return WebURL(obj)
        except MalformedURLError:
            return _file_url(Path(obj))
    url = getattr(obj, "url", None)
    if isinstance(url, WebURL):
        return url
    raise TypeError(f"Cannot build a WebURL from {type(obj).__name__}")


def get_resource_url(package: str, name: str) -> WebURL:
    """Return the ``class:`` address of resource *name* in *package*.

    Examples:
        ```python
        get_resource_url("snapweb.models", "paths.py").string
        # 'class:/snapweb/models/paths.py'
        ```
    """
    package_path = package.replace(".", "/")
    return WebURL(f"class:/{package_path}/{name.lstrip('/')}")


def _file_url(path: Path) -> WebURL:
    text = path.expanduser().resolve().as_posix()
    if not text.startswith("/"):
        text = "/" + text
    return WebURL("file:" + quote(text, safe=_PATH_SAFE))
