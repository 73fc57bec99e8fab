"""
HTTP backend built on aiohttp.

Every backend hook issues one bounded request through
[request_bounded][snapweb.utils.http.request_bounded]. The site API is
synchronous, so requests run in a private event loop via ``asyncio.run``;
an HTTPSite must therefore not be driven from inside a running loop.

Directory detection follows server listings: a path without an extension
whose body contains ``Index of`` is a directory, and its children are the
relative ``href`` targets of the listing. Servers without listings can
publish a ``.index`` file with one child name per line (directories end
in ``/``).

Saving POSTs the file's bytes to its address. Deletion is not supported.
"""

from __future__ import annotations

import asyncio
import re
from email.utils import parsedate_to_datetime
from typing import TYPE_CHECKING
from urllib.parse import quote, unquote

import aiohttp

from snapweb.core.exceptions import AccessDeniedError
from snapweb.core.site import WebSite
from snapweb.models.paths import path_child, path_extension
from snapweb.utils.http import HttpResult, request_bounded


if TYPE_CHECKING:
    from snapweb.core.file import WebFile


_HREF_PATTERN = re.compile(r"""href\s*=\s*["']([^"']+)["']""", re.IGNORECASE)
_INDEX_FILE = ".index"


class HTTPSite(WebSite):
    """Files served over ``http:`` or ``https:``."""

    supports_delete = False

    def address(self, path: str) -> str:
        """Return the absolute request URL for site path *path*."""
        base = self.url.file_url_string.rstrip("/")
        return base + quote(path, safe="/!$&'()*+,;=:@~")

    # --- Transport ---

    async def _request(self, method: str, path: str, data: bytes | None = None) -> HttpResult:
        auth = aiohttp.BasicAuth(self.user_name, self.password or "") if self.user_name else None
        return await request_bounded(
            method,
            self.address(path),
            max_size=self.config.http.max_size,
            timeout=self.config.http.timeout,
            data=data,
            auth=auth,
        )

    def _fetch(self, method: str, path: str, data: bytes | None = None) -> HttpResult:
        result = asyncio.run(self._request(method, path, data))
        self._logger.debug("http_request", method=method, path=path, status=result.status)
        return result

    def _check(self, result: HttpResult, path: str) -> None:
        if result.status in (401, 403):
            raise AccessDeniedError(f"HTTP {result.status} for {self.address(path)}")
        if result.status >= 400:
            raise OSError(f"HTTP {result.status} for {self.address(path)}")

    # --- Backend hooks ---

    def get_file_impl(self, path: str) -> WebFile | None:
        result = self._fetch("GET", path)
        if result.status == 404:
            return None
        self._check(result, path)
        is_dir = path == "/" or (
            not path_extension(path) and b"index of" in result.body.lower()
        )
        file = self.create_file(path, is_dir)
        last_modified = result.headers.get("Last-Modified")
        if last_modified:
            try:
                file.set_modified_time(int(parsedate_to_datetime(last_modified).timestamp() * 1000))
            except (TypeError, ValueError):
                self._logger.debug("bad_last_modified", path=path, value=last_modified)
        if not is_dir:
            file.set_size(len(result.body))
        return file

    def get_files_impl(self, file: WebFile) -> list[WebFile]:
        listing = self._fetch("GET", file.path.rstrip("/") + "/")
        self._check(listing, file.path)
        entries = _listing_entries(listing.body.decode("utf-8", errors="replace"))
        if not entries:
            index = self._fetch("GET", path_child(file.path, _INDEX_FILE))
            if index.status == 200:
                entries = [
                    line.strip()
                    for line in index.body.decode("utf-8", errors="replace").splitlines()
                    if line.strip() and not line.startswith("#")
                ]
        files: list[WebFile] = []
        seen: set[str] = set()
        for entry in entries:
            name = entry.rstrip("/")
            if not name or name in seen:
                continue
            seen.add(name)
            files.append(self.create_file(path_child(file.path, name), entry.endswith("/")))
        return files

    def get_file_bytes_impl(self, file: WebFile) -> bytes:
        result = self._fetch("GET", file.path)
        self._check(result, file.path)
        return result.body

    def save_file_impl(self, file: WebFile) -> None:
        if file.is_dir:
            return
        result = self._fetch("POST", file.path, file.get_bytes() or b"")
        self._check(result, file.path)


def _listing_entries(text: str) -> list[str]:
    """Return the relative child names linked from a directory listing."""
    if "index of" not in text.lower():
        return []
    entries: list[str] = []
    for href in _HREF_PATTERN.findall(text):
        if href.startswith(("?", "#", "/", "../", "mailto:")) or "://" in href:
            continue
        name = unquote(href)
        if name.rstrip("/").count("/") == 0:
            entries.append(name)
    return entries
