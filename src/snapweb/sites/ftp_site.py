"""FTP backend built on the standard library's ``ftplib``.

Each hook opens its own control connection, logs in (anonymously without
credentials) and closes it again. Metadata comes from ``MLSD`` listings.
"""

from __future__ import annotations

import ftplib
import io
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from snapweb.core.exceptions import AccessDeniedError
from snapweb.core.site import WebSite
from snapweb.models.paths import normalize_path, path_child, path_name, path_parent


if TYPE_CHECKING:
    from snapweb.core.file import WebFile


_DIR_TYPES = frozenset({"dir", "cdir", "pdir"})


def _parse_modify(value: str | None) -> int:
    """Convert an MLSD ``modify`` fact (``YYYYMMDDHHMMSS[.sss]``) to epoch ms."""
    if not value:
        return 0
    try:
        stamp = datetime.strptime(value[:14], "%Y%m%d%H%M%S").replace(tzinfo=UTC)
    except ValueError:
        return 0
    return int(stamp.timestamp() * 1000)


class FTPSite(WebSite):
    """Files on an FTP server."""

    def ftp_path(self, path: str) -> str:
        """Return the server path for site path *path*."""
        return normalize_path((self.url.path or "") + path)

    @contextmanager
    def _connect(self) -> Iterator[ftplib.FTP]:
        ftp = ftplib.FTP(timeout=self.config.ftp.timeout)
        try:
            ftp.connect(self.url.host or "", self.url.port or 21)
            try:
                ftp.login(self.user_name or "anonymous", self.password or "")
            except ftplib.error_perm as e:
                raise AccessDeniedError(f"FTP login failed for {self.url}: {e}") from e
            yield ftp
        finally:
            ftp.close()

    def _facts(self, ftp: ftplib.FTP, path: str) -> dict[str, str] | None:
        parent = path_parent(path)
        if parent is None:
            return {"type": "dir"}
        name = path_name(path)
        try:
            for entry, facts in ftp.mlsd(parent, facts=["type", "size", "modify"]):
                if entry == name:
                    return facts
        except ftplib.error_perm as e:
            if str(e).startswith("550"):
                return None
            raise
        return None

    def _create(self, path: str, facts: dict[str, str]) -> WebFile:
        is_dir = facts.get("type", "file") in _DIR_TYPES
        file = self.create_file(path, is_dir)
        file.set_modified_time(_parse_modify(facts.get("modify")))
        if not is_dir and facts.get("size", "").isdigit():
            file.set_size(int(facts["size"]))
        return file

    # --- Backend hooks ---

    def get_file_impl(self, path: str) -> WebFile | None:
        with self._connect() as ftp:
            facts = self._facts(ftp, self.ftp_path(path))
        if facts is None:
            return None
        return self._create(path, facts)

    def get_files_impl(self, file: WebFile) -> list[WebFile]:
        with self._connect() as ftp:
            listing = list(ftp.mlsd(self.ftp_path(file.path), facts=["type", "size", "modify"]))
        return [
            self._create(path_child(file.path, name), facts)
            for name, facts in listing
            if name not in (".", "..") and facts.get("type") not in ("cdir", "pdir")
        ]

    def get_file_bytes_impl(self, file: WebFile) -> bytes:
        buffer = io.BytesIO()
        with self._connect() as ftp:
            ftp.retrbinary(f"RETR {self.ftp_path(file.path)}", buffer.write)
        return buffer.getvalue()

    def save_file_impl(self, file: WebFile) -> None:
        path = self.ftp_path(file.path)
        data = None if file.is_dir else (file.get_bytes() or b"")
        with self._connect() as ftp:
            if data is None:
                # MKD fails on directories that already exist
                if self._facts(ftp, path) is None:
                    ftp.mkd(path)
            else:
                ftp.storbinary(f"STOR {path}", io.BytesIO(data))

    def delete_file_impl(self, file: WebFile) -> None:
        path = self.ftp_path(file.path)
        with self._connect() as ftp:
            if file.is_dir:
                ftp.rmd(path)
            else:
                ftp.delete(path)
