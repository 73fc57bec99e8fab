"""
Unit tests for sites.ftp_site module.

Tests:
- MLSD modify fact parsing
- Lookup, listing and retrieval through MLSD/RETR
- Anonymous and credentialed logins, refused logins
- STOR, MKD, DELETE and RMD on save and delete
- Connections are always closed
"""

import ftplib
from collections.abc import Callable, Iterator
from typing import Any

import pytest

from snapweb.core.configs import WebConfig
from snapweb.core.exceptions import ResponseException
from snapweb.core.web import Web
from snapweb.models.paths import path_name, path_parent
from snapweb.sites.ftp_site import FTPSite, _parse_modify


MODIFY = "20240501120000"


class FakeFTP:
    """In-memory double of ``ftplib.FTP``; ``None`` values are directories."""

    def __init__(self, store: dict[str, bytes | None], *, refuse_login: bool = False) -> None:
        self.store = store
        self.refuse_login = refuse_login
        self.address: tuple[str, int] | None = None
        self.credentials: tuple[str, str] | None = None
        self.closed = False
        self.commands: list[str] = []

    def connect(self, host: str, port: int) -> None:
        self.address = (host, port)

    def login(self, user: str, passwd: str) -> None:
        if self.refuse_login:
            raise ftplib.error_perm("530 Login incorrect.")
        self.credentials = (user, passwd)

    def close(self) -> None:
        self.closed = True

    def mlsd(self, path: str, facts: list[str]) -> Iterator[tuple[str, dict[str, str]]]:
        if path not in self.store or self.store[path] is not None:
            raise ftplib.error_perm("550 No such directory.")
        yield ".", {"type": "cdir"}
        yield "..", {"type": "pdir"}
        for child, data in self.store.items():
            if child != "/" and path_parent(child) == path:
                if data is None:
                    yield path_name(child), {"type": "dir", "modify": MODIFY}
                else:
                    yield path_name(child), {"type": "file", "size": str(len(data)), "modify": MODIFY}

    def retrbinary(self, cmd: str, callback: Callable[[bytes], Any]) -> None:
        self.commands.append(cmd)
        data = self.store.get(cmd.split(" ", 1)[1])
        if data is None:
            raise ftplib.error_perm("550 Not a file.")
        callback(data)

    def storbinary(self, cmd: str, fp: Any) -> None:
        self.commands.append(cmd)
        self.store[cmd.split(" ", 1)[1]] = fp.read()

    def mkd(self, path: str) -> str:
        self.commands.append(f"MKD {path}")
        if path in self.store:
            raise ftplib.error_perm("550 File exists.")
        self.store[path] = None
        return path

    def rmd(self, path: str) -> None:
        self.commands.append(f"RMD {path}")
        del self.store[path]

    def delete(self, path: str) -> None:
        self.commands.append(f"DELE {path}")
        del self.store[path]


@pytest.fixture
def store() -> dict[str, bytes | None]:
    return {
        "/": None,
        "/pub": None,
        "/pub/readme.txt": b"hello",
        "/pub/docs": None,
        "/pub/docs/a.txt": b"alpha",
    }


@pytest.fixture
def connections(
    store: dict[str, bytes | None], monkeypatch: pytest.MonkeyPatch
) -> list[FakeFTP]:
    opened: list[FakeFTP] = []

    def factory(timeout: float | None = None) -> FakeFTP:
        ftp = FakeFTP(store)
        opened.append(ftp)
        return ftp

    monkeypatch.setattr(ftplib, "FTP", factory)
    return opened


@pytest.fixture
def ftp_site(web_config: WebConfig, connections: list[FakeFTP]) -> FTPSite:
    site = Web(web_config).get_as_site("ftp://ftp.example.com/pub")
    assert isinstance(site, FTPSite)
    return site


# ============================================================================
# Parsing Tests
# ============================================================================


class TestParseModify:
    """MLSD modify facts."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("20240501120000", 1_714_564_800_000),
            ("20240501120000.250", 1_714_564_800_000),
            ("", 0),
            (None, 0),
            ("yesterday", 0),
        ],
    )
    def test_parse(self, value: str | None, expected: int) -> None:
        assert _parse_modify(value) == expected


# ============================================================================
# Read Tests
# ============================================================================


class TestRead:
    """Lookup, listing and retrieval."""

    def test_ftp_path(self, ftp_site: FTPSite) -> None:
        assert ftp_site.ftp_path("/") == "/pub"
        assert ftp_site.ftp_path("/docs/a.txt") == "/pub/docs/a.txt"

    def test_get_file(self, ftp_site: FTPSite, connections: list[FakeFTP]) -> None:
        readme = ftp_site.get_file("/readme.txt")

        assert readme is not None
        assert readme.is_dir is False
        assert readme.size == 5
        assert readme.modified_time == 1_714_564_800_000
        assert connections[0].address == ("ftp.example.com", 21)
        assert connections[0].credentials == ("anonymous", "")
        assert all(c.closed for c in connections)

    def test_directory(self, ftp_site: FTPSite) -> None:
        root = ftp_site.get_root_directory()
        assert root.is_dir is True
        assert root.get_file_names() == ["docs", "readme.txt"]
        assert ftp_site.get_file("/docs").is_dir is True

    def test_missing(self, ftp_site: FTPSite) -> None:
        assert ftp_site.get_file("/nope.txt") is None
        assert ftp_site.get_file("/nodir/nope.txt") is None

    def test_contents(self, ftp_site: FTPSite, connections: list[FakeFTP]) -> None:
        assert ftp_site.get_file("/docs/a.txt").get_text() == "alpha"
        assert "RETR /pub/docs/a.txt" in connections[-1].commands

    def test_credentials(self, ftp_site: FTPSite, connections: list[FakeFTP]) -> None:
        ftp_site.user_name, ftp_site.password = "alice", "pw"
        ftp_site.get_file("/readme.txt")
        assert connections[-1].credentials == ("alice", "pw")

    def test_refused_login_is_401(
        self,
        web_config: WebConfig,
        store: dict[str, bytes | None],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        opened: list[FakeFTP] = []

        def factory(timeout: float | None = None) -> FakeFTP:
            opened.append(FakeFTP(store, refuse_login=True))
            return opened[-1]

        monkeypatch.setattr(ftplib, "FTP", factory)
        site = Web(web_config).get_as_site("ftp://ftp.example.com:2121")

        with pytest.raises(ResponseException) as exc_info:
            site.get_file("/pub")
        assert exc_info.value.code == 401
        assert opened[0].address == ("ftp.example.com", 2121)
        assert opened[0].closed is True


# ============================================================================
# Write Tests
# ============================================================================


class TestWrite:
    """Uploads, directory creation and removal."""

    def test_save_new_file(self, ftp_site: FTPSite, store: dict[str, bytes | None]) -> None:
        file = ftp_site.create_file("/incoming/new.txt", False)
        file.set_text("fresh")

        file.save()

        assert store["/pub/incoming"] is None
        assert store["/pub/incoming/new.txt"] == b"fresh"
        assert ftp_site.get_file("/incoming").get_file_names() == ["new.txt"]

    def test_existing_directory_is_not_recreated(
        self, ftp_site: FTPSite, connections: list[FakeFTP]
    ) -> None:
        file = ftp_site.create_file("/docs/b.txt", False)
        file.set_text("beta")

        file.save()

        commands = [cmd for c in connections for cmd in c.commands]
        assert "STOR /pub/docs/b.txt" in commands
        assert not any(cmd.startswith("MKD") for cmd in commands)

    def test_delete_tree(self, ftp_site: FTPSite, store: dict[str, bytes | None]) -> None:
        ftp_site.get_file("/docs").delete()
        assert "/pub/docs" not in store
        assert "/pub/docs/a.txt" not in store
