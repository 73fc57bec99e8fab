"""
Unit tests for sites.zip_site module.

Tests:
- Entry lookup, contents and metadata
- Directories inferred from entry paths
- Read-only behaviour
- Jar filtering of platform and anonymous classes
- Directory stand-ins, remote archives copied to the sandbox
- Pack200 archives failing cleanly
"""

import zipfile
from pathlib import Path
from typing import Any

import pytest

from snapweb.core.configs import WebConfig
from snapweb.core.exceptions import ResponseException
from snapweb.core.web import Web
from snapweb.models.url import WebURL
from snapweb.sites.zip_site import JarFileSite, ZipFileSite


def _write_zip(path: Path, entries: dict[str, bytes]) -> Path:
    with zipfile.ZipFile(path, "w") as archive:
        for name, data in entries.items():
            archive.writestr(zipfile.ZipInfo(name, date_time=(2024, 5, 1, 12, 0, 0)), data)
    return path


@pytest.fixture
def archive(tmp_path: Path) -> Path:
    return _write_zip(
        tmp_path / "a.zip",
        {
            "readme.txt": b"top",
            "docs/a.txt": b"alpha",
            "docs/sub/b.txt": b"beta",
            "empty/": b"",
        },
    )


@pytest.fixture
def zip_site(web_config: WebConfig, archive: Path) -> ZipFileSite:
    site = Web(web_config).get_as_site(f"file:{archive}")
    assert isinstance(site, ZipFileSite)
    return site


# ============================================================================
# Zip Tests
# ============================================================================


class TestZipFileSite:
    """Entries of a zip archive."""

    def test_entry_contents(self, zip_site: ZipFileSite) -> None:
        readme = zip_site.get_file("/readme.txt")
        assert readme is not None
        assert readme.is_dir is False
        assert readme.size == 3
        assert readme.modified_time > 0
        assert readme.get_bytes() == b"top"

    def test_nested_entry(self, zip_site: ZipFileSite) -> None:
        assert zip_site.get_file("/docs/sub/b.txt").get_text() == "beta"

    def test_inferred_directories(self, zip_site: ZipFileSite) -> None:
        root = zip_site.get_root_directory()
        assert root.get_file_names() == ["docs", "empty", "readme.txt"]
        docs = zip_site.get_file("/docs")
        assert docs.is_dir is True
        assert docs.get_file_names() == ["a.txt", "sub"]
        assert zip_site.get_file("/empty").get_files() == []

    def test_missing_entry(self, zip_site: ZipFileSite) -> None:
        assert zip_site.get_file("/nope.txt") is None

    def test_through_registry(self, web_config: WebConfig, archive: Path) -> None:
        web = Web(web_config)
        file = web.get_file(f"file:{archive}!/docs/a.txt")
        assert file is not None
        assert file.get_text() == "alpha"
        assert file.url_string == f"file:{archive}!/docs/a.txt"

    def test_read_only(self, zip_site: ZipFileSite) -> None:
        file = zip_site.create_file("/new.txt", False)
        file.set_text("x")
        with pytest.raises(ResponseException) as exc_info:
            file.save()
        assert exc_info.value.code == 405

    def test_missing_archive(self, web_config: WebConfig, tmp_path: Path) -> None:
        site = Web(web_config).get_as_site(f"file:{tmp_path}/missing.zip")
        with pytest.raises(ResponseException) as exc_info:
            site.get_file("/a.txt")
        assert exc_info.value.code == 404
        assert isinstance(exc_info.value.__cause__, FileNotFoundError)

    def test_refresh_rereads_archive(self, zip_site: ZipFileSite, archive: Path) -> None:
        assert zip_site.get_file("/new.txt") is None
        _write_zip(archive, {"new.txt": b"n"})

        zip_site.refresh()

        assert zip_site.get_file("/new.txt").get_text() == "n"
        assert zip_site.get_file("/readme.txt") is None

    def test_directory_stand_in(self, web_config: WebConfig, tmp_path: Path) -> None:
        unpacked = tmp_path / "unpacked.zip"
        (unpacked / "docs").mkdir(parents=True)
        (unpacked / "docs" / "a.txt").write_text("loose")

        site = Web(web_config).get_as_site(f"file:{unpacked}")
        file = site.get_file("/docs/a.txt")

        assert file.get_text() == "loose"
        assert file.standard_file == unpacked / "docs" / "a.txt"

    def test_remote_archive_copied_to_sandbox(
        self, web: Web, memory_site: Any, archive: Path
    ) -> None:
        memory_site.store["/a.zip"] = archive.read_bytes()

        file = web.get_file("mem://test/a.zip!/docs/a.txt")

        assert file is not None
        assert file.get_text() == "alpha"
        copy = memory_site.get_sandbox().get_file("/a.zip")
        assert copy is not None
        assert copy.standard_file.read_bytes() == archive.read_bytes()


# ============================================================================
# Jar Tests
# ============================================================================


class TestJarFileSite:
    """Jar archives hide platform and anonymous classes."""

    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("/org/Foo.class", True),
            ("/org/Foo$Inner.class", True),
            ("/org/Foo$1.class", False),
            ("/sun/misc/X.class", False),
            ("/com/sun/X.class", False),
            ("/com/apple/X.class", False),
            ("/javax/swing/plaf/X.class", False),
            ("/org/omg/X.class", False),
            ("/com/example/X.class", True),
            ("/notes$1.txt", True),
        ],
    )
    def test_is_interesting_path(self, web: Web, path: str, expected: bool) -> None:
        site = JarFileSite(WebURL("file:/lib.jar"), web)
        assert site.is_interesting_path(path) is expected

    def test_hidden_entries(self, web_config: WebConfig, tmp_path: Path) -> None:
        jar = _write_zip(
            tmp_path / "lib.jar",
            {
                "com/sun/X.class": b"",
                "org/Foo.class": b"",
                "org/Foo$1.class": b"",
                "org/Foo$Inner.class": b"",
                "META-INF/MANIFEST.MF": b"Manifest-Version: 1.0\n",
            },
        )
        site = Web(web_config).get_as_site(f"file:{jar}")

        assert isinstance(site, JarFileSite)
        assert site.get_root_directory().get_file_names() == ["META-INF", "org"]
        assert site.get_file("/org").get_file_names() == ["Foo.class", "Foo$Inner.class"]
        assert site.get_file("/org/Foo$1.class") is None

    def test_pack200_fails(self, web_config: WebConfig, tmp_path: Path) -> None:
        packed = tmp_path / "lib.jar.pack.gz"
        packed.write_bytes(b"\x1f\x8bnot a zip")
        site = Web(web_config).get_as_site(f"file:{packed}")

        assert isinstance(site, JarFileSite)
        with pytest.raises(ResponseException) as exc_info:
            site.get_file("/org/Foo.class")
        assert exc_info.value.code == 404
        assert isinstance(exc_info.value.__cause__, zipfile.BadZipFile)
