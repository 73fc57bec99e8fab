"""
Unit tests for sites.dir_site module.

Tests:
- Lookup, listing and contents forwarded to the owning site
- Writes and deletes passed through to the owning site
- Directories inside archives
"""

import zipfile
from pathlib import Path

import pytest

from snapweb.core.configs import WebConfig
from snapweb.core.web import Web
from snapweb.sites.dir_site import DirSite


@pytest.fixture
def root(tmp_path: Path) -> Path:
    root = tmp_path / "root"
    (root / "docs" / "sub").mkdir(parents=True)
    (root / "docs" / "readme.txt").write_text("hello")
    (root / "docs" / "sub" / "deep.txt").write_text("deep")
    return root


@pytest.fixture
def dir_site(web_config: WebConfig, root: Path) -> DirSite:
    site = Web(web_config).get_as_site(f"file:{root}!/docs")
    assert isinstance(site, DirSite)
    return site


class TestDirSite:
    """A directory of another site exposed as a site."""

    def test_directory(self, dir_site: DirSite) -> None:
        directory = dir_site.directory
        assert directory.path == "/docs"
        assert directory.is_dir is True
        assert directory.site is not dir_site

    def test_get_file(self, dir_site: DirSite) -> None:
        readme = dir_site.get_file("/readme.txt")
        assert readme is not None
        assert readme.site is dir_site
        assert readme.size == 5
        assert readme.get_text() == "hello"

    def test_missing_file(self, dir_site: DirSite) -> None:
        assert dir_site.get_file("/nope.txt") is None

    def test_listing(self, dir_site: DirSite) -> None:
        assert dir_site.get_root_directory().get_file_names() == ["readme.txt", "sub"]
        assert dir_site.get_file("/sub").get_file_names() == ["deep.txt"]

    def test_standard_file(self, dir_site: DirSite, root: Path) -> None:
        readme = dir_site.get_file("/readme.txt")
        assert readme.standard_file == root / "docs" / "readme.txt"

    def test_save_writes_through(self, dir_site: DirSite, root: Path) -> None:
        file = dir_site.create_file("/sub/new.txt", False)
        file.set_text("fresh")

        file.save()

        assert (root / "docs" / "sub" / "new.txt").read_text() == "fresh"
        assert dir_site.get_file("/sub").get_file_names() == ["deep.txt", "new.txt"]

    def test_delete_writes_through(self, dir_site: DirSite, root: Path) -> None:
        dir_site.get_file("/readme.txt").delete()
        assert not (root / "docs" / "readme.txt").exists()

    def test_directory_in_archive(self, web_config: WebConfig, tmp_path: Path) -> None:
        archive = tmp_path / "a.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr("docs/a.txt", b"alpha")
            zf.writestr("docs/b.txt", b"beta")

        site = Web(web_config).get_as_site(f"file:{archive}!/docs")

        assert isinstance(site, DirSite)
        assert site.get_root_directory().get_file_names() == ["a.txt", "b.txt"]
        assert site.get_file("/b.txt").get_text() == "beta"
