"""
Unit tests for core.web module.

Tests:
- Site identity per site address
- Credentials applied on creation
- Unsupported addresses (None vs SiteNotFoundError)
- Cache management (is_site_set, get_sites, clear_site)
- Construction from dict and YAML
- File lookup through the registry
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any

import pytest

from snapweb.core.configs import CredentialsConfig, WebConfig
from snapweb.core.exceptions import ConfigurationError, SiteNotFoundError
from snapweb.core.site import WebSite
from snapweb.core.web import Web
from snapweb.models.url import WebURL
from snapweb.sites.file_site import FileSite
from snapweb.sites.zip_site import ZipFileSite


# ============================================================================
# Site Cache Tests
# ============================================================================


class TestSiteCache:
    """Sites are created once per site address."""

    def test_same_address_same_site(self, web: Web) -> None:
        assert web.get_as_site("mem://a") is web.get_as_site("mem://a")

    def test_file_address_resolves_owning_site(self, web: Web) -> None:
        site = web.get_site("mem://a/docs/readme.txt")
        assert site is web.get_as_site("mem://a")

    def test_distinct_addresses_distinct_sites(self, web: Web) -> None:
        assert web.get_as_site("mem://a") is not web.get_as_site("mem://b")

    def test_is_site_set_and_get_sites(self, web: Web) -> None:
        assert web.is_site_set("mem://a") is False
        site = web.get_as_site("mem://a")
        assert web.is_site_set("mem://a") is True
        assert web.get_sites() == [site]

    def test_clear_site(self, web: Web) -> None:
        site = web.get_as_site("mem://a")
        assert web.clear_site("mem://a") is site
        assert web.is_site_set("mem://a") is False
        assert web.get_as_site("mem://a") is not site

    def test_clear_unknown_site(self, web: Web) -> None:
        assert web.clear_site("mem://never") is None

    def test_none_address_raises(self, web: Web) -> None:
        with pytest.raises(TypeError, match="address is required"):
            web.get_as_site(None)
        with pytest.raises(TypeError, match="address is required"):
            web.get_file(None)

    def test_concurrent_lookups_share_one_site(self, web_config: WebConfig) -> None:
        created: list[WebSite] = []

        def factory(url: WebURL, registry: Web) -> WebSite:
            site = FileSite(url, registry)
            created.append(site)
            return site

        web = Web(web_config, site_factory=factory)
        barrier = threading.Barrier(8)

        def lookup() -> WebSite | None:
            barrier.wait()
            return web.get_site("file:/tmp/x.txt")

        with ThreadPoolExecutor(max_workers=8) as pool:
            sites = list(pool.map(lambda _: lookup(), range(8)))

        assert len(created) == 1
        assert all(site is created[0] for site in sites)


class TestUnsupported:
    """Addresses no backend understands."""

    def test_get_site_returns_none(self, web: Web) -> None:
        assert web.get_site("gopher://example.com/x") is None
        assert web.is_site_set("gopher://example.com") is False

    def test_require_site_raises(self, web: Web) -> None:
        with pytest.raises(SiteNotFoundError, match="gopher"):
            web.require_site("gopher://example.com/x")

    def test_get_file_returns_none(self, web: Web) -> None:
        assert web.get_file("gopher://example.com/x") is None
        assert web.create_file("gopher://example.com/x", False) is None


class TestCredentials:
    """Configured credentials reach the site."""

    def test_credentials_applied(self, web_config: WebConfig, memory_site: Any) -> None:
        config = web_config.model_copy(
            update={
                "credentials": {
                    "mem://secure": CredentialsConfig(user_name="alice", password="pw"),
                }
            }
        )
        web = Web(config, site_factory=lambda url, w: type(memory_site)(url, w))

        site = web.get_as_site("mem://secure")
        other = web.get_as_site("mem://open")

        assert (site.user_name, site.password) == ("alice", "pw")
        assert other.user_name is None


# ============================================================================
# Construction Tests
# ============================================================================


class TestConstruction:
    """Registries built from dicts and YAML files."""

    def test_defaults(self) -> None:
        web = Web()
        assert web.config.http.timeout == 30.0
        assert web.get_sites() == []

    def test_from_dict(self, tmp_path: Path) -> None:
        web = Web.from_dict({"local": {"home_dir": str(tmp_path)}, "ftp": {"timeout": 5}})
        assert web.config.local.home_dir == tmp_path
        assert web.config.ftp.timeout == 5

    def test_from_dict_invalid(self) -> None:
        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            Web.from_dict({"http": {"timeout": -1}})

    def test_from_yaml(self, tmp_path: Path) -> None:
        config_file = tmp_path / "snapweb.yaml"
        config_file.write_text("logging:\n  level: debug\nmetrics:\n  enabled: true\n")

        web = Web.from_yaml(config_file)

        assert web.config.logging.level == "DEBUG"
        assert web.config.metrics.enabled is True

    def test_from_yaml_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            Web.from_yaml(tmp_path / "missing.yaml")


# ============================================================================
# Default Factory Tests
# ============================================================================


class TestDefaultFactory:
    """Without a custom factory the built-in backends are used."""

    def test_file_scheme(self, web_config: WebConfig) -> None:
        web = Web(web_config)
        assert isinstance(web.get_site("file:/tmp/x.txt"), FileSite)

    def test_zip_address(self, web_config: WebConfig) -> None:
        web = Web(web_config)
        site = web.get_site("file:/tmp/a.zip!/readme.txt")
        assert isinstance(site, ZipFileSite)
        assert site.url.string == "file:/tmp/a.zip"


# ============================================================================
# File Lookup Tests
# ============================================================================


class TestFileLookup:
    """get_file and create_file through the registry."""

    def test_get_file(self, web: Web, memory_site: Any) -> None:
        file = web.get_file("mem://test/docs/readme.txt")
        assert file is not None
        assert file.site is memory_site
        assert file.get_text() == "hello"

    def test_get_missing_file(self, web: Web, memory_site: Any) -> None:
        assert web.get_file("mem://test/nothing") is None

    def test_create_file_makes_no_backend_call(self, web: Web, memory_site: Any) -> None:
        file = web.create_file("mem://test/new.txt", False)
        assert file is not None
        assert file.exists is None
        assert memory_site.calls == []
