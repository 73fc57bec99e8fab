"""
Registry of sites keyed by site address.

[Web][snapweb.core.web.Web] is the entry point of the library: it turns
addresses into [WebSite][snapweb.core.site.WebSite] instances (at most one
per distinct site address) and resolves files through them. There is no
process-wide instance; applications create a registry, usually from a
YAML file, and pass it where it is needed.

Examples:
    ```python
    web = Web.from_yaml("snapweb.yaml")
    readme = web.get_file("file:/tmp/docs.zip!/readme.txt")
    print(readme.get_text())
    ```
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from snapweb.models.url import WebURL, get_url

from .configs import WebConfig
from .exceptions import ConfigurationError, SiteNotFoundError
from .logger import Logger
from .yaml import load_yaml


if TYPE_CHECKING:
    from .file import WebFile
    from .site import WebSite


SiteFactory = Callable[[WebURL, "Web"], "WebSite | None"]


def _require_url(obj: Any) -> WebURL:
    url = get_url(obj)
    if url is None:
        raise TypeError("An address is required, got None")
    return url


class Web:
    """Creates, caches and looks up sites.

    Args:
        config: Registry configuration; defaults apply when omitted.
        site_factory: Callable choosing and building the backend for a site
            address. Defaults to [create_site()][snapweb.sites.create_site].
    """

    def __init__(
        self,
        config: WebConfig | None = None,
        site_factory: SiteFactory | None = None,
    ) -> None:
        if site_factory is None:
            # Deferred: the backends package builds on core
            from snapweb.sites import create_site  # noqa: PLC0415

            site_factory = create_site
        self._config = config or WebConfig()
        self._site_factory = site_factory
        self._sites: dict[WebURL, WebSite] = {}
        self._lock = threading.RLock()
        self._logger = Logger("web", json_output=self._config.logging.json_output)

    @classmethod
    def from_yaml(cls, config_path: str | Path, **kwargs: Any) -> Web:
        """Create a registry from a YAML configuration file.

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigurationError: If the file is malformed or fails validation.
        """
        return cls.from_dict(load_yaml(config_path), **kwargs)

    @classmethod
    def from_dict(cls, data: dict[str, Any], **kwargs: Any) -> Web:
        """Create a registry from a configuration dictionary.

        Raises:
            ConfigurationError: If *data* fails validation.
        """
        try:
            config = WebConfig(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e
        return cls(config=config, **kwargs)

    @property
    def config(self) -> WebConfig:
        return self._config

    # --- Sites ---

    def get_as_site(self, site_url: WebURL | str) -> WebSite | None:
        """Return the site at *site_url* itself, creating it on first use.

        Returns:
            The site, or ``None`` when no backend understands the address.
        """
        url = _require_url(site_url)
        site = self._sites.get(url)
        if site is not None:
            return site
        with self._lock:
            site = self._sites.get(url)
            if site is None:
                site = self._site_factory(url, self)
                if site is None:
                    self._logger.debug("site_unsupported", url=url.string)
                    return None
                credentials = self._config.credentials.get(url.string)
                if credentials is not None:
                    site.user_name = credentials.user_name
                    site.password = credentials.password
                self._sites[url] = site
                self._logger.info("site_created", url=url.string, backend=type(site).__name__)
            return site

    def get_site(self, url: WebURL | str) -> WebSite | None:
        """Return the site that owns *url*'s path."""
        resolved = _require_url(url)
        return self.get_as_site(resolved.site_url)

    def require_site(self, url: WebURL | str) -> WebSite:
        """Like ``get_site`` but raising for unsupported addresses.

        Raises:
            SiteNotFoundError: If no backend understands *url*.
        """
        site = self.get_site(url)
        if site is None:
            raise SiteNotFoundError(url)
        return site

    def is_site_set(self, site_url: WebURL | str) -> bool:
        url = get_url(site_url)
        return url in self._sites

    def get_sites(self) -> list[WebSite]:
        with self._lock:
            return list(self._sites.values())

    def clear_site(self, site_url: WebURL | str) -> WebSite | None:
        """Forget the cached site at *site_url*."""
        url = get_url(site_url)
        with self._lock:
            return self._sites.pop(url, None)  # type: ignore[arg-type]

    # --- Files ---

    def get_file(self, url: WebURL | str) -> WebFile | None:
        """Return the existing file at *url*, or ``None``.

        Raises:
            ResponseException: If the backend failed while resolving it.
        """
        resolved = _require_url(url)
        site = self.get_site(resolved)
        if site is None:
            return None
        return site.get_file(resolved.path or "/")

    def create_file(self, url: WebURL | str, is_dir: bool) -> WebFile | None:
        """Return the file object at *url* without checking that it exists."""
        resolved = _require_url(url)
        site = self.get_site(resolved)
        if site is None:
            return None
        return site.create_file(resolved.path or "/", is_dir)
