"""snapweb exception hierarchy.

Provides typed exceptions for the error categories that cross the public
API. Backend failures raised inside a site's ``*_impl`` methods are never
propagated directly: the ``handle_*`` request handlers capture them into a
[Response][snapweb.core.protocol.Response], and the file and data facades
resurrect them as [ResponseException][snapweb.core.exceptions.ResponseException]
chained to the original error.

Exception hierarchy:

```text
SnapWebError (base -- never raised directly)
├── ConfigurationError      -- config validation, missing keys, bad YAML
├── AccessDeniedError       -- backend refused the credentials (-> 401)
├── ResponseException       -- a facade call produced a failed Response
└── SiteNotFoundError       -- no backend understands an address
```

[MalformedURLError][snapweb.models.url.MalformedURLError] is defined next
to [WebURL][snapweb.models.url.WebURL] (the models layer never imports
core) and re-exported here.

See Also:
    [WebSite][snapweb.core.site.WebSite]: Converts backend exceptions into
        response codes at the ``handle_*`` boundary.
    [Web.require_site()][snapweb.core.web.Web.require_site]: Raises
        [SiteNotFoundError][snapweb.core.exceptions.SiteNotFoundError].
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from snapweb.models.url import MalformedURLError


if TYPE_CHECKING:
    from .protocol import Response


__all__ = [
    "AccessDeniedError",
    "ConfigurationError",
    "MalformedURLError",
    "ResponseException",
    "SiteNotFoundError",
    "SnapWebError",
]


class SnapWebError(Exception):
    """Base exception for all snapweb errors.

    Never raised directly -- always use a specific subclass.
    """


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ConfigurationError(SnapWebError):
    """Invalid or missing configuration (YAML, CLI flags)."""


# ---------------------------------------------------------------------------
# Backend access
# ---------------------------------------------------------------------------


class AccessDeniedError(SnapWebError):
    """A backend refused access to a resource.

    Raised by ``*_impl`` methods when credentials are missing or rejected.
    ``handle_head`` maps it (and ``PermissionError``) to
    ``401 Unauthorized``.
    """


class SiteNotFoundError(SnapWebError):
    """No backend understands the scheme or shape of an address."""

    def __init__(self, url: object) -> None:
        super().__init__(f"No site for {url}")
        self.url = url


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class ResponseException(SnapWebError):
    """A facade call received a response carrying an exception.

    The backend exception is available both as ``__cause__`` and through
    ``response.exception``.

    Attributes:
        response: The failed [Response][snapweb.core.protocol.Response].
    """

    def __init__(self, response: Response) -> None:
        super().__init__(str(response))
        self.response = response

    @property
    def code(self) -> int:
        """Numeric code of the failed response."""
        return int(self.response.code)
