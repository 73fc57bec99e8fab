"""Sites, files, the registry and the ambient infrastructure they share.

The core layer sits above [snapweb.models][snapweb.models] and
[snapweb.data][snapweb.data]. It defines the abstract
[WebSite][snapweb.core.site.WebSite] contract that every backend in
[snapweb.sites][snapweb.sites] implements.

Attributes:
    Web: Registry creating at most one site per site address.
    WebSite: Abstract backend with request handlers and file/data facades.
    WebFile: File or directory with lazily loaded payload.
    Request: Immutable address and verb.
    Response: Outcome of a request (code, file, payload, exception).
    WebConfig: Pydantic configuration of a registry.
    Logger: Structured key=value or JSON logger.
    MetricsConfig: Prometheus request metrics settings.
"""

from .configs import (
    CredentialsConfig,
    FtpConfig,
    HttpConfig,
    LocalConfig,
    LoggingConfig,
    SandboxConfig,
    WebConfig,
)
from .exceptions import (
    AccessDeniedError,
    ConfigurationError,
    MalformedURLError,
    ResponseException,
    SiteNotFoundError,
    SnapWebError,
)
from .file import WebFile
from .logger import Logger, StructuredFormatter, format_kv_pairs
from .metrics import (
    REQUEST_DURATION_SECONDS,
    REQUESTS_TOTAL,
    MetricsConfig,
    record_request,
)
from .protocol import Request, Response
from .site import WebSite
from .web import Web
from .yaml import load_yaml


__all__ = [
    "REQUESTS_TOTAL",
    "REQUEST_DURATION_SECONDS",
    "AccessDeniedError",
    "ConfigurationError",
    "CredentialsConfig",
    "FtpConfig",
    "HttpConfig",
    "LocalConfig",
    "Logger",
    "LoggingConfig",
    "MalformedURLError",
    "MetricsConfig",
    "Request",
    "Response",
    "ResponseException",
    "SandboxConfig",
    "SiteNotFoundError",
    "SnapWebError",
    "StructuredFormatter",
    "Web",
    "WebConfig",
    "WebFile",
    "WebSite",
    "format_kv_pairs",
    "load_yaml",
    "record_request",
]
