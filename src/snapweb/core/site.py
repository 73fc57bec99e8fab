"""
Abstract base class for every storage backend.

A [WebSite][snapweb.core.site.WebSite] owns the files under one site
address. Callers talk to it in two ways:

* **Requests**: [get_response()][snapweb.core.site.WebSite.get_response]
  dispatches a [Request][snapweb.core.protocol.Request] to ``handle_head``,
  ``handle_get``, ``handle_put`` or ``handle_delete``. These handlers are
  the exception boundary: backend errors never escape them, they become
  response codes with the exception attached.
* **Facades**: ``get_file``, ``save_file``, ``delete_file``, ``get_row``,
  ``save_row`` and friends keep the identity caches consistent and raise
  [ResponseException][snapweb.core.exceptions.ResponseException] when the
  underlying response failed.

Subclasses implement the ``*_impl`` hooks against their storage. Write
support is declared with the ``supports_put`` and ``supports_delete``
class flags; sites without it answer ``405 Method Not Allowed``.

All cache-mutating operations run under the site's re-entrant lock.

See Also:
    [Web][snapweb.core.web.Web]: Registry that creates and caches sites.
    [snapweb.sites][snapweb.sites]: Concrete backends.
"""

from __future__ import annotations

import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any, ClassVar

from snapweb.data.condition import Operator
from snapweb.data.entity import Entity, Schema
from snapweb.data.query import Query
from snapweb.data.row import Row
from snapweb.data.table import DataTable
from snapweb.models.constants import LoadState, RequestType, ResponseCode
from snapweb.models.events import Observable, PropertyChangeEvent
from snapweb.models.paths import normalize_path
from snapweb.models.url import WebURL

from .exceptions import AccessDeniedError, ResponseException
from .file import WebFile
from .logger import Logger
from .metrics import record_request
from .protocol import Request, Response


if TYPE_CHECKING:
    from .configs import WebConfig
    from .web import Web


DeepListener = Callable[[PropertyChangeEvent], None]


class WebSite(ABC, Observable):
    """Base class for a storage backend addressed by a site URL.

    Attributes:
        url: The site address.
        web: The registry that created the site.
        user_name: Credential user name, applied by the registry.
        password: Credential password, applied by the registry.
        props: Free-form client properties.
        lock: Re-entrant lock guarding every cache of this site.
    """

    supports_put: ClassVar[bool] = True
    supports_delete: ClassVar[bool] = True

    REFRESH = "Refresh"

    def __init__(self, url: WebURL, web: Web) -> None:
        self.url = url
        self.web = web
        self.user_name: str | None = None
        self.password: str | None = None
        self.props: dict[str, Any] = {}
        self.lock = threading.RLock()
        self._files: dict[str, WebFile] = {}
        self._schema: Schema | None = None
        self._entities: dict[str, Entity] = {}
        self._data_tables: dict[str, DataTable] = {}
        self._sandbox: WebSite | None = None
        self._deep_listeners: list[DeepListener] = []
        self._logger = Logger(
            "site", json_output=web.config.logging.json_output
        ).bind(site=url.string)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.url.string})"

    # --- Descriptors ---

    @property
    def config(self) -> WebConfig:
        return self.web.config

    @property
    def scheme(self) -> str:
        return self.url.scheme

    @property
    def host_name(self) -> str | None:
        return self.url.host

    @property
    def path(self) -> str | None:
        """Path of the site address itself (``None`` for bare hosts)."""
        return self.url.path

    @property
    def name(self) -> str:
        """Short display name: last path segment, else host, else address."""
        return self.url.path_name or self.url.host or self.url.string

    # =======================================================================
    # Request handling
    # =======================================================================

    def get_response(self, request: Request) -> Response:
        """Dispatch *request* to the matching ``handle_*`` method."""
        handlers: dict[RequestType, Callable[[Request], Response]] = {
            RequestType.HEAD: self.handle_head,
            RequestType.GET: self.handle_get,
            RequestType.PUT: self.handle_put,
            RequestType.DELETE: self.handle_delete,
        }
        handler = handlers.get(request.type, self._handle_unsupported)
        start = time.perf_counter()
        response = handler(request)
        record_request(
            self.config.metrics,
            self.scheme,
            str(request.type),
            int(response.code),
            time.perf_counter() - start,
        )
        return response

    def _handle_unsupported(self, request: Request) -> Response:
        return Response(request).fail(
            ResponseCode.METHOD_NOT_ALLOWED,
            NotImplementedError(f"{type(self).__name__} does not support {request.type}"),
        )

    def handle_head(self, request: Request) -> Response:
        """Resolve the file at the request path.

        A cached file already confirmed to exist answers 200 without asking
        the backend. Otherwise ``get_file_impl`` decides: a file means 200,
        ``None`` means 404, an access error 401 and any other error 404
        with the exception attached.
        """
        response = Response(request)
        path = normalize_path(request.url.path)
        with self.lock:
            cached = self._files.get(path)
            if cached is not None and cached.exists:
                response.code = ResponseCode.OK
                response.file = cached
                return response
            try:
                file = self.get_file_impl(path)
            except (AccessDeniedError, PermissionError) as e:
                self._logger.warning("head_failed", path=path, code=401, error=str(e))
                return response.fail(ResponseCode.UNAUTHORIZED, e)
            except Exception as e:  # Intentionally broad: backend errors become responses
                self._logger.warning("head_failed", path=path, code=404, error=str(e))
                return response.fail(ResponseCode.NOT_FOUND, e)
            if file is None:
                response.code = ResponseCode.NOT_FOUND
                return response
            file.set_exists(True)
            response.code = ResponseCode.OK
            response.file = file
        return response

    def handle_get(self, request: Request) -> Response:
        """Resolve the file, then fetch its bytes or its children."""
        with self.lock:
            response = self.handle_head(request)
            file = response.file
            if file is None:
                return response
            try:
                if file.is_dir:
                    self._load_files(file, response)
                else:
                    self._load_bytes(file, response)
            except Exception as e:  # Intentionally broad: backend errors become responses
                self._logger.warning("get_failed", path=file.path, error=str(e))
                return self._fail_backend(response, e)
        return response

    def _load_bytes(self, file: WebFile, response: Response) -> None:
        data = self.get_file_bytes_impl(file)
        file._install_bytes(data)
        response.bytes = data

    def _load_files(self, file: WebFile, response: Response) -> None:
        files = self.get_files_impl(file) or []
        for child in files:
            child.set_exists(True)
        file._install_files(files)
        response.files = list(file._files or [])

    def handle_put(self, request: Request) -> Response:
        """Persist the cached file at the request path through the backend."""
        response = Response(request)
        if not self.supports_put:
            return self._handle_unsupported(request)
        path = normalize_path(request.url.path)
        with self.lock:
            file = self._files.get(path)
            if file is None:
                return response.fail(
                    ResponseCode.NOT_FOUND, FileNotFoundError(f"No file object for {path}")
                )
            try:
                self.save_file_impl(file)
            except Exception as e:  # Intentionally broad: backend errors become responses
                self._logger.warning("put_failed", path=path, error=str(e))
                return self._fail_backend(response, e)
            response.code = ResponseCode.OK
            response.file = file
        return response

    def handle_delete(self, request: Request) -> Response:
        """Remove the cached file at the request path from the backend."""
        response = Response(request)
        if not self.supports_delete:
            return self._handle_unsupported(request)
        path = normalize_path(request.url.path)
        with self.lock:
            file = self._files.get(path)
            if file is None:
                return response.fail(
                    ResponseCode.NOT_FOUND, FileNotFoundError(f"No file object for {path}")
                )
            try:
                self.delete_file_impl(file)
            except Exception as e:  # Intentionally broad: backend errors become responses
                self._logger.warning("delete_failed", path=path, error=str(e))
                return self._fail_backend(response, e)
            response.code = ResponseCode.OK
            response.file = file
        return response

    @staticmethod
    def _fail_backend(response: Response, error: Exception) -> Response:
        if isinstance(error, AccessDeniedError | PermissionError):
            return response.fail(ResponseCode.UNAUTHORIZED, error)
        return response.fail(ResponseCode.EXCEPTION_THROWN, error)

    # =======================================================================
    # Backend hooks
    # =======================================================================

    @abstractmethod
    def get_file_impl(self, path: str) -> WebFile | None:
        """Return the file at *path* with its metadata, or ``None`` if absent.

        Implementations obtain the instance through ``create_file`` so the
        identity cache is honoured.
        """

    @abstractmethod
    def get_files_impl(self, file: WebFile) -> list[WebFile]:
        """Return the children of directory *file*."""

    @abstractmethod
    def get_file_bytes_impl(self, file: WebFile) -> bytes:
        """Return the contents of plain file *file*."""

    def save_file_impl(self, file: WebFile) -> None:
        raise NotImplementedError(f"{type(self).__name__} cannot save files")

    def delete_file_impl(self, file: WebFile) -> None:
        raise NotImplementedError(f"{type(self).__name__} cannot delete files")

    def get_modified_time_impl(self, file: WebFile) -> int:
        """Return the backend's current modification time for *file*."""
        return file.modified_time

    def set_modified_time_impl(self, file: WebFile, modified_time: int) -> None:  # noqa: ARG002
        """Push *modified_time* to the backend (no-op by default)."""

    def get_standard_file(self, file: WebFile) -> Path | None:  # noqa: ARG002
        """Return the local filesystem path backing *file*, if any."""
        return None

    # =======================================================================
    # File facade
    # =======================================================================

    def get_url(self, path: str) -> WebURL:
        """Return the address of *path* in this site (full addresses pass through)."""
        if ":" in path and not path.startswith("/"):
            return WebURL(path)
        return self.url.site_child(path)

    def create_file(self, path: str, is_dir: bool) -> WebFile:
        """Return the unique file object for *path*, creating it if needed.

        No backend call is made; the file's existence stays unknown until
        a request confirms it.
        """
        path = normalize_path(path)
        with self.lock:
            file = self._files.get(path)
            if file is None:
                file = self.create_file_impl(path, is_dir)
                file.add_listener(self._forward_file_change)
                self._files[path] = file
            return file

    def create_file_impl(self, path: str, is_dir: bool) -> WebFile:
        return WebFile(self, path, is_dir)

    def get_file(self, path: str) -> WebFile | None:
        """Return the existing file at *path*, or ``None``.

        Raises:
            ResponseException: If the backend failed while resolving it.
        """
        response = self.get_response(Request(self.get_url(path), RequestType.HEAD))
        response.raise_for_exception()
        return response.file

    def get_file_bytes(self, file: WebFile) -> bytes | None:
        response = self.get_response(Request(file.url, RequestType.GET))
        response.raise_for_exception()
        return response.bytes

    def get_files(self, file: WebFile) -> list[WebFile] | None:
        response = self.get_response(Request(file.url, RequestType.GET))
        response.raise_for_exception()
        return response.files

    def get_root_directory(self) -> WebFile:
        return self.get_file("/") or self.create_file("/", True)

    @property
    def exists(self) -> bool:
        return self.get_root_directory().confirm_exists()

    def save_file(self, file: WebFile) -> None:
        """Persist *file*, creating missing ancestors first.

        Raises:
            ResponseException: If the backend rejected the write.
        """
        with self.lock:
            updater = file.updater
            if updater is not None:
                file.set_updater(None)
                updater(file)

            parent = file.get_parent()
            if parent is not None and not parent.confirm_exists():
                parent.save()

            existed = bool(file.exists)
            response = self.get_response(Request(file.url, RequestType.PUT))
            response.raise_for_exception()

            if parent is not None and not existed:
                parent.add_file(file)
                parent.save()
            file.set_exists(True)
        self._logger.debug("file_saved", path=file.path)

    def delete_file(self, file: WebFile) -> None:
        """Remove *file* (and a directory's children) from the backend.

        Raises:
            ResponseException: If the file does not exist or the backend
                rejected the deletion.
        """
        with self.lock:
            if not file.confirm_exists():
                response = Response(Request(file.url, RequestType.DELETE)).fail(
                    ResponseCode.NOT_FOUND, FileNotFoundError(f"File not found: {file.path}")
                )
                raise ResponseException(response) from response.exception

            if file.is_dir:
                children = file.get_files()
                # Children must not re-save a directory that is being removed
                file._exists = False
                try:
                    for child in children:
                        child.delete()
                finally:
                    file._exists = True

            response = self.get_response(Request(file.url, RequestType.DELETE))
            response.raise_for_exception()

            if not file.is_root:
                parent = file.get_parent()
                if parent is not None:
                    parent.remove_file(file)
                    if parent.exists:
                        parent.save()

            file._reset_payload(LoadState.UNLOADED)
            file.set_modified_time(0)
            file.set_exists(False)
        self._logger.debug("file_deleted", path=file.path)

    def refresh_file(self, file: WebFile) -> None:
        """Drop *file*'s payload if the backend reports a newer modification time."""
        with self.lock:
            if not file.exists:
                return
            modified_time = self.get_modified_time_impl(file)
            if modified_time == file.modified_time:
                return
            file._reset_payload(LoadState.STALE)
            file.set_modified_time(modified_time)

    def set_modified_time(self, file: WebFile, modified_time: int) -> None:
        with self.lock:
            self.set_modified_time_impl(file, modified_time)
            file.set_modified_time(modified_time)

    def refresh(self) -> None:
        """Forget every cached file, entity and table so they are fetched again."""
        with self.lock:
            for file in self._files.values():
                file._reset_payload(LoadState.STALE)
            self._files.clear()
            self._schema = None
            self._entities.clear()
            self._data_tables.clear()
        self._logger.info("site_refreshed")
        self.fire_property_change(self.REFRESH, False, True)

    # =======================================================================
    # Site lifecycle
    # =======================================================================

    def create_site(self) -> None:
        """Create the backing storage by saving the root directory."""
        self.create_file("/", True).save()

    def delete_site(self) -> None:
        """Delete every file of the site and its sandbox."""
        root = self.get_file("/")
        if root is not None:
            for child in root.get_files():
                child.delete()
            if self.supports_delete:
                root.delete()
        sandbox = self._sandbox
        if sandbox is not None and sandbox is not self and sandbox.exists:
            sandbox.delete_site()

    def flush(self) -> None:
        """Write pending buffered changes to the backend (no-op by default)."""

    # =======================================================================
    # Sandbox
    # =======================================================================

    def sandbox_url_string(self) -> str:
        """Return the ``local:`` address of this site's private sandbox.

        Examples:
            ```python
            site.url.string              # 'http://example.com/app/bin'
            site.sandbox_url_string()    # 'local:/Sandboxes/http_example_com_app'
            ```
        """
        name = ""
        if self.scheme != "local":
            name += self.scheme + "/"
        if self.url.host:
            name += self.url.host + "/"
        path = self.url.path or ""
        if len(path) > 1:
            name += path[1:]
        if name.endswith("/bin"):
            name = name[: -len("/bin")]
        elif name.endswith("/"):
            name = name[:-1]
        name = name.replace(".", "_").replace("/", "_")
        return f"local:/Sandboxes/{name}"

    def get_sandbox(self) -> WebSite:
        with self.lock:
            if self._sandbox is None:
                sandbox = self.web.get_as_site(WebURL(self.sandbox_url_string()))
                if sandbox is None:
                    raise RuntimeError(f"No sandbox site for {self.url}")
                self._sandbox = sandbox
            return self._sandbox

    def set_sandbox(self, site: WebSite | None) -> None:
        self._sandbox = site

    # =======================================================================
    # Events
    # =======================================================================

    def add_deep_listener(self, listener: DeepListener) -> None:
        """Receive property changes of every file in this site."""
        if listener not in self._deep_listeners:
            self._deep_listeners.append(listener)

    def remove_deep_listener(self, listener: DeepListener) -> None:
        if listener in self._deep_listeners:
            self._deep_listeners.remove(listener)

    def _forward_file_change(self, event: PropertyChangeEvent) -> None:
        for listener in list(self._deep_listeners):
            listener(event)

    # =======================================================================
    # Data facade
    # =======================================================================

    def get_schema(self) -> Schema:
        with self.lock:
            if self._schema is None:
                self._schema = Schema(self.name, self)
            return self._schema

    def create_entity(self, name: str) -> Entity:
        """Return the cached entity called *name*, creating an empty one if needed."""
        with self.lock:
            entity = self._entities.get(name)
            if entity is None:
                entity = Entity(name)
                entity.schema = self.get_schema()
                self._entities[name] = entity
            return entity

    def get_entity(self, name: str) -> Entity | None:
        """Return the stored entity called *name*, loading it if needed."""
        with self.lock:
            entity = self._entities.get(name)
            if entity is not None and entity.exists:
                return entity
            entity = self.get_entity_impl(name)
            if entity is not None:
                entity.exists = True
                self.get_schema().add_entity(entity)
            return entity

    def get_entity_impl(self, name: str) -> Entity | None:
        """Read ``/<name>.table`` from the site."""
        file = self.get_file(f"/{name}.table")
        if file is None:
            return None
        data = file.get_bytes()
        if data is None:
            return None
        entity = self.create_entity(file.simple_name)
        entity.load_bytes(data)
        entity.source_file = file
        return entity

    def save_entity(self, entity: Entity) -> None:
        with self.lock:
            self._entities[entity.name] = entity
            self.save_entity_impl(entity)
            entity.exists = True
            self.get_schema().add_entity(entity)

    def save_entity_impl(self, entity: Entity) -> None:
        """Write the entity description to ``/<name>.table``."""
        file = entity.source_file or self.create_file(f"/{entity.name}.table", False)
        file.set_bytes(entity.to_bytes())
        file.save()
        entity.source_file = file

    def delete_entity(self, entity: Entity) -> None:
        with self.lock:
            self.delete_entity_impl(entity)
            entity.exists = False
            self.get_schema().remove_entity(entity)
            self._entities.pop(entity.name, None)
            self._data_tables.pop(entity.name, None)

    def delete_entity_impl(self, entity: Entity) -> None:
        file = entity.source_file or self.get_file(f"/{entity.name}.table")
        if file is not None and file.exists:
            file.delete()
        entity.source_file = None

    def get_data_tables(self) -> list[DataTable]:
        with self.lock:
            return list(self._data_tables.values())

    def get_data_table(self, name: str) -> DataTable | None:
        """Return the table of entity *name*, or ``None`` if the entity is unknown."""
        with self.lock:
            table = self._data_tables.get(name)
            if table is None:
                entity = self.get_entity(name)
                if entity is None:
                    return None
                table = DataTable(self, entity)
                self._data_tables[name] = table
            return table

    def create_row(
        self,
        entity: Entity,
        primary_value: Any = None,
        values: dict[str, Any] | None = None,
    ) -> Row:
        """Return the row of *entity* with *primary_value*, creating it if needed.

        A cached row is returned unchanged; *values* only seed a new row.
        """
        with self.lock:
            table = self.get_data_table(entity.name) if primary_value is not None else None
            row = table.get_local_row(primary_value) if table is not None else None
            if row is not None:
                return row
            row = Row(self, entity)
            if primary_value is not None and entity.primary is not None:
                row.put(entity.primary.name, primary_value)
                if table is not None:
                    table.add_local_row(row)
            if values:
                row.init_values(values)
            return row

    def get_row(self, entity: Entity, primary_value: Any) -> Row | None:
        """Return the stored row of *entity* with *primary_value*, or ``None``."""
        if primary_value is None:
            raise ValueError("get_row requires a primary value")
        with self.lock:
            table = self.get_data_table(entity.name)
            row = table.get_local_row(primary_value) if table is not None else None
            if row is not None and row.exists:
                return row
            row = self.get_row_impl(entity, primary_value)
            if row is not None and not row.exists:
                row.exists = True
                row.modified = False
            return row

    def get_row_impl(self, entity: Entity, primary_value: Any) -> Row | None:
        if entity.primary is None:
            return None
        query = Query(entity).add_condition(entity.primary.name, Operator.EQUALS, primary_value)
        return self.get_row_for_query(query)

    def get_row_for_query(self, query: Query) -> Row | None:
        rows = self.get_rows(query)
        return rows[0] if rows else None

    def get_rows(self, query: Query) -> list[Row]:
        """Return the stored rows matching *query* (empty for unknown entities)."""
        with self.lock:
            entity = self.get_entity(query.entity_name)
            if entity is None:
                return []
            rows = self.get_rows_impl(entity, query) or []
            for row in rows:
                if not row.exists:
                    row.exists = True
                    row.modified = False
            return rows

    def save_row(self, row: Row) -> None:
        """Persist *row* and any new rows it references.

        A new row that references other new rows is written first, so
        their own saves see it as existing. This keeps mutually
        referencing rows from recursing forever.
        """
        with self.lock:
            existed = row.exists
            if existed and not row.modified:
                return

            unresolved = row.get_unresolved_relation_rows()
            if unresolved:
                if not existed:
                    self.save_row_impl(row)
                    row.exists = True
                for other in unresolved:
                    other.save()

            self.save_row_impl(row)
            row.exists = True
            row.modified = False
            if not existed:
                table = self.get_data_table(row.entity.name)
                if table is not None:
                    table.add_local_row(row)
        self._logger.debug("row_saved", entity=row.entity.name, primary=row.primary_value)

    def delete_row(self, row: Row) -> None:
        with self.lock:
            self.delete_row_impl(row)
            row.exists = False
            table = self.get_data_table(row.entity.name)
            if table is not None:
                table.remove_local_row(row)

    def get_rows_impl(self, entity: Entity, query: Query) -> list[Row]:
        raise NotImplementedError(f"{type(self).__name__} does not store rows")

    def save_row_impl(self, row: Row) -> None:
        raise NotImplementedError(f"{type(self).__name__} does not store rows")

    def delete_row_impl(self, row: Row) -> None:
        raise NotImplementedError(f"{type(self).__name__} does not store rows")
