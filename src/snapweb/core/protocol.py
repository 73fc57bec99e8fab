"""
Request and response values exchanged between callers and sites.

A [Request][snapweb.core.protocol.Request] is an immutable pair of address
and verb. A [Response][snapweb.core.protocol.Response] is filled in by a
site's ``handle_*`` method: a code, the resolved file, the payload and,
on failure, the exception raised by the backend.

Invariant: a response carrying an exception never reports success. Setting
an exception while the code is ``UNKNOWN`` or 2xx turns the code into
``420 Exception Thrown``.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from snapweb.models.constants import DataType, RequestType, ResponseCode
from snapweb.models.url import WebURL

from .exceptions import ResponseException


if TYPE_CHECKING:
    from .file import WebFile


@dataclass(frozen=True, slots=True)
class Request:
    """An address and the verb to apply to it."""

    url: WebURL
    type: RequestType = RequestType.GET

    def __str__(self) -> str:
        return f"{self.type} {self.url}"


class Response:
    """Outcome of one [Request][snapweb.core.protocol.Request].

    ``bytes``, ``text`` and ``file`` are cross-derived: bytes default to the
    file's loaded payload, text is the UTF-8 decoding of the bytes.

    Attributes:
        request: The request being answered.
        code: Numeric outcome, ``UNKNOWN`` until a handler sets it.
        time: Creation time in milliseconds since the epoch.
        file: The resolved file, if any.
        files: Directory children returned by GET, if any.
    """

    def __init__(self, request: Request) -> None:
        self.request = request
        self.code: ResponseCode = ResponseCode.UNKNOWN
        self.time = int(time.time() * 1000)
        self.file: WebFile | None = None
        self.files: list[WebFile] | None = None
        self._bytes: bytes | None = None
        self._text: str | None = None
        self._exception: BaseException | None = None

    def __repr__(self) -> str:
        return f"Response({self.request.type} {self.url} -> {int(self.code)} {self.code_string})"

    def __str__(self) -> str:
        text = f"Response {int(self.code)} {self.code_string} {self.url}"
        if self._exception is not None:
            text += f": {self._exception}"
        return text

    @property
    def url(self) -> WebURL:
        return self.request.url

    @property
    def code_string(self) -> str:
        return self.code.text

    @property
    def data_type(self) -> DataType:
        """Content classification of the requested path."""
        if self.file is not None:
            return self.file.data_type
        return DataType.from_path(self.url.path)

    # --- Payload ---

    @property
    def bytes(self) -> bytes | None:
        if self._bytes is None:
            if self.file is not None and self.file.is_bytes_set:
                return self.file.bytes
            if self._text is not None:
                return self._text.encode("utf-8")
        return self._bytes

    @bytes.setter
    def bytes(self, value: bytes | None) -> None:
        self._bytes = value
        self._text = None

    @property
    def text(self) -> str | None:
        if self._text is None:
            data = self.bytes
            return data.decode("utf-8", errors="replace") if data is not None else None
        return self._text

    @text.setter
    def text(self, value: str | None) -> None:
        self._text = value
        self._bytes = None

    # --- Failure ---

    @property
    def exception(self) -> BaseException | None:
        return self._exception

    @exception.setter
    def exception(self, value: BaseException | None) -> None:
        self._exception = value
        if value is not None and (self.code is ResponseCode.UNKNOWN or self.code.is_success):
            self.code = ResponseCode.EXCEPTION_THROWN

    def fail(self, code: ResponseCode, exception: BaseException | None = None) -> Response:
        """Set *code* and attach *exception* in one step."""
        self.code = code
        if exception is not None:
            self.exception = exception
        return self

    def raise_for_exception(self) -> None:
        """Raise [ResponseException][snapweb.core.exceptions.ResponseException] if failed.

        Raises:
            ResponseException: If an exception is attached, chained to it.
        """
        if self._exception is not None:
            raise ResponseException(self) from self._exception
