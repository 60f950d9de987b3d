"""
Request bodies.

Three variants, tagged by BodyKind: generic content (type sniffed from the
bytes unless given), URL-encoded forms, and multipart form data. Each one
exposes ``content_type``, ``reader()`` and ``length()``.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

import io
import logging
import os
import secrets
import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, BinaryIO, Iterable
from urllib.parse import urlencode

from ghostman.errors import (
    AttachmentError,
    BuilderClosedError,
    InvalidBodyError,
    NoContentError,
)
from ghostman.http import sniff
from ghostman.shared import read_all

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
MULTIPART_CONTENT_TYPE = "multipart/form-data"


class BodyKind(str, Enum):
    """Body variant tag, as spelled in JSON request files."""

    CONTENT = "content"
    FORM = "form"
    MULTIPART = "multipart"


def read_file(path: str | os.PathLike) -> bytes:
    """Read an attachment completely."""
    try:
        with open(path, "rb") as f:
            return read_all(f)
    except OSError as e:
        raise AttachmentError(str(path), e) from e


# =============================================================================
# Generic content
# =============================================================================

@dataclass(frozen=True)
class GenericBody:
    """Raw payload with an explicit or sniffed content type."""

    content: bytes
    content_type: str = ""
    kind: BodyKind = field(default=BodyKind.CONTENT, init=False)

    def __post_init__(self) -> None:
        if not self.content_type:
            object.__setattr__(self, "content_type", sniff.detect(self.content))

    @classmethod
    def from_text(cls, text: str, content_type: str = "") -> "GenericBody":
        return cls(text.encode("utf-8"), content_type)

    @classmethod
    def from_file(cls, path: str | os.PathLike, content_type: str = "") -> "GenericBody":
        return cls(read_file(path), content_type)

    @classmethod
    def from_stream(cls, stream: BinaryIO, content_type: str = "") -> "GenericBody":
        return cls(read_all(stream), content_type)

    def reader(self) -> io.BytesIO:
        return io.BytesIO(self.content)

    def length(self) -> int:
        return len(self.content)


def make_generic(
    text: str | None = None,
    file: str | os.PathLike | None = None,
    content_type: str = "",
) -> GenericBody:
    """Generic body from a file path or inline text; the file wins."""
    if file is not None:
        return GenericBody.from_file(file, content_type)
    if text is not None:
        return GenericBody.from_text(text, content_type)
    raise NoContentError()


# =============================================================================
# URL-encoded form
# =============================================================================

@dataclass(frozen=True)
class FormBody:
    """URL-encoded form. Field order and repeated values are preserved.

    An empty form is a valid, zero-length body that still carries its
    content type.
    """

    fields: tuple[tuple[str, tuple[str, ...]], ...] = ()
    kind: BodyKind = field(default=BodyKind.FORM, init=False)

    @classmethod
    def from_mapping(cls, data: dict[str, Iterable[str]]) -> "FormBody":
        return cls(tuple((key, tuple(values)) for key, values in data.items()))

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[str, str]]) -> "FormBody":
        merged: dict[str, list[str]] = {}
        for key, value in pairs:
            merged.setdefault(key, []).append(value)
        return cls.from_mapping(merged)

    @property
    def content_type(self) -> str:
        return FORM_CONTENT_TYPE

    def to_dict(self) -> dict[str, list[str]]:
        return {key: list(values) for key, values in self.fields}

    def encode(self) -> bytes:
        pairs = [(key, value) for key, values in self.fields for value in values]
        return urlencode(pairs).encode("ascii")

    def reader(self) -> io.BytesIO:
        # Encoding is pure, so it is redone on every call
        return io.BytesIO(self.encode())

    def length(self) -> int:
        return len(self.encode())


# =============================================================================
# Multipart
# =============================================================================

def _escape_quotes(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def new_boundary() -> str:
    """Random 60-character boundary, unique per builder."""
    return secrets.token_hex(30)


class MultipartBuilder:
    """Accumulates text fields and file parts into one multipart payload.

    Open until build() is called; after that every write, and a second
    build(), raises BuilderClosedError. The lock only makes accidental
    concurrent use fail cleanly; fields are meant to be added from one
    thread, in order.
    """

    def __init__(self, boundary: str | None = None):
        self._boundary = boundary or new_boundary()
        self._buf = io.BytesIO()
        self._lock = threading.Lock()
        self._closed = False
        self._parts = 0

    @property
    def boundary(self) -> str:
        return self._boundary

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def content_type(self) -> str:
        return f"{MULTIPART_CONTENT_TYPE}; boundary={self._boundary}"

    def __len__(self) -> int:
        return self._parts

    def _write_part(self, headers: list[tuple[str, str]], content: bytes) -> None:
        with self._lock:
            if self._closed:
                raise BuilderClosedError()
            if self._parts:
                self._buf.write(b"\r\n")
            self._buf.write(f"--{self._boundary}\r\n".encode("ascii"))
            for name, value in headers:
                self._buf.write(f"{name}: {value}\r\n".encode("utf-8"))
            self._buf.write(b"\r\n")
            self._buf.write(content)
            self._parts += 1

    def add_text_field(self, name: str, value: str) -> None:
        disposition = f'form-data; name="{_escape_quotes(name)}"'
        self._write_part([("Content-Disposition", disposition)], value.encode("utf-8"))

    def add_file(self, name: str, filename: str, content: bytes) -> None:
        disposition = (
            f'form-data; name="{_escape_quotes(name)}"; '
            f'filename="{_escape_quotes(filename)}"'
        )
        self._write_part(
            [("Content-Disposition", disposition), ("Content-Type", sniff.detect(content))],
            content,
        )

    def add_file_from_stream(self, name: str, filename: str, stream: BinaryIO) -> None:
        """Drain ``stream`` fully, then write the part. The stream stays open."""
        if self._closed:
            raise BuilderClosedError()
        self.add_file(name, filename, read_all(stream))

    def build(self) -> bytes:
        """Write the closing boundary and return the finished payload."""
        with self._lock:
            if self._closed:
                raise BuilderClosedError()
            if self._parts:
                self._buf.write(b"\r\n")
            self._buf.write(f"--{self._boundary}--\r\n".encode("ascii"))
            self._closed = True
            payload = self._buf.getvalue()
        logger.debug(f"Built multipart payload: {self._parts} part(s), {len(payload)} bytes")
        return payload


class MultipartBody:
    """Multipart body backed by a MultipartBuilder.

    The first reader() finalizes the builder; the payload is cached so the
    body can be materialized more than once.
    """

    kind = BodyKind.MULTIPART

    def __init__(self, builder: MultipartBuilder | None = None):
        self.builder = builder or MultipartBuilder()
        self._payload: bytes | None = None

    @property
    def boundary(self) -> str:
        return self.builder.boundary

    @property
    def content_type(self) -> str:
        return self.builder.content_type

    def add_text_field(self, name: str, value: str) -> None:
        self.builder.add_text_field(name, value)

    def add_file(self, name: str, filename: str, content: bytes) -> None:
        self.builder.add_file(name, filename, content)

    def add_file_from_path(self, name: str, path: str | os.PathLike) -> None:
        self.builder.add_file(name, Path(path).name, read_file(path))

    def add_file_from_stream(self, name: str, filename: str, stream: BinaryIO) -> None:
        self.builder.add_file_from_stream(name, filename, stream)

    def payload(self) -> bytes:
        if self._payload is None:
            self._payload = self.builder.build()
        return self._payload

    def reader(self) -> io.BytesIO:
        return io.BytesIO(self.payload())

    def length(self) -> int | None:
        if self._payload is None:
            return None
        return len(self._payload)


Body = GenericBody | FormBody | MultipartBody


# =============================================================================
# JSON body description
# =============================================================================

BODY_FIELDS = {"type", "text", "file", "form_data", "multipart_fields"}
MULTIPART_FIELD_KEYS = {"name", "text", "file"}


def _optional_str(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise InvalidBodyError(f"body field {key!r} must be a string")
    return value


def body_from_dict(data: Any) -> Body:
    """Build a body from its JSON description.

    ``{"type": "content", "text": ...}`` or ``"file": ...``;
    ``{"type": "form", "form_data": {"k": ["v"]}}``;
    ``{"type": "multipart", "multipart_fields": [{"name", "text"?, "file"?}]}``.
    """
    if not isinstance(data, dict):
        raise InvalidBodyError("body must be an object")
    unknown = set(data) - BODY_FIELDS
    if unknown:
        raise InvalidBodyError(f"unknown body field(s): {', '.join(sorted(unknown))}")

    try:
        kind = BodyKind(data.get("type"))
    except ValueError:
        raise InvalidBodyError(f"unknown body type: {data.get('type')!r}") from None

    if kind is BodyKind.CONTENT:
        return make_generic(text=_optional_str(data, "text"), file=_optional_str(data, "file"))

    if kind is BodyKind.FORM:
        form_data = data.get("form_data")
        if form_data is None:
            raise InvalidBodyError("form body without form_data")
        if not isinstance(form_data, dict) or not all(
            isinstance(v, list) and all(isinstance(i, str) for i in v)
            for v in form_data.values()
        ):
            raise InvalidBodyError("form_data must map names to lists of strings")
        return FormBody.from_mapping(form_data)

    fields = data.get("multipart_fields")
    if not fields or not isinstance(fields, list):
        raise InvalidBodyError("no multipart fields")

    body = MultipartBody()
    for item in fields:
        if not isinstance(item, dict) or not isinstance(item.get("name"), str):
            raise InvalidBodyError("multipart field must be an object with a name")
        unknown = set(item) - MULTIPART_FIELD_KEYS
        if unknown:
            raise InvalidBodyError(f"unknown multipart field key(s): {', '.join(sorted(unknown))}")
        text = _optional_str(item, "text")
        file = _optional_str(item, "file")
        if text is None and file is None:
            raise NoContentError(f"multipart field {item['name']!r} has no text or file")
        if text is not None:
            body.add_text_field(item["name"], text)
        if file is not None:
            body.add_file_from_path(item["name"], file)
    return body
