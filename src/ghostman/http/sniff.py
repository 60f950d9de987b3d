"""
Content-type detection from payload bytes.

Binary formats are recognised by their magic numbers through ``filetype``.
Markup is matched on its leading tag, JSON by parsing the whole payload, and
anything else is text if it decodes as UTF-8 without control characters.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

import json

import filetype

SNIFF_LEN = 3072

OCTET_STREAM = "application/octet-stream"
TEXT_PLAIN = "text/plain; charset=utf-8"
EMPTY = "text/plain"

# Two-byte signatures that plain text can start with ("BMW...", "MZ...")
WEAK_MAGIC = frozenset({"image/bmp", "application/x-msdownload"})

HTML_TAGS = (
    b"<!doctype html", b"<html", b"<head", b"<script", b"<iframe", b"<h1",
    b"<div", b"<font", b"<table", b"<a", b"<style", b"<title", b"<b",
    b"<body", b"<br", b"<p", b"<!--",
)

# UTF-8 byte order mark
BOM = b"\xef\xbb\xbf"

# Control bytes that never occur in text
_BINARY_BYTES = frozenset(range(0x00, 0x09)) | {0x0B} | frozenset(range(0x0E, 0x1B)) | frozenset(range(0x1C, 0x20))


def _magic(head: bytes) -> str | None:
    mime = filetype.guess_mime(head)
    if mime in WEAK_MAGIC and _is_text(head):
        return None
    return mime


def _markup(head: bytes) -> str | None:
    lowered = head.lstrip(b" \t\r\n\f").lower()
    if lowered.startswith(b"<?xml"):
        if b"<svg" in lowered:
            return "image/svg+xml"
        return "text/xml; charset=utf-8"
    if lowered.startswith(b"<svg"):
        return "image/svg+xml"
    for tag in HTML_TAGS:
        if lowered.startswith(tag):
            terminator = lowered[len(tag):len(tag) + 1]
            if tag == b"<!--" or terminator in (b" ", b">"):
                return "text/html; charset=utf-8"
    return None


def _is_json(data: bytes) -> bool:
    stripped = data.strip()
    if not stripped or stripped[:1] not in (b"{", b"["):
        return False
    try:
        json.loads(stripped)
    except (ValueError, UnicodeDecodeError):
        return False
    return True


def _is_text(data: bytes) -> bool:
    if any(b in _BINARY_BYTES for b in data[:SNIFF_LEN]):
        return False
    try:
        data.decode("utf-8")
    except UnicodeDecodeError:
        return False
    return True


def detect(data: bytes) -> str:
    """Return the content type of a complete payload.

    Pass the final payload, not a partial read: JSON detection parses the
    whole document.
    """
    if not data:
        return EMPTY

    head = data[:SNIFF_LEN]
    mime = _magic(head)
    if mime:
        return mime

    if head.startswith(BOM):
        data = data[len(BOM):]
        head = data[:SNIFF_LEN]

    mime = _markup(head)
    if mime:
        return mime

    if _is_json(data):
        return "application/json"

    if _is_text(data):
        return TEXT_PLAIN

    return OCTET_STREAM
