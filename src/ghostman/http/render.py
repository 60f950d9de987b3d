"""
Tree rendering of request and response dumps.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

import io

from rich.console import Console
from rich.style import Style
from rich.text import Text
from rich.tree import Tree

from ghostman.http import sniff

SIZE_UNITS = ("B", "KB", "MB", "GB", "TB", "PB", "EB")

# Background colour per verb
METHOD_COLORS = {
    "GET": "#16a34a",
    "POST": "#3b82f6",
    "PUT": "#f59e0b",
    "PATCH": "#8b5cf6",
    "DELETE": "#ef4444",
    "HEAD": "#06b6d4",
    "OPTIONS": "#84cc16",
    "TRACE": "#64748b",
    "CONNECT": "#f97316",
}

HEADER_SEPARATOR = b"\r\n\r\n"


def format_bytes(size: int) -> str:
    """Human-readable size with binary prefixes: 1023 B, 1.0 KB, 1.0 MB."""
    if size < 1024:
        return f"{size} B"
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(SIZE_UNITS) - 1:
        value /= 1024
        unit += 1
    return f"{value:.1f} {SIZE_UNITS[unit]}"


def style_method(method: str) -> Text:
    color = METHOD_COLORS.get(method.upper())
    if color is None:
        return Text(method)
    return Text(f" {method} ", style=Style(color="white", bgcolor=color, bold=True))


def style_status(status: str) -> Text:
    """Colour '200 OK' style text by status class."""
    code = status.split(" ", 1)[0]
    if not code.isdigit():
        return Text(status)
    value = int(code)
    if 200 <= value < 300:
        style = "green"
    elif 300 <= value < 400:
        style = "yellow"
    elif 400 <= value < 500:
        style = "red"
    elif 500 <= value < 600:
        style = "red bold"
    else:
        return Text(status)
    return Text(status, style=style)


def _start_label(line: str) -> tuple[Text, bool]:
    """Decorated start line, and whether it is a response."""
    if line.startswith("HTTP/"):
        version, _, status = line.partition(" ")
        return Text.assemble(version, " ", style_status(status)), True
    method, _, rest = line.partition(" ")
    return Text.assemble(style_method(method), " ", rest), False


def split_dump(dump: bytes) -> tuple[str, list[str], bytes | None]:
    """Start line, header lines and body (None when there is none)."""
    head, sep, body = dump.partition(HEADER_SEPARATOR)
    try:
        text = head.decode("utf-8")
    except UnicodeDecodeError:
        text = head.decode("latin-1")
    lines = text.split("\r\n")
    if not sep or not body:
        return lines[0], lines[1:], None
    return lines[0], lines[1:], body


def build_tree(dump: bytes) -> Tree:
    """Tree summary of a wire dump: start line, headers, cookies, body size."""
    start, header_lines, body = split_dump(dump)
    label, is_response = _start_label(start)
    cookie_prefix = "set-cookie:" if is_response else "cookie:"

    headers: list[str] = []
    cookies: list[str] = []
    content_type = ""
    for line in header_lines:
        if not line.strip():
            continue
        lowered = line.lower()
        if lowered.startswith(cookie_prefix):
            cookies.append(line.split(":", 1)[1].strip())
            continue
        if lowered.startswith("content-type:") and not content_type:
            content_type = line.split(":", 1)[1].strip()
        headers.append(line.strip())

    tree = Tree(label)
    if headers:
        branch = tree.add(Text("Headers:"))
        for header in headers:
            branch.add(Text(header))

    if cookies:
        branch = tree.add(Text("Set-Cookie:" if is_response else "Cookies:"))
        for cookie in cookies:
            branch.add(Text(cookie))

    if body is not None:
        ct = content_type or sniff.detect(body)
        tree.add(Text(f"Body: {format_bytes(len(body))} of {ct}"))

    return tree


def render(dump: bytes, color: bool = False, width: int = 200) -> str:
    """Tree text for a dump. Without colour the output is plain text."""
    console = Console(
        file=io.StringIO(),
        width=width,
        force_terminal=color,
        no_color=not color,
        highlight=False,
    )
    console.print(build_tree(dump))
    return console.file.getvalue()
