"""
HTTP request composer module.

Provides the request/response model and body composition:
- Request configuration from flags or JSON request files
- Generic, URL-encoded form and multipart bodies
- Cookie model with full attribute round-tripping
- Safe dumps and tree rendering of requests and responses
- Client wrapper that sends once and never follows redirects

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

from ghostman.http.body import (
    Body,
    BodyKind,
    FormBody,
    GenericBody,
    MultipartBody,
    MultipartBuilder,
)
from ghostman.http.client import HTTPClient, Response
from ghostman.http.cookie import Cookie, SameSite
from ghostman.http.dump import buffer_body, dump_request, dump_response
from ghostman.http.render import build_tree, format_bytes, render
from ghostman.http.request import Flag, Options, RequestConfig

__all__ = [
    "Body",
    "BodyKind",
    "Cookie",
    "Flag",
    "FormBody",
    "GenericBody",
    "HTTPClient",
    "MultipartBody",
    "MultipartBuilder",
    "Options",
    "RequestConfig",
    "Response",
    "SameSite",
    "buffer_body",
    "build_tree",
    "dump_request",
    "dump_response",
    "format_bytes",
    "render",
]
