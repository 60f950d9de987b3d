"""
Ghostman - HTTP request composer

Builds fully-specified HTTP requests from flags or JSON request files,
previews them as trees, sends them and renders the responses.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

__version__ = "0.1.0"
__author__ = "DNS Science.io"
__copyright__ = "Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company"
