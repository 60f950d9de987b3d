"""
Exceptions raised while composing, dumping and sending requests.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""


class GhostmanError(Exception):
    """Base exception for ghostman errors."""
    pass


class ConfigurationError(GhostmanError):
    """Request could not be configured. Raised before any network activity."""
    pass


class InvalidURLError(ConfigurationError):
    """URL is not an absolute request URI."""

    def __init__(self, url: str, reason: str = ""):
        self.url = url
        message = f"invalid URL: {url!r}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class InvalidMethodError(ConfigurationError):
    """HTTP method is empty or malformed."""

    def __init__(self, method: str):
        self.method = method
        super().__init__(f"invalid method: {method!r}")


class MalformedFlagError(ConfigurationError):
    """A key:value (or key=value) flag is missing its separator."""
    pass


class InvalidBodyError(ConfigurationError):
    """JSON body description is unknown or invalid."""
    pass


class NoContentError(InvalidBodyError):
    """Generic body requested without text or file."""

    def __init__(self, message: str = "no content supplied"):
        super().__init__(message)


class AttachmentError(ConfigurationError):
    """Attachment file could not be read."""

    def __init__(self, path: str, cause: Exception):
        self.path = path
        self.cause = cause
        super().__init__(f"reading attachment {path!r}: {cause}")


class EncodingError(GhostmanError):
    """Body could not be encoded."""
    pass


class BuilderClosedError(EncodingError):
    """Multipart builder used after it was finalized."""

    def __init__(self, message: str = "builder already closed"):
        super().__init__(message)


class SendError(GhostmanError):
    """Transport failure while sending (DNS, connect, TLS, timeout)."""

    def __init__(self, method: str, url: str, cause: Exception):
        self.method = method
        self.url = url
        self.cause = cause
        super().__init__(f"send failed: {method} {url}: {cause}")


class DumpError(GhostmanError):
    """Message body could not be buffered for dumping."""

    def __init__(self, stage: str, cause: Exception):
        self.stage = stage
        self.cause = cause
        super().__init__(f"dumping {stage} safely: {cause}")
