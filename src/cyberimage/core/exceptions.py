"""Exception hierarchy for the Cyber Image Generator.

Every error the service raises on purpose derives from
:class:`CyberImageError`.  The HTTP layer maps each subclass onto a status
code and a response body; only :attr:`CyberImageError.public_message` ever
reaches a client.
"""

from __future__ import annotations


class CyberImageError(Exception):
    """Base class for all service errors.

    Attributes:
        public_message: Text that is safe to return to the caller.
        status_code: HTTP status the API layer responds with.
    """

    status_code: int = 500

    def __init__(self, public_message: str):
        super().__init__(public_message)
        self.public_message = public_message


class ValidationError(CyberImageError):
    """Client-caused error.

    The message describes what was wrong with the request and is intended to
    be displayed directly to the user.
    """

    status_code = 400


class UpstreamError(CyberImageError):
    """The upstream generation service failed or returned something unusable.

    ``detail`` holds the internal cause (status code, provider error text,
    exception repr) for server-side logging.  It is never serialised into a
    response.
    """

    status_code = 500
    PUBLIC_MESSAGE = "Failed to generate image"

    def __init__(self, detail: str, public_message: str = PUBLIC_MESSAGE):
        super().__init__(public_message)
        self.detail = detail

    def __str__(self) -> str:
        return f"{self.public_message}: {self.detail}"


class ConfigurationError(CyberImageError):
    """Deployment-caused error, fatal at startup."""

    status_code = 500


class OriginDeniedError(CyberImageError):
    """A cross-origin request came from an origin that is not permitted."""

    status_code = 403
    PUBLIC_MESSAGE = "Origin not allowed"

    def __init__(self, origin: str | None):
        super().__init__(self.PUBLIC_MESSAGE)
        self.origin = origin
