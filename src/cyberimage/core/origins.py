"""Cross-origin request policy.

:class:`OriginPolicy` answers one question: may a response be served to a
browser page running on the given origin?

Decision rules
--------------
- Development mode permits every origin.
- Production mode permits a request when:

  1. it declares no ``Origin`` (same-origin navigation, curl, server-side
     callers), or
  2. the origin is in the explicit allow-list (exact string match after
     normalisation), or
  3. the origin's hostname ends with one of the trusted suffixes, matched at
     a DNS label boundary.

Suffix matching compares parsed hostnames label by label.  ``.github.io``
matches ``user.github.io`` but not ``evil.github.io.attacker.com`` nor
``notgithub.io``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from urllib.parse import urlsplit

from cyberimage.core.config import CyberImageConfig
from cyberimage.core.exceptions import OriginDeniedError

logger = logging.getLogger(__name__)

_SUFFIX_SCHEMES = frozenset({"http", "https"})


def normalise_origin(origin: str) -> str:
    """Lower-case an origin and strip any trailing slash."""
    return origin.strip().rstrip("/").lower()


def hostname_matches_suffix(hostname: str, suffix: str) -> bool:
    """Return True if *hostname* is *suffix*'s domain or a subdomain of it.

    Args:
        hostname: Bare hostname, e.g. ``"faiz786-lada.github.io"``.
        suffix: Trusted suffix with or without a leading dot, e.g.
            ``".github.io"`` or ``"github.io"``.

    Examples:
        >>> hostname_matches_suffix("user.github.io", ".github.io")
        True
        >>> hostname_matches_suffix("evil.github.io.attacker.com", ".github.io")
        False
        >>> hostname_matches_suffix("evilgithub.io", ".github.io")
        False
    """
    domain = suffix.strip().lstrip(".").lower()
    host = hostname.strip().rstrip(".").lower()
    if not domain or not host:
        return False
    return host == domain or host.endswith("." + domain)


_DEFAULT_PORTS = {"http": 80, "https": 443}


def is_same_origin(origin: str, scheme: str, host: str | None) -> bool:
    """Return True if *origin* names the server the request was sent to.

    Browsers send ``Origin`` on same-origin ``POST`` requests too; those are
    not cross-origin and need no policy decision.

    Args:
        origin: Value of the request's ``Origin`` header.
        scheme: Scheme the request arrived on (``http`` or ``https``).
        host: Value of the request's ``Host`` header, possibly with a port.

    Examples:
        >>> is_same_origin("http://testserver", "http", "testserver")
        True
        >>> is_same_origin("https://app.example.com", "https", "app.example.com:443")
        True
        >>> is_same_origin("https://evil.example.com", "https", "app.example.com")
        False
    """
    if not host:
        return False
    scheme = scheme.lower()
    try:
        declared = urlsplit(normalise_origin(origin))
        served = urlsplit(f"{scheme}://{host.strip().lower()}")
        declared_port = declared.port or _DEFAULT_PORTS.get(declared.scheme)
        served_port = served.port or _DEFAULT_PORTS.get(scheme)
    except ValueError:
        return False
    return (
        declared.scheme == scheme
        and declared.hostname is not None
        and declared.hostname == served.hostname
        and declared_port == served_port
    )


@dataclass(frozen=True)
class OriginPolicy:
    """Immutable allow-list plus suffix rules.

    Attributes:
        production: Whether strict checking is enabled.
        allowed_origins: Normalised origins permitted verbatim.
        trusted_suffixes: Hostname suffixes permitted at a label boundary.
    """

    production: bool = False
    allowed_origins: frozenset[str] = field(default_factory=frozenset)
    trusted_suffixes: tuple[str, ...] = ()

    @classmethod
    def build(
        cls,
        *,
        production: bool,
        allowed_origins: Iterable[str] = (),
        trusted_suffixes: Iterable[str] = (),
    ) -> OriginPolicy:
        """Create a policy, normalising the allow-list entries."""
        return cls(
            production=production,
            allowed_origins=frozenset(normalise_origin(o) for o in allowed_origins if o.strip()),
            trusted_suffixes=tuple(s.strip().lower() for s in trusted_suffixes if s.strip()),
        )

    @classmethod
    def from_config(cls, settings: CyberImageConfig) -> OriginPolicy:
        return cls.build(
            production=settings.is_production,
            allowed_origins=settings.allowed_origins,
            trusted_suffixes=settings.trusted_origin_suffixes,
        )

    @property
    def mode(self) -> str:
        return "production" if self.production else "development"

    def permits(self, origin: str | None) -> bool:
        """Pure permit/deny decision for *origin*.

        Args:
            origin: Value of the request's ``Origin`` header, or ``None``.

        Returns:
            ``True`` if the origin may receive a cross-origin response.
        """
        if not self.production:
            return True
        if origin is None or not origin.strip():
            return True

        candidate = normalise_origin(origin)
        if candidate in self.allowed_origins:
            return True

        # "null" origins (sandboxed iframes, file://) and anything without a
        # scheme and host are denied in production.
        try:
            parts = urlsplit(candidate)
            hostname = parts.hostname
        except ValueError:
            return False
        if parts.scheme not in _SUFFIX_SCHEMES or not hostname:
            return False

        return any(hostname_matches_suffix(hostname, suffix) for suffix in self.trusted_suffixes)

    def evaluate(self, origin: str | None) -> bool:
        """Decide on *origin* and log the outcome."""
        allowed = self.permits(origin)
        if not origin:
            logger.debug("CORS allowed request without origin mode=%s", self.mode)
        elif allowed:
            logger.info("CORS allowed origin=%r mode=%s", origin, self.mode)
        else:
            logger.warning("CORS blocked origin=%r mode=%s", origin, self.mode)
        return allowed

    def enforce(self, origin: str | None) -> None:
        """Evaluate *origin* and raise if it is not permitted.

        Raises:
            OriginDeniedError: If the policy denies the origin.
        """
        if not self.evaluate(origin):
            raise OriginDeniedError(origin)
