"""Frontend asset resolution.

The frontend is a handful of static files deployed next to the service.  The
lookup rules are:

- If ``<static_dir>/frontend/index.html`` exists, assets are served from
  ``<static_dir>/frontend``; otherwise from ``<static_dir>`` itself.
- A request path maps to a file only if it resolves inside that root, has no
  hidden (dot-prefixed) component and carries a web asset extension.
- Any other GET falls back to the first existing ``index.html`` candidate,
  and finally to :data:`FALLBACK_HTML`.
"""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

INDEX_CANDIDATES: tuple[str, ...] = (
    "frontend/index.html",
    "index.html",
    "public/index.html",
)

ASSET_SUFFIXES = frozenset(
    {
        ".html",
        ".htm",
        ".css",
        ".js",
        ".mjs",
        ".map",
        ".png",
        ".jpg",
        ".jpeg",
        ".gif",
        ".svg",
        ".webp",
        ".ico",
        ".woff",
        ".woff2",
        ".ttf",
        ".txt",
        ".webmanifest",
    }
)

FALLBACK_HTML = """<!DOCTYPE html>
<html>
<head>
    <title>Cyber Image Generator</title>
    <style>
        body { font-family: Arial, sans-serif; text-align: center; padding: 50px; }
        h1 { color: #2563eb; }
    </style>
</head>
<body>
    <h1>Cyber Image Generator API</h1>
    <p>Backend is running! Frontend files not found.</p>
    <p>API is available at: <code>POST /api/generate-image</code></p>
    <p>Health check: <a href="/api/health">/api/health</a></p>
</body>
</html>
"""


def frontend_root(static_dir: Path) -> Path:
    """Return the directory assets are served from."""
    frontend = static_dir / "frontend"
    if (frontend / "index.html").is_file():
        return frontend
    return static_dir


def resolve_asset(root: Path, request_path: str) -> Path | None:
    """Map a URL path to a servable file under *root*.

    Args:
        root: Directory assets are served from.
        request_path: Path portion of the URL, without the leading slash.

    Returns:
        Absolute path of the file, or ``None`` if nothing may be served.
    """
    relative = request_path.strip("/")
    if not relative:
        return None

    parts = Path(relative).parts
    if any(part.startswith(".") for part in parts):
        return None

    try:
        base = root.resolve()
        candidate = (base / relative).resolve()
    except (ValueError, OSError):
        return None

    # Prevent path traversal outside of the static root.
    if not candidate.is_relative_to(base):
        logger.warning("Path traversal attempt detected: %s", request_path)
        return None

    if candidate.suffix.lower() not in ASSET_SUFFIXES or not candidate.is_file():
        return None
    return candidate


def find_index(static_dir: Path) -> Path | None:
    """Return the first existing ``index.html`` candidate, if any."""
    for candidate in INDEX_CANDIDATES:
        path = static_dir / candidate
        if path.is_file():
            return path
    return None
