"""
=============================================================================
STATIC FILE HANDLER
=============================================================================

Maps /static/<name> requests to files under a configured root directory.

=============================================================================
PATH TRAVERSAL
=============================================================================

The one thing a static file server must never do is serve a file from
outside its root:

    GET /static/../config/secrets.json
    GET /static/..%2f..%2fetc/passwd
    GET /static//etc/passwd

We defend by canonicalizing, not by inspecting the string:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    RESOLUTION PIPELINE                               │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   "/static/css/../app.css"                                          │
    │        │  strip "/static/"                                          │
    │        ▼                                                            │
    │   "css/../app.css"          (empty here → 400 Bad Request)         │
    │        │  join onto root, resolve() . and .. and symlinks           │
    │        ▼                                                            │
    │   /srv/site/static/app.css                                          │
    │        │  is it INSIDE /srv/site/static ?   (no → 404)             │
    │        │  is it a regular file ?            (no → 404)             │
    │        ▼                                                            │
    │   200 OK, Content-Type from extension, body streamed from disk     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

"INSIDE" is a path-component check (Path.relative_to), not a string
prefix check. With a string prefix, /srv/site/static-evil/x.txt would
"start with" /srv/site/static and slip through.

A rejected traversal gets the same 404 and the same body as a file that
simply isn't there. Only the server log knows the difference.

=============================================================================
INTERVIEW QUESTIONS ABOUT STATIC FILES
=============================================================================

Q: "Why is path traversal dangerous?"
A: "An attacker could read sensitive files like /etc/passwd,
   database configs, or private keys. In the worst case,
   they could read source code and find other vulnerabilities."

Q: "Why 404 and not 403 for a traversal attempt?"
A: "403 confirms the attacker found something worth protecting. 404
   gives them nothing to distinguish a blocked path from a typo."

=============================================================================
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from ..http.errors import ErrorKind
from ..http.mime_types import get_mime_type
from ..http.request import ParsedRequest
from ..http.response import HTTPResponse, error_response, file_response


logger = logging.getLogger(__name__)

STATIC_PREFIX = "/static/"


@dataclass(frozen=True)
class StaticResolution:
    """
    Outcome of resolving a static file request.

    Either path and content_type are set (success), or error is.
    """

    path: Optional[Path] = None
    content_type: Optional[str] = None
    error: Optional[ErrorKind] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class StaticFileResolver:
    """
    Resolves request paths to files confined to a root directory.

    The root is canonicalized once, at construction. It does not have to
    exist yet; every lookup simply misses until it does.

    Usage:
        resolver = StaticFileResolver("/srv/site/static")

        result = resolver.resolve("/static/app.css")
        if result.ok:
            print(result.path, result.content_type)
        else:
            print(result.error.status)
    """

    def __init__(self, root_dir: Union[str, Path], url_prefix: str = STATIC_PREFIX):
        self.root_dir = Path(root_dir).resolve()
        self.url_prefix = url_prefix

    def resolve(self, request_path: str) -> StaticResolution:
        """
        Resolve a request path like "/static/css/app.css".

        The prefix is stripped by length, so "/STATIC/a.txt" (which the
        router accepts case-insensitively) resolves like "/static/a.txt".
        """
        relative = request_path[len(self.url_prefix):]
        if not relative:
            logger.warning("Invalid static file path: nothing after the prefix")
            return StaticResolution(error=ErrorKind.EMPTY_STATIC_PATH)

        try:
            candidate = (self.root_dir / relative).resolve()
        except (OSError, ValueError) as e:
            # Embedded NUL bytes, symlink loops and similar oddities
            logger.warning(f"Unresolvable static path {relative!r}: {e}")
            return StaticResolution(error=ErrorKind.FILE_NOT_FOUND)

        # ─────────────────────────────────────────────────────────────────
        # SECURITY: must stay inside root_dir
        # ─────────────────────────────────────────────────────────────────
        if not _is_within(candidate, self.root_dir):
            logger.warning(f"Invalid file path (outside static root): {relative}")
            return StaticResolution(error=ErrorKind.PATH_TRAVERSAL_REJECTED)

        try:
            is_file = candidate.is_file()
        except OSError as e:
            # e.g. ENAMETOOLONG, which is_file() does not swallow
            logger.warning(f"File not found: {relative[:64]}... ({e.strerror})")
            return StaticResolution(error=ErrorKind.FILE_NOT_FOUND)

        if not is_file:
            logger.warning(f"File not found: {relative}")
            return StaticResolution(error=ErrorKind.FILE_NOT_FOUND)

        return StaticResolution(path=candidate, content_type=get_mime_type(candidate))


def _is_within(path: Path, root: Path) -> bool:
    """True if path is root itself or lies somewhere beneath it."""
    try:
        path.relative_to(root)
    except ValueError:
        return False
    return True


class StaticFileHandler:
    """
    Route handler for /static/.

    Resolution failures become their plain-text error responses; a hit
    becomes a streamed file response. The file is not opened here, only
    when the response is written.
    """

    def __init__(self, resolver: StaticFileResolver):
        self.resolver = resolver

    def __call__(self, request: ParsedRequest) -> HTTPResponse:
        result = self.resolver.resolve(request.path)
        if not result.ok:
            return error_response(result.error)

        logger.debug(f"Resolved {request.path} to {result.path}")
        return file_response(result.path, result.content_type)
