"""
=============================================================================
MIME TYPE DETECTION
=============================================================================

Maps file extensions to Content-Type values.

=============================================================================
WHY A FIXED TABLE?
=============================================================================

The standard library's mimetypes module consults /etc/mime.types and the
Windows registry, so the answer for ".js" differs between machines. A
static file server whose headers change with the host it runs on is hard
to test, so we ship our own small table instead.

We never sniff content. A PNG renamed to notes.txt is served as
text/plain; the extension is the only input.

    ┌────────────┬──────────────────────────┐
    │ Extension  │ Content-Type             │
    ├────────────┼──────────────────────────┤
    │ .txt       │ text/plain               │
    │ .html      │ text/html                │
    │ .css       │ text/css                 │
    │ .js        │ application/javascript   │
    │ .json      │ application/json         │
    │ .jpg .jpeg │ image/jpeg               │
    │ .png       │ image/png                │
    │ .gif       │ image/gif                │
    │ .svg       │ image/svg+xml            │
    │ (other)    │ application/octet-stream │
    └────────────┴──────────────────────────┘

=============================================================================
"""

from pathlib import Path
from typing import Union


MIME_TYPES = {
    # Text
    ".txt": "text/plain",
    ".html": "text/html",
    ".css": "text/css",
    ".js": "application/javascript",
    ".json": "application/json",

    # Images
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",       # SVG is XML, hence +xml
}

# application/octet-stream = "I don't know what this is, treat as binary"
DEFAULT_MIME_TYPE = "application/octet-stream"


def get_mime_type(path: Union[str, Path]) -> str:
    """
    Get the MIME type for a file based on its extension.

    The lookup is case-insensitive: "LOGO.PNG" and "logo.png" agree.

    Examples:
        >>> get_mime_type("style.css")
        'text/css'

        >>> get_mime_type("/srv/static/Photo.JPEG")
        'image/jpeg'

        >>> get_mime_type("archive.tar.gz")
        'application/octet-stream'
    """
    if isinstance(path, str):
        path = Path(path)

    extension = path.suffix.lower()  # .PNG → .png
    return MIME_TYPES.get(extension, DEFAULT_MIME_TYPE)
