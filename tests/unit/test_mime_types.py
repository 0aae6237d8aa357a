"""
Unit tests for MIME type detection.
"""

import pytest

from labserver.http.mime_types import DEFAULT_MIME_TYPE, MIME_TYPES, get_mime_type


class TestGetMimeType:
    """Tests for get_mime_type()."""

    @pytest.mark.parametrize("name,expected", [
        ("a.txt", "text/plain"),
        ("index.html", "text/html"),
        ("site.css", "text/css"),
        ("app.js", "application/javascript"),
        ("data.json", "application/json"),
        ("photo.jpg", "image/jpeg"),
        ("photo.jpeg", "image/jpeg"),
        ("logo.png", "image/png"),
        ("anim.gif", "image/gif"),
        ("icon.svg", "image/svg+xml"),
    ])
    def test_known_extensions(self, name, expected):
        assert get_mime_type(name) == expected

    def test_case_insensitive(self):
        """Test that extension case does not matter."""
        assert get_mime_type("LOGO.PNG") == "image/png"
        assert get_mime_type("Photo.JpEg") == "image/jpeg"

    @pytest.mark.parametrize("name", ["archive.tar.gz", "binary", "page.htm", "notes.md", ".hidden"])
    def test_unknown_falls_back(self, name):
        """Test that anything outside the table is application/octet-stream."""
        assert get_mime_type(name) == DEFAULT_MIME_TYPE

    def test_accepts_path_objects(self, tmp_path):
        assert get_mime_type(tmp_path / "a.css") == "text/css"

    def test_no_charset_suffix(self):
        """Test that content types are bare, without parameters."""
        assert all(";" not in value for value in MIME_TYPES.values())
