"""
Tests for the Artifact Cleaner module.
"""

from ocrsub.cleaner import clean_ocr_text


class TestShortText:
    """Two lines or fewer are returned stripped."""

    def test_empty(self):
        assert clean_ocr_text("") == ""

    def test_single_line(self):
        assert clean_ocr_text("  Hello  ") == "Hello"

    def test_two_lines_kept(self):
        assert clean_ocr_text("Title\nHello") == "Title\nHello"

    def test_trailing_newline_counts_as_line(self):
        # "Hello\n" splits into two lines
        assert clean_ocr_text("Hello\n") == "Hello"


class TestHeaderRemoval:
    """More than two lines drops exactly the first two."""

    def test_drops_header(self):
        raw = "00_00_01_000__00_00_03_500\n________________\nHello there"
        assert clean_ocr_text(raw) == "Hello there"

    def test_keeps_remaining_lines(self):
        raw = "title\n\nFirst line\nSecond line\n"
        assert clean_ocr_text(raw) == "First line\nSecond line"

    def test_header_only(self):
        assert clean_ocr_text("title\nsep\n") == ""

    def test_whitespace_trimmed(self):
        assert clean_ocr_text("a\nb\n   text   \n\n") == "text"
