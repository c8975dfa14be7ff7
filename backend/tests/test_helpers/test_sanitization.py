"""Tests for plain-text cleaning and length bounds."""

import pytest

from helpers.sanitization import clean_text, sanitize_url, within_length


class TestCleanText:
    def test_strips_tags(self):
        assert clean_text("  <b>Bold</b> text ") == "Bold text"

    @pytest.mark.parametrize("text", ["Tom & Jerry", "a < b > c", "5 > 3"])
    def test_keeps_literal_characters(self, text):
        assert clean_text(text) == text

    def test_none(self):
        assert clean_text(None) == ""


class TestWithinLength:
    def test_counts_trimmed_input(self):
        assert within_length("  abc  ", 3, 3)
        assert within_length("&" * 500, 3, 500)
        assert not within_length("&" * 501, 3, 500)

    def test_missing_text_is_zero_length(self):
        assert within_length(None, 0, 10)
        assert not within_length(None, 1, 10)
        assert not within_length("   ", 1, 10)


@pytest.mark.parametrize(
    "url,expected",
    [
        ("https://x.io/a.png", "https://x.io/a.png"),
        ("/uploads/a.png", "/uploads/a.png"),
        ("//evil.io/a.png", ""),
        ("javascript:alert(1)", ""),
    ],
)
def test_sanitize_url(url, expected):
    assert sanitize_url(url) == expected
