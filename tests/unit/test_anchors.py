"""Tests for anchor extraction, stripping and embedding."""

from __future__ import annotations

import pytest

from mstodo_sync.anchors import embed_anchor, extract_anchor, strip_anchor


class TestExtractAnchor:
    """Tests for extract_anchor()."""

    def test_simple_suffix(self):
        assert extract_anchor("Call Bob ^a100001") == "a100001"

    def test_no_caret(self):
        assert extract_anchor("Buy milk") is None

    def test_rightmost_token_wins(self):
        assert extract_anchor("x ^first y ^second") == "second"

    def test_trailing_bare_caret_means_no_anchor(self):
        """The last caret is authoritative even when it matches nothing."""
        assert extract_anchor("Call ^abc then ^") is None

    def test_caret_followed_by_symbol(self):
        assert extract_anchor("2^-3 is small") is None

    def test_token_stops_at_non_alphanumeric(self):
        assert extract_anchor("Task ^ab12cd. done") == "ab12cd"

    def test_surrounding_whitespace_ignored(self):
        assert extract_anchor("   Task ^k9   ") == "k9"

    @pytest.mark.parametrize("line", ["", "^", "   "])
    def test_degenerate_lines(self, line):
        assert extract_anchor(line) is None


class TestStripAnchor:
    """Tests for strip_anchor()."""

    def test_removes_marker_keeps_whitespace(self):
        assert strip_anchor("Call Bob ^a100001", "a100001") == "Call Bob "

    def test_removes_only_first_literal_occurrence(self):
        # Known limitation: an identical substring earlier in the title is hit first.
        assert strip_anchor("see ^ab and ^ab", "ab") == "see  and ^ab"

    def test_missing_marker_is_noop(self):
        assert strip_anchor("Buy milk", "zz") == "Buy milk"


class TestEmbedAnchor:
    def test_appends_marker(self):
        assert embed_anchor("- [ ] Buy milk", "b200002") == "- [ ] Buy milk ^b200002"

    def test_embedded_anchor_is_extracted_back(self):
        line = embed_anchor("Buy milk", "q1w2e3")
        assert extract_anchor(line) == "q1w2e3"
