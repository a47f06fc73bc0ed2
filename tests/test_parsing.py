"""
Tests for defensive JSON parsing of generated text.
"""

import pytest

from hearth.bots.parsing import extract_json, strip_code_fences
from hearth.core.errors import MalformedUpstreamResponse


class TestStripCodeFences:
    """Tests for strip_code_fences."""

    def test_json_fence(self):
        """Test a ```json fenced payload."""
        assert strip_code_fences('```json\n[{"a": 1}]\n```') == '[{"a": 1}]'

    def test_plain_fence(self):
        """Test an untagged fence."""
        assert strip_code_fences("```\n{}\n```") == "{}"

    def test_no_fence(self):
        """Test text without fences."""
        assert strip_code_fences("  [1, 2]  ") == "[1, 2]"


class TestExtractJson:
    """Tests for extract_json."""

    def test_whole_text(self):
        """Test a clean JSON payload."""
        assert extract_json('[{"Cloth Name": "Shirt"}]') == [{"Cloth Name": "Shirt"}]

    def test_fenced(self):
        """Test a fenced payload."""
        assert extract_json('```json\n{"ok": true}\n```') == {"ok": True}

    def test_prose_around_json(self):
        """Test a fragment surrounded by prose."""
        text = 'Here are your items: [{"Cloth Name": "Jacket"}] Enjoy!'
        assert extract_json(text) == [{"Cloth Name": "Jacket"}]

    def test_skips_broken_fragment(self):
        """Test that a malformed first bracket is skipped."""
        text = 'Note [see below] {"a": 1}'
        assert extract_json(text) == {"a": 1}

    def test_no_json(self):
        """Test total failure."""
        with pytest.raises(MalformedUpstreamResponse):
            extract_json("Sorry, I cannot help with that.")

    def test_empty(self):
        """Test empty text."""
        with pytest.raises(MalformedUpstreamResponse):
            extract_json("")
