from __future__ import annotations

import pytest

from diffalyze.core.diff.normalizer import CompareOptions, LineNormalizer


class TestCompareOptions:
    """Tests for CompareOptions"""

    def test_defaults(self):
        options = CompareOptions()
        assert not options.ignore_spaces_case
        assert not options.ignore_blank
        assert options.regex is None
        assert not options.has_pattern

    def test_from_mapping_camel_case(self):
        options = CompareOptions.from_mapping(
            {"ignoreSpacesCase": True, "ignoreBlank": 1, "regex": "#.*"}
        )
        assert options == CompareOptions(True, True, "#.*")

    def test_from_mapping_snake_case_wins(self):
        options = CompareOptions.from_mapping({"ignore_blank": False, "ignoreBlank": True})
        assert not options.ignore_blank

    @pytest.mark.parametrize("data", [None, {}, {"regex": "   "}, {"regex": 5}])
    def test_from_mapping_without_pattern(self, data):
        assert CompareOptions.from_mapping(data).regex is None

    def test_without_pattern(self):
        options = CompareOptions(True, False, "x+")
        stripped = options.without_pattern()
        assert stripped.regex is None
        assert stripped.ignore_spaces_case
        assert options.regex == "x+"


class TestLineNormalizer:
    """Tests for LineNormalizer"""

    def test_identity(self):
        normalize = LineNormalizer()
        assert normalize.is_identity
        assert normalize("  Mixed Case  ") == "  Mixed Case  "

    def test_ignore_spaces_case(self):
        normalize = LineNormalizer(CompareOptions(ignore_spaces_case=True))
        assert normalize("  Hello \t  World ") == "hello world"
        assert normalize("Hello World") == normalize("hello   world")

    def test_ignore_blank(self):
        normalize = LineNormalizer(CompareOptions(ignore_blank=True))
        assert normalize(" \t ") == ""
        assert normalize(" x ") == " x "

    def test_regex_then_trailing_trim(self):
        normalize = LineNormalizer(CompareOptions(regex="//.*"))
        assert normalize("x=1 // comment") == "x=1"
        assert normalize("x=1") == "x=1"

    def test_regex_applied_before_case_folding(self):
        normalize = LineNormalizer(CompareOptions(ignore_spaces_case=True, regex="[A-Z]+"))
        assert normalize("abc DEF ghi") == "abc ghi"

    def test_regex_then_blank(self):
        normalize = LineNormalizer(CompareOptions(ignore_blank=True, regex="#.*"))
        assert normalize("   # only a comment") == ""

    def test_uncompilable_pattern_is_ignored(self):
        normalize = LineNormalizer(CompareOptions(regex="("))
        assert normalize.is_identity
        assert normalize("(x)") == "(x)"

    def test_non_string_becomes_empty(self):
        assert LineNormalizer()(None) == ""

    def test_normalize_all(self):
        normalize = LineNormalizer(CompareOptions(ignore_spaces_case=True))
        assert normalize.normalize_all(["A", " b "]) == ["a", "b"]
