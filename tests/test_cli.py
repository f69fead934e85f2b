"""
Tests for main - the command line entry point.
"""

from __future__ import annotations

import json

import pytest

import main
from diffalyze.core.models import Side


@pytest.fixture
def files(tmp_path):
    def make(original: str, changed: str):
        left = tmp_path / "original.txt"
        right = tmp_path / "changed.txt"
        left.write_text(original, encoding="utf-8")
        right.write_text(changed, encoding="utf-8")
        return str(left), str(right)
    return make


@pytest.fixture
def config(tmp_path):
    """Empty settings file so the user's own settings never leak in."""
    path = tmp_path / "settings.json"
    path.write_text("{}", encoding="utf-8")
    return str(path)


def test_parse_arguments():
    args = main.parse_arguments(["a.txt", "b.txt", "-i", "--regex", "#.*", "--accept", "changed", "-w", "60"])
    assert args.original_path == "a.txt"
    assert args.changed_path == "b.txt"
    assert args.ignore_spaces_case
    assert not args.ignore_blank
    assert args.regex == "#.*"
    assert args.accept is Side.CHANGED
    assert args.width == 60


def test_identical_files_exit_zero(files, config, capsys):
    left, right = files("a\nb\n", "a\nb\n")
    assert main.main([left, right, "-c", config]) == main.EXIT_IDENTICAL
    assert "identical" in capsys.readouterr().out


def test_differences_exit_one(files, config, capsys):
    left, right = files("a\nb\nc", "a\nB\nc\nd")
    assert main.main([left, right, "-c", config, "-w", "60"]) == main.EXIT_DIFFERENT
    out = capsys.readouterr().out
    assert "~   2 b" in out
    assert "+   4 d" in out
    assert "1 added, 0 removed, 1 modified, 0 moved, 2 unchanged in 2 block(s)" in out


def test_summary_only(files, config, capsys):
    left, right = files("a", "b")
    assert main.main([left, right, "-c", config, "--summary-only"]) == main.EXIT_DIFFERENT
    out = capsys.readouterr().out.strip().splitlines()
    assert out == ["0 added, 0 removed, 1 modified, 0 moved, 0 unchanged in 1 block(s)"]


def test_ignore_spaces_case_flag(files, config):
    left, right = files("Hello World", "hello   world")
    assert main.main([left, right, "-c", config, "-i"]) == main.EXIT_IDENTICAL


def test_settings_file_is_used(files, tmp_path):
    path = tmp_path / "custom.json"
    path.write_text(json.dumps({"comparison": {"ignore_spaces_case": True}}), encoding="utf-8")
    left, right = files("Hello", "HELLO")
    assert main.main([left, right, "-c", str(path)]) == main.EXIT_IDENTICAL


def test_accept_writes_merged_output(files, config, tmp_path, capsys):
    left, right = files("1\n2\n3", "1\ntwo\n3")
    output = tmp_path / "merged.txt"
    assert main.main([left, right, "-c", config, "--accept", "changed", "-o", str(output)]) == main.EXIT_DIFFERENT
    assert output.read_text(encoding="utf-8") == "1\ntwo\n3"
    assert "1 modified" in capsys.readouterr().err


def test_accept_to_stdout(files, config, capsys):
    left, right = files("1\n2\n3", "1\ntwo\n3")
    main.main([left, right, "-c", config, "--accept", "original"])
    assert capsys.readouterr().out == "1\n2\n3"


@pytest.mark.parametrize(
    "original, changed",
    [("a\nb", "a\nX\nb"), ("a\nGONE\nb", "a\nb"), ("a\nb\nc\n", "x\nb\nc\nd\ne\n")],
)
@pytest.mark.parametrize("side", ["original", "changed"])
def test_accept_reproduces_chosen_file(files, config, capsys, original, changed, side):
    left, right = files(original, changed)
    assert main.main([left, right, "-c", config, "--accept", side]) == main.EXIT_DIFFERENT
    expected = original if side == "original" else changed
    assert capsys.readouterr().out == expected


def test_accept_inserted_line_written_to_file(files, config, tmp_path):
    left, right = files("a\nb", "a\nX\nb")
    output = tmp_path / "merged.txt"
    main.main([left, right, "-c", config, "--accept", "original", "-o", str(output)])
    assert output.read_text(encoding="utf-8") == "a\nb"


def test_invalid_history_limit_falls_back_to_default(files, tmp_path, capsys):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"merge": {"history_limit": 0}}), encoding="utf-8")
    left, right = files("a\nGONE\nb", "a\nb")
    assert main.main([left, right, "-c", str(path), "--accept", "changed"]) == main.EXIT_DIFFERENT
    assert capsys.readouterr().out == "a\nb"


def test_missing_file_exits_two(tmp_path, config, capsys):
    missing = str(tmp_path / "nope.txt")
    assert main.main([missing, missing, "-c", config]) == main.EXIT_ERROR
    assert "nope.txt" in capsys.readouterr().err


def test_both_empty_exits_two(files, config, capsys):
    left, right = files("", "")
    assert main.main([left, right, "-c", config]) == main.EXIT_ERROR
    assert "at least one" in capsys.readouterr().err


def test_unsafe_pattern_warns(files, config, capsys):
    left, right = files("a", "b")
    assert main.main([left, right, "-c", config, "--regex", "("]) == main.EXIT_DIFFERENT
    assert "warning: Pattern '('" in capsys.readouterr().err
