"""Unit tests for URI template compilation (shhoook/endpoints/pattern.py).

Covers:
  - literal segments, :name captures, *name tail captures
  - regex metacharacters in literals are matched literally
  - empty segments skipped; bare "/" matches only the root
  - wildcard position and capture name validation
  - duplicate capture names (later value wins)
"""

from __future__ import annotations

import pytest

from shhoook.endpoints.pattern import PatternError, compile_template


# ─── Literal and single-segment captures ──────────────────────────────────────


class TestSegmentCaptures:
    def test_literal_template_matches_exact_path(self) -> None:
        matcher = compile_template("/status")
        assert matcher.match("/status") == {}
        assert matcher.match("/status/x") is None
        assert matcher.match("/statu") is None

    def test_named_capture(self) -> None:
        matcher = compile_template("/run/:id")
        assert matcher.match("/run/42") == {"id": "42"}

    def test_named_capture_rejects_slash_and_empty(self) -> None:
        matcher = compile_template("/run/:id")
        assert matcher.match("/run/4/2") is None
        assert matcher.match("/run/") is None
        assert matcher.match("/run") is None

    def test_multiple_captures(self) -> None:
        matcher = compile_template("/users/:user/jobs/:job")
        assert matcher.match("/users/ann/jobs/7") == {"user": "ann", "job": "7"}

    def test_metacharacters_are_literal(self) -> None:
        matcher = compile_template("/v1.0/a+b")
        assert matcher.match("/v1.0/a+b") == {}
        assert matcher.match("/v1x0/a+b") is None
        assert matcher.match("/v1.0/aab") is None

    def test_match_is_anchored(self) -> None:
        matcher = compile_template("/run/:id")
        assert matcher.match("/prefix/run/1") is None
        assert matcher.match("/run/1/") is None


# ─── Tail wildcard ────────────────────────────────────────────────────────────


class TestWildcard:
    def test_wildcard_captures_remaining_path(self) -> None:
        matcher = compile_template("/files/*rest")
        assert matcher.wildcard is True
        assert matcher.match("/files/a/b.txt") == {"rest": "a/b.txt"}

    def test_wildcard_may_be_empty(self) -> None:
        matcher = compile_template("/files/*rest")
        assert matcher.match("/files/") == {"rest": ""}

    def test_wildcard_requires_separator(self) -> None:
        matcher = compile_template("/files/*rest")
        assert matcher.match("/files") is None

    def test_capture_then_wildcard(self) -> None:
        matcher = compile_template("/run/:id/*rest")
        assert matcher.match("/run/7/x/y") == {"id": "7", "rest": "x/y"}

    def test_wildcard_spans_decoded_newlines(self) -> None:
        matcher = compile_template("/files/*rest")
        assert matcher.match("/files/a\nb") == {"rest": "a\nb"}
        assert matcher.match("/files/\n") == {"rest": "\n"}

    def test_wildcard_not_last_is_error(self) -> None:
        with pytest.raises(PatternError, match="last segment"):
            compile_template("/a/*rest/b")

    def test_wildcard_followed_by_trailing_slash_is_error(self) -> None:
        with pytest.raises(PatternError):
            compile_template("/a/*rest/")

    def test_non_wildcard_template_flag(self) -> None:
        assert compile_template("/run/:id").wildcard is False


# ─── Empty segments and root ──────────────────────────────────────────────────


class TestEmptySegments:
    def test_double_slash_is_skipped(self) -> None:
        matcher = compile_template("/a//b")
        assert matcher.match("/a/b") == {}

    def test_trailing_slash_is_skipped(self) -> None:
        matcher = compile_template("/a/")
        assert matcher.match("/a") == {}
        assert matcher.match("/a/") is None

    def test_root_template_matches_root_only(self) -> None:
        matcher = compile_template("/")
        assert matcher.match("/") == {}
        assert matcher.match("/x") is None


# ─── Capture names ────────────────────────────────────────────────────────────


class TestCaptureNames:
    @pytest.mark.parametrize("template", ["/run/:", "/files/*", "/run/:a-b", "/run/:é"])
    def test_invalid_names_rejected(self, template: str) -> None:
        with pytest.raises(PatternError, match="invalid capture name"):
            compile_template(template)

    def test_underscore_and_digits_allowed(self) -> None:
        matcher = compile_template("/x/:job_2")
        assert matcher.match("/x/abc") == {"job_2": "abc"}

    def test_duplicate_name_later_wins(self) -> None:
        matcher = compile_template("/:id/:id")
        assert matcher.names == ("id", "id")
        assert matcher.match("/first/second") == {"id": "second"}

    def test_pattern_error_is_value_error(self) -> None:
        assert issubclass(PatternError, ValueError)
