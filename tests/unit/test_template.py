"""Unit tests for argv template expansion (shhoook/gateway/template.py)."""

from __future__ import annotations

from typing import Any

import pytest

from shhoook.gateway.params import resolve_params
from shhoook.gateway.template import TemplateError, expand_argument, expand_argv


class TestExpandArgument:
    def test_substitutes_known_name(self) -> None:
        assert expand_argument("echo id={id}", {"id": "42"}) == "echo id=42"

    def test_unknown_name_becomes_empty(self) -> None:
        assert expand_argument("a{missing}b", {}) == "ab"

    def test_multiple_placeholders(self) -> None:
        assert expand_argument("{a}-{b}-{a}", {"a": "1", "b": "2"}) == "1-2-1"

    def test_no_placeholders(self) -> None:
        assert expand_argument("plain text", {"x": "y"}) == "plain text"

    def test_empty_placeholder(self) -> None:
        assert expand_argument("x{}y", {"": "E"}) == "xEy"

    def test_stray_closing_brace_is_text(self) -> None:
        assert expand_argument("a}b", {}) == "a}b"

    def test_substituted_values_are_not_rescanned(self) -> None:
        assert expand_argument("{a}", {"a": "{b}", "b": "no"}) == "{b}"

    def test_unclosed_placeholder(self) -> None:
        with pytest.raises(TemplateError, match="unclosed placeholder"):
            expand_argument("echo {id", {"id": "1"})

    def test_unclosed_after_valid_placeholder(self) -> None:
        with pytest.raises(TemplateError):
            expand_argument("{a} {b", {"a": "1"})


class TestExpandArgv:
    def test_preserves_length_and_order(self) -> None:
        script = ("bash", "-c", "echo id={id}")
        assert expand_argv(script, {"id": "42"}) == ["bash", "-c", "echo id=42"]

    def test_value_with_spaces_stays_one_argument(self) -> None:
        argv = expand_argv(["echo", "{msg}"], {"msg": "a b; rm -rf /"})
        assert argv == ["echo", "a b; rm -rf /"]

    def test_error_in_any_argument(self) -> None:
        with pytest.raises(TemplateError):
            expand_argv(["echo", "ok", "{bad"], {})


class TestIdempotence:
    def test_same_input_same_argv(self, make_endpoint: Any) -> None:
        endpoint = make_endpoint(query={"q": "d"}, script=["echo", "{id}", "{q}", "{n}"])

        def _argv() -> list[str]:
            params = resolve_params(endpoint, {"id": "7"}, [("q", "x")], b'{"n": 1.0}')
            return expand_argv(endpoint.script, params)

        assert _argv() == _argv() == ["echo", "7", "x", "1"]
