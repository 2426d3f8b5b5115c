"""Tests for the Sprig string functions."""

import string
from collections.abc import Callable
from typing import Any

import pytest
from hypothesis import given
from hypothesis import strategies as st

from gotmplengine import TemplateExecutionError, get_shared_registry

type Render = Callable[..., str]


def call(name: str, *args: Any) -> Any:
    return get_shared_registry().call(name, args)


class TestTrimAndCase:
    """trim*, upper/lower, title/untitle and case conversion."""

    def test_trim_family(self) -> None:
        assert call("trim", "  x \n") == "x"
        assert call("trimAll", "$", "$5.00$") == "5.00"
        assert call("trimPrefix", "-", "-x-") == "x-"
        assert call("trimSuffix", "-", "-x-") == "-x"

    def test_case(self) -> None:
        assert call("upper", "abc") == "ABC"
        assert call("lower", "ABC") == "abc"
        assert call("title", "hello wORLD") == "Hello WORLD"
        assert call("untitle", "Hello World") == "hello world"
        assert call("swapcase", "aB") == "Ab"

    @pytest.mark.parametrize(
        ("name", "source", "expected"),
        [
            ("camelcase", "http_server", "HttpServer"),
            ("camelcase", "some-thing else", "SomeThingElse"),
            ("snakecase", "FirstName", "first_name"),
            ("snakecase", "HTTPServer", "http_server"),
            ("kebabcase", "FirstName", "first-name"),
        ],
    )
    def test_case_conversion(self, name: str, source: str, expected: str) -> None:
        assert call(name, source) == expected

    def test_nil_is_empty_string(self) -> None:
        assert call("upper", None) == ""


class TestSubstrings:
    """substr, trunc, abbrev, abbrevboth, repeat."""

    def test_substr(self) -> None:
        assert call("substr", 0, 5, "hello world") == "hello"
        assert call("substr", 6, -1, "hello world") == "world"
        assert call("substr", -1, 5, "hello world") == "hello"

    def test_trunc(self) -> None:
        assert call("trunc", 5, "hello world") == "hello"
        assert call("trunc", -5, "hello world") == "world"
        assert call("trunc", 50, "short") == "short"

    def test_abbrev(self) -> None:
        assert call("abbrev", 5, "hello world") == "he..."
        assert call("abbrev", 3, "hello world") == "hello world"
        assert call("abbrevboth", 5, 10, "1234 5678 9123") == "...5678..."

    def test_repeat(self) -> None:
        assert call("repeat", 3, "ab") == "ababab"
        with pytest.raises(TemplateExecutionError, match="negative repeat count"):
            call("repeat", -1, "ab")


class TestPredicatesAndReplace:
    """contains, hasPrefix, hasSuffix, replace."""

    def test_predicates(self) -> None:
        assert call("contains", "ell", "hello") is True
        assert call("hasPrefix", "he", "hello") is True
        assert call("hasSuffix", "lo", "hello") is True
        assert call("hasSuffix", "x", "hello") is False

    def test_replace(self) -> None:
        assert call("replace", " ", "-", "a b c") == "a-b-c"


class TestQuotingAndJoining:
    """quote, squote, cat, join, split family."""

    def test_quote(self) -> None:
        assert call("quote", "a", None, 1) == '"a" "1"'
        assert call("quote", 'say "hi"') == '"say \\"hi\\""'
        assert call("squote", "a", "b") == "'a' 'b'"

    def test_printed_quote_is_unescaped(self, render: Render) -> None:
        """Printing unescapes the result, so embedded quotes lose their backslashes."""
        assert render('{{ quote "say \\"hi\\"" }}') == '"say "hi""'
        assert render("{{ quote . }}", "a\nb") == '"a\nb"'
        assert render("{{ len (quote .) }}", 'say "hi"') == "12"

    def test_cat(self) -> None:
        assert call("cat", "a", None, 1, [2]) == "a 1 [2]"

    def test_join(self) -> None:
        assert call("join", "-", ["a", 1, None, "b"]) == "a-1-b"
        assert call("join", ",", "already") == "already"

    def test_split(self) -> None:
        assert call("split", "$", "foo$bar$baz") == {"_0": "foo", "_1": "bar", "_2": "baz"}
        assert call("splitn", "$", 2, "foo$bar$baz") == {"_0": "foo", "_1": "bar$baz"}
        assert call("splitList", ",", "a,b") == ["a", "b"]

    def test_split_fields_in_template(self, render: Render) -> None:
        assert render('{{ $p := split "." "a.b" }}{{ $p._1 }}') == "b"

    def test_sort_alpha(self) -> None:
        assert call("sortAlpha", [3, "b", "a"]) == ["3", "a", "b"]

    def test_to_strings(self) -> None:
        assert call("toString", 1.5) == "1.5"
        assert call("toStrings", [1, None, "x"]) == ["1", "", "x"]

    def test_join_rejects_mapping(self) -> None:
        with pytest.raises(TemplateExecutionError, match="cannot use type map"):
            call("join", ",", {"a": 1})


class TestLayout:
    """indent, nindent, nospace, initials, wrap, plural."""

    def test_indent(self) -> None:
        assert call("indent", 2, "a\nb") == "  a\n  b"
        assert call("nindent", 2, "a") == "\n  a"

    def test_indent_in_pipeline(self, render: Render) -> None:
        source = "spec:{{ .Body | nindent 2 }}"
        assert render(source, {"Body": "a: 1\nb: 2"}) == "spec:\n  a: 1\n  b: 2"

    def test_nospace_and_initials(self) -> None:
        assert call("nospace", "a b\tc") == "abc"
        assert call("initials", "First Try") == "FT"

    def test_wrap(self) -> None:
        assert call("wrap", 5, "hello world") == "hello\nworld"
        assert call("wrapWith", 5, "<br>", "hello world") == "hello<br>world"

    def test_plural(self) -> None:
        assert call("plural", "one", "many", 1) == "one"
        assert call("plural", "one", "many", 2) == "many"


class TestRandom:
    """Random string generators."""

    def test_alphabets(self) -> None:
        assert len(call("randAlphaNum", 8)) == 8
        assert call("randNumeric", 5).isdigit()
        assert call("randAlpha", 6).isalpha()
        assert all(32 <= ord(c) < 127 for c in call("randAscii", 10))
        assert call("randAlpha", -3) == ""

    @given(st.text(alphabet=string.ascii_letters, max_size=20))
    def test_shuffle_keeps_characters(self, text: str) -> None:
        assert sorted(call("shuffle", text)) == sorted(text)


class TestStringProperties:
    """Invariants over generated strings."""

    @given(st.text(max_size=30), st.integers(min_value=0, max_value=8))
    def test_indent_preserves_line_count(self, text: str, width: int) -> None:
        result = call("indent", width, text)
        assert result.count("\n") == text.count("\n")
        assert all(line.startswith(" " * width) for line in result.split("\n"))

    @given(st.text(max_size=30), st.integers(min_value=-40, max_value=40))
    def test_trunc_never_grows(self, text: str, length: int) -> None:
        assert len(call("trunc", length, text)) <= len(text)
