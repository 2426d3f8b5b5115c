"""Tests for the Go predefined template functions."""

from collections.abc import Callable
from typing import Any

import pytest

from gotmplengine import TemplateExecutionError, TemplateFactory, get_shared_registry
from gotmplengine.library.builtins import go_quote, go_sprint, go_sprintf, go_sprintln

type Render = Callable[..., str]


def call(name: str, *args: Any) -> Any:
    return get_shared_registry().call(name, args)


class TestLogic:
    """and, or, not."""

    def test_and_returns_deciding_operand(self) -> None:
        assert call("and", 1, 0, 2) == 0
        assert call("and", 1, "x") == "x"
        assert call("and", "") == ""

    def test_or_returns_deciding_operand(self) -> None:
        assert call("or", "", 0, "x") == "x"
        assert call("or", "", 0) == 0
        assert call("or", [1]) == [1]

    def test_not(self) -> None:
        assert call("not", []) is True
        assert call("not", "a") is False

    def test_in_template(self, render: Render) -> None:
        source = "{{if and .A (not .B)}}yes{{else}}no{{end}}"
        assert render(source, {"A": 1, "B": ""}) == "yes"
        assert render(source, {"A": 1, "B": "x"}) == "no"

    def test_and_stops_at_first_falsy_operand(self, render: Render) -> None:
        assert render('{{ and false (fail "unreached") }}') == "false"
        assert render('{{ and 1 0 (fail "unreached") }}') == "0"
        assert render("{{ and 1 2 3 }}") == "3"

    def test_or_stops_at_first_truthy_operand(self, render: Render) -> None:
        assert render('{{ or "x" (fail "unreached") }}') == "x"
        assert render('{{ or .Missing (index . "k") }}', {"k": "found"}) == "found"

    def test_short_circuit_guards_nil_access(self, render: Render) -> None:
        source = '{{ if and .Items (index .Items 0) }}first{{ else }}none{{ end }}'
        assert render(source, {"Items": []}) == "none"
        assert render(source, {"Items": ["a"]}) == "first"

    def test_piped_value_is_last_operand(self, render: Render) -> None:
        assert render('{{ "z" | and 1 }}') == "z"
        assert render('{{ "z" | or 0 "" }}') == "z"

    def test_overridden_and_is_called_normally(self, factory: TemplateFactory) -> None:
        factory.add_function("and", lambda *args: len(args))
        factory.parse("t", "{{ and false 0 1 }}")
        assert factory.render("t") == "3"


class TestComparison:
    """eq, ne, lt, le, gt, ge."""

    def test_eq_any_candidate(self) -> None:
        assert call("eq", 1, 1) is True
        assert call("eq", 3, 1, 2, 3) is True
        assert call("eq", "a", "b") is False

    def test_bool_never_equals_int(self) -> None:
        assert call("eq", True, 1) is False
        assert call("ne", False, 0) is True

    def test_eq_requires_candidate(self) -> None:
        with pytest.raises(TemplateExecutionError, match="missing argument for comparison"):
            call("eq", 1)

    def test_ordering(self) -> None:
        assert call("lt", 1, 2) is True
        assert call("le", 2, 2) is True
        assert call("gt", "b", "a") is True
        assert call("ge", 1, 1.5) is False

    def test_ordering_type_errors(self) -> None:
        with pytest.raises(TemplateExecutionError, match="incompatible types for comparison"):
            call("lt", 1, "a")
        with pytest.raises(TemplateExecutionError, match="invalid type for comparison: <nil>"):
            call("gt", None, 1)


class TestContainers:
    """len, index, slice, call."""

    def test_len(self) -> None:
        assert call("len", "héllo") == 5
        assert call("len", {"a": 1}) == 1
        assert call("len", None) == 0
        with pytest.raises(TemplateExecutionError, match="len of type int"):
            call("len", 5)

    def test_index_nested(self) -> None:
        assert call("index", [[1, 2], [3]], 0, 1) == 2
        assert call("index", {"a": {"b": "c"}}, "a", "b") == "c"

    def test_index_missing_key_is_nil(self) -> None:
        assert call("index", {"a": 1}, "b") is None

    def test_index_errors(self) -> None:
        with pytest.raises(TemplateExecutionError, match="index out of range: 5"):
            call("index", [1], 5)
        with pytest.raises(TemplateExecutionError, match="index of untyped nil"):
            call("index", None, 0)
        with pytest.raises(TemplateExecutionError, match="cannot index slice/array with type string"):
            call("index", [1], "0")

    def test_slice(self) -> None:
        assert call("slice", "hello", 1, 3) == "el"
        assert call("slice", [1, 2, 3], 1) == [2, 3]
        assert call("slice", "abc") == "abc"
        assert call("slice", [1, 2, 3, 4], 0, 2, 3) == [1, 2]

    def test_slice_errors(self) -> None:
        with pytest.raises(TemplateExecutionError, match="invalid slice index: 2 > 1"):
            call("slice", [1, 2, 3], 2, 1)
        with pytest.raises(TemplateExecutionError, match="cannot 3-index slice a string"):
            call("slice", "abcd", 0, 1, 2)
        with pytest.raises(TemplateExecutionError, match="slice of untyped nil"):
            call("slice", None)

    def test_call(self, render: Render) -> None:
        assert render("{{ call .F 2 3 }}", {"F": lambda a, b: a * b}) == "6"
        with pytest.raises(TemplateExecutionError, match="call of nil"):
            render("{{ call .Missing }}", {})


class TestPrinting:
    """print, println, printf."""

    def test_sprint_spacing(self) -> None:
        """Spaces go between operands when neither is a string."""
        assert go_sprint("a", 1, 2, "b") == "a1 2b"
        assert go_sprint() == ""

    def test_sprintln(self) -> None:
        assert go_sprintln("a", 1, None) == "a 1 <nil>\n"

    @pytest.mark.parametrize(
        ("fmt", "args", "expected"),
        [
            ("%5s|%-5s|%05d", ("ab", "cd", 42), "   ab|cd   |00042"),
            ("%x %X %o %b", (255, 255, 8, 5), "ff FF 10 101"),
            ("%#x %+d", (255, 5), "0xff +5"),
            ("%.2f|%8.3f", (3.14159, 3.14159), "3.14|   3.142"),
            ("%e", (1234.5,), "1.234500e+03"),
            ("%g", (1e21,), "1e+21"),
            ("%t %T %T", (True, 1.5, "s"), "true float64 string"),
            ("%c%c", (72, 105), "Hi"),
            ("%q", ('a"b',), '"a\\"b"'),
            ("%x", ("hi",), "6869"),
            ("%v %s", ([1, 2], {"k": "v"}), "[1 2] map[k:v]"),
            ("100%%", (), "100%"),
        ],
    )
    def test_printf_verbs(self, fmt: str, args: tuple[Any, ...], expected: str) -> None:
        assert go_sprintf(fmt, *args) == expected

    def test_printf_bad_and_missing(self) -> None:
        """Mismatches are rendered in Go's error notation, not raised."""
        assert go_sprintf("%d", "x") == "%!d(string=x)"
        assert go_sprintf("%d %d", 1) == "1 %!d(MISSING)"
        assert go_sprintf("%d", 1, 2) == "1%!(EXTRA int=2)"

    def test_star_width(self) -> None:
        assert go_sprintf("%*d", 4, 7) == "   7"

    def test_go_quote(self) -> None:
        assert go_quote('tab\there "q"\n') == '"tab\\there \\"q\\"\\n"'
        assert go_quote("\x01") == '"\\x01"'

    def test_printf_in_template(self, render: Render) -> None:
        assert render('{{ printf "%s has %d items" .Name (len .Items) }}', {
            "Name": "cart",
            "Items": [1, 2],
        }) == "cart has 2 items"


class TestEscaping:
    """html, js, urlquery."""

    def test_html(self) -> None:
        assert call("html", "<a href='x'>") == "&lt;a href=&#39;x&#39;&gt;"
        assert call("html", 'a & "b"') == "a &amp; &#34;b&#34;"

    def test_html_of_several_operands(self) -> None:
        assert call("html", 1, 2) == "1 2"

    def test_js(self) -> None:
        assert call("js", "it's <b>") == "it\\'s \\u003Cb\\u003E"
        assert call("js", "a\nb") == "a\\u000Ab"

    def test_urlquery(self) -> None:
        assert call("urlquery", "a b&c/d") == "a+b%26c%2Fd"
