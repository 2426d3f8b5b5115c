"""Tests for the Template and TemplateFactory facade."""

import io
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from gotmplengine import (
    Template,
    TemplateFactory,
    TemplateNotFoundError,
    TemplateParseError,
    TemplateSyntaxError,
    get_shared_registry,
)

LETTER = """
Dear {{.Name}},
{{if .Attended}}
It was a pleasure to see you at the wedding.
{{- else}}
It is a shame you couldn't make it to the wedding.
{{- end}}
{{with .Gift -}}
Thank you for the lovely {{.}}.
{{end}}
Best wishes,
Josie
"""

MASTER = 'Names:{{block "list" .}}{{"\\n"}}{{range .}}{{println "-" .}}{{end}}{{end}}'
OVERLAY = '{{define "list"}} {{join ", " .}}{{end}} '
GUARDIANS = ["Gamora", "Groot", "Nebula", "Rocket", "Star-Lord"]


class TestGoldenOutput:
    """Known outputs of the classic text/template examples."""

    @pytest.mark.parametrize(
        ("recipient", "expected"),
        [
            (
                {"Name": "Aunt Mildred", "Gift": "bone china tea set", "Attended": True},
                "\nDear Aunt Mildred,\n\nIt was a pleasure to see you at the wedding.\n"
                "Thank you for the lovely bone china tea set.\n\nBest wishes,\nJosie\n",
            ),
            (
                {"Name": "Uncle John", "Gift": "moleskin pants", "Attended": False},
                "\nDear Uncle John,\n\nIt is a shame you couldn't make it to the wedding.\n"
                "Thank you for the lovely moleskin pants.\n\nBest wishes,\nJosie\n",
            ),
            (
                {"Name": "Cousin Rodney", "Gift": "", "Attended": False},
                "\nDear Cousin Rodney,\n\nIt is a shame you couldn't make it to the wedding.\n"
                "\nBest wishes,\nJosie\n",
            ),
        ],
    )
    def test_wedding_letters(self, recipient: dict[str, object], expected: str) -> None:
        letter = Template("letter").parse(LETTER)
        assert letter.render(recipient) == expected

    def test_block_default_body(self) -> None:
        master = Template("names").parse(MASTER)
        assert master.render(GUARDIANS) == (
            "Names:\n- Gamora\n- Groot\n- Nebula\n- Rocket\n- Star-Lord\n"
        )

    def test_block_overlay_on_clone(self) -> None:
        master = Template("names").parse(MASTER)
        overlay = master.clone().parse(OVERLAY)
        assert overlay.render(GUARDIANS) == "Names: Gamora, Groot, Nebula, Rocket, Star-Lord"
        assert master.render(GUARDIANS).startswith("Names:\n- Gamora")


class TestParsing:
    """Merging parsed roots into the set."""

    def test_reparse_replaces(self, factory: TemplateFactory) -> None:
        factory.parse("t", "one")
        factory.parse("t", "two")
        assert factory.render("t") == "two"

    def test_reparse_leaves_other_roots(self, factory: TemplateFactory) -> None:
        factory.parse("a", "first a")
        factory.parse("b", "{{ . }} b")
        factory.parse("a", "second a")
        assert factory.render("a") == "second a"
        assert factory.render("b", "still") == "still b"
        assert sorted(factory.root_nodes) == ["a", "b"]

    def test_empty_definition_keeps_existing(self, factory: TemplateFactory) -> None:
        factory.parse("t", '{{define "d"}}kept{{end}}{{template "d"}}')
        factory.parse("other", '{{define "d"}}  {{/* nothing */}}{{end}}')
        assert factory.render("t") == "kept"

    def test_parse_error(self, factory: TemplateFactory) -> None:
        with pytest.raises(TemplateParseError, match="Internal error during parsing of bad") as info:
            factory.parse("bad", '{{define "d"}}x{{end}}{{if}}')
        assert isinstance(info.value.__cause__, TemplateSyntaxError)
        assert not factory.has_template("bad")
        assert not factory.has_template("d")

    def test_source_size_limit(self) -> None:
        factory = TemplateFactory(max_source_size=10)
        with pytest.raises(TemplateParseError):
            factory.parse("t", "x" * 20)

    def test_parse_file(self, tmp_path: Path) -> None:
        path = tmp_path / "greeting.tmpl"
        path.write_text("hi {{ . }}", encoding="utf-8")
        template = Template("main").parse_file(path)
        assert template.has_template("greeting.tmpl")
        assert template.render("Ann", name="greeting.tmpl") == "hi Ann"

    def test_parse_stream(self) -> None:
        template = Template("s").parse_stream(io.StringIO("[{{ . }}]"))
        assert template.render(1) == "[1]"

    def test_two_argument_parse_names_unnamed_handle(self) -> None:
        template = Template().parse("first", "a")
        template.parse("second", "b")
        assert template.name == "first"
        assert template.root_names() == ["first", "second"]


class TestLookupAndIntrospection:
    def test_get_template_missing(self, factory: TemplateFactory) -> None:
        with pytest.raises(TemplateNotFoundError, match="Template 'nope' not found."):
            factory.get_template("nope")

    def test_render_missing(self, factory: TemplateFactory) -> None:
        with pytest.raises(TemplateNotFoundError):
            factory.render("nope")

    def test_lookup(self) -> None:
        template = Template("main").parse('{{define "part"}}p{{end}}m')
        part = template.lookup("part")
        assert part is not None
        assert part.name == "part"
        assert part.render() == "p"
        assert template.lookup("absent") is None

    def test_root_names_and_nodes(self) -> None:
        template = Template("main").parse('{{define "b"}}{{end}}{{define "a"}}x{{end}}')
        assert template.root_names() == ["a", "b", "main"]
        assert template.root("a") is not None
        assert template.root("zzz") is None
        assert "main" in template.factory.root_nodes

    def test_repr(self, factory: TemplateFactory) -> None:
        factory.parse("t", "x")
        assert repr(factory.get_template("t")) == "Template(name='t', templates=1)"


class TestExecution:
    def test_execute_forms(self) -> None:
        template = Template("main").parse('{{define "x"}}X{{.}}{{end}}M{{.}}')
        own, named = io.StringIO(), io.StringIO()
        template.execute(1, own)
        template.execute("x", 2, named)
        assert (own.getvalue(), named.getvalue()) == ("M1", "X2")

    def test_execute_bad_arity(self) -> None:
        template = Template("main").parse("x")
        with pytest.raises(TypeError, match="got 1 arguments"):
            template.execute(io.StringIO())

    def test_custom_delimiters(self) -> None:
        template = Template("d", delimiters=("[[", "]]")).parse("[[ .x ]] {{ .x }}")
        assert template.render({"x": 1}) == "1 {{ .x }}"

    @pytest.mark.parametrize(
        ("options", "message"),
        [
            ({"delimiters": ("", "}}")}, "left_delim must not be empty"),
            ({"comments": ("/*", "")}, "right_comment must not be empty"),
            ({"max_nesting_depth": 0}, "max_nesting_depth must be positive"),
            ({"max_source_size": -1}, "max_source_size must be positive"),
        ],
    )
    def test_invalid_options(self, options: dict[str, object], message: str) -> None:
        with pytest.raises(ValueError, match=message):
            TemplateFactory(**options)  # type: ignore[arg-type]

    def test_thread_safe_rendering(self) -> None:
        factory = TemplateFactory(thread_safe=True)
        factory.parse("t", '{{define "row"}}<{{.}}>{{end}}{{range .}}{{include "row" .}}{{end}}')
        assert factory.is_thread_safe

        def work(n: int) -> str:
            return factory.render("t", list(range(n)))

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(work, range(40)))
        assert results[3] == "<0><1><2>"
        assert all(result.count("<") == n for n, result in enumerate(results))


class TestSetIsolation:
    def test_clone_is_independent(self) -> None:
        original = Template("main").parse("orig")
        copy = original.clone()
        copy.parse("changed")
        copy.parse("extra", "e")
        assert original.render() == "orig"
        assert copy.render() == "changed"
        assert not original.has_template("extra")

    def test_derive_keeps_options_and_provider(self) -> None:
        factory = TemplateFactory(delimiters=("<%", "%>"), max_nesting_depth=7)
        factory.parse("t", "<% . %>")
        derived = factory.derive()
        assert derived.max_depth == 7
        assert derived.options.delimiters == ("<%", "%>")
        assert derived.render("t", "ok") == "ok"

    def test_add_function_is_per_factory(self, factory: TemplateFactory) -> None:
        factory.add_function("shout", lambda s: s.upper() + "!")
        factory.parse("t", "{{ shout . }}")
        assert factory.render("t", "hi") == "HI!"
        assert "shout" not in get_shared_registry()
        assert "shout" not in TemplateFactory().functions

    def test_unknown_function_rejected_at_parse(self, factory: TemplateFactory) -> None:
        with pytest.raises(TemplateParseError) as info:
            factory.parse("t", "{{ shout . }}")
        assert "shout" in str(info.value.__cause__)

    def test_handle_add_function_chains(self) -> None:
        template = Template("t").add_function("twice", lambda v: v * 2).parse("{{ twice 21 }}")
        assert template.render() == "42"
