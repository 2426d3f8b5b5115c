"""Parser tests: root registry, block structure, pipelines, literals and syntax errors."""

import pytest

from gotmplengine import TemplateSyntaxError
from gotmplengine.enums import PipeContext
from gotmplengine.syntax import (
    ActionNode,
    ChainNode,
    CommentNode,
    FieldNode,
    IdentifierNode,
    IfNode,
    ListNode,
    Node,
    NumberNode,
    PipeNode,
    RangeNode,
    StringNode,
    TemplateNode,
    TextNode,
    VariableNode,
    WithNode,
    is_empty_tree,
    parse,
)


def first_arg(source: str) -> Node:
    """First operand of the first action in source."""
    action = parse("t", source)["t"].children[0]
    assert isinstance(action, ActionNode)
    return action.pipe.commands[0].args[0]


class TestRootRegistry:
    """Main body and {{define}}/{{block}} roots."""

    def test_main_body(self) -> None:
        """Text and actions become children of the named root."""
        roots = parse("main", "Hello {{.Name}}!")
        body = roots["main"]
        assert [type(child) for child in body.children] == [TextNode, ActionNode, TextNode]
        assert body.children[0] == TextNode("Hello ")
        assert body.children[2] == TextNode("!")

    def test_define_creates_root(self) -> None:
        """{{define}} registers a separate root and leaves no trace in the body."""
        roots = parse("page", '{{define "t"}}T{{end}}main')
        assert sorted(roots) == ["page", "t"]
        assert roots["t"].children == [TextNode("T")]
        assert roots["page"].children == [TextNode("main")]

    def test_block_defines_and_invokes(self) -> None:
        """{{block}} defines a root and leaves a template call in place."""
        roots = parse("p", '{{block "b" .}}B{{end}}')
        assert roots["b"].children == [TextNode("B")]
        node = roots["p"].children[0]
        assert isinstance(node, TemplateNode)
        assert node.name == "b"
        assert str(node) == '{{template "b" .}}'

    def test_duplicate_definition_rejected(self) -> None:
        """Two non-empty definitions of one name in one text is an error."""
        with pytest.raises(TemplateSyntaxError, match="multiple definition of template"):
            parse("t", '{{define "a"}}x{{end}}{{define "a"}}y{{end}}')

    def test_empty_redefinition_is_ignored(self) -> None:
        """An empty definition does not replace a non-empty one."""
        roots = parse("t", '{{define "a"}}x{{end}}{{define "a"}} {{/* c */}} {{end}}')
        assert roots["a"].children == [TextNode("x")]

    def test_empty_source(self) -> None:
        """Empty text parses to an empty root."""
        assert parse("t", "")["t"].children == []


class TestBranches:
    """if / range / with and their else branches."""

    def test_if_else(self) -> None:
        """{{if}} with {{else}} fills both bodies."""
        node = parse("t", "{{if .A}}a{{else}}b{{end}}")["t"].children[0]
        assert isinstance(node, IfNode)
        assert node.body.children == [TextNode("a")]
        assert node.else_body is not None
        assert node.else_body.children == [TextNode("b")]
        assert node.pipe.context is PipeContext.IF

    def test_else_if_nests(self) -> None:
        """{{else if}} becomes an IfNode inside the else body."""
        node = parse("t", "{{if .A}}a{{else if .B}}b{{else}}c{{end}}")["t"].children[0]
        assert isinstance(node, IfNode)
        assert node.else_body is not None
        nested = node.else_body.children[0]
        assert isinstance(nested, IfNode)
        assert nested.body.children == [TextNode("b")]
        assert nested.else_body is not None
        assert nested.else_body.children == [TextNode("c")]

    def test_else_with_nests(self) -> None:
        """{{else with}} chains like {{else if}}."""
        node = parse("t", "{{with .A}}a{{else with .B}}b{{end}}")["t"].children[0]
        assert isinstance(node, WithNode)
        assert node.else_body is not None
        assert isinstance(node.else_body.children[0], WithNode)

    def test_range_declarations(self) -> None:
        """range accepts one or two declared variables."""
        node = parse("t", "{{range $i, $e := .Items}}{{$e}}{{end}}")["t"].children[0]
        assert isinstance(node, RangeNode)
        assert [var.name for var in node.pipe.declarations] == ["$i", "$e"]
        assert node.else_body is None

    def test_range_else(self) -> None:
        """range supports an else branch."""
        node = parse("t", "{{range .Items}}x{{else}}none{{end}}")["t"].children[0]
        assert isinstance(node, RangeNode)
        assert node.else_body is not None
        assert node.else_body.children == [TextNode("none")]

    def test_unclosed_block(self) -> None:
        """A block without {{end}} is reported at its opener."""
        with pytest.raises(TemplateSyntaxError, match="never closed") as exc_info:
            parse("t", "{{if .A}}x")
        assert exc_info.value.line == 1

    def test_unmatched_end(self) -> None:
        """{{end}} with nothing open is an error."""
        with pytest.raises(TemplateSyntaxError, match="unmatched"):
            parse("t", "x{{end}}")

    def test_unmatched_else(self) -> None:
        """{{else}} outside a branch is an error."""
        with pytest.raises(TemplateSyntaxError, match="unmatched"):
            parse("t", "x{{else}}")

    def test_multiple_else(self) -> None:
        """A branch takes at most one plain {{else}}."""
        with pytest.raises(TemplateSyntaxError, match="multiple"):
            parse("t", "{{if .A}}a{{else}}b{{else}}c{{end}}")

    def test_nesting_limit(self) -> None:
        """Blocks nested past max_nesting_depth are rejected."""
        source = "{{if 1}}" * 3 + "x" + "{{end}}" * 3
        assert parse("t", source, max_nesting_depth=3)
        with pytest.raises(TemplateSyntaxError, match="maximum nesting depth"):
            parse("t", source, max_nesting_depth=2)


class TestPipelines:
    """Commands, declarations and pipeline checks."""

    def test_pipeline_stages(self) -> None:
        """| separates commands."""
        action = parse("t", '{{.A | printf "%s" | len}}')["t"].children[0]
        assert isinstance(action, ActionNode)
        commands = action.pipe.commands
        assert len(commands) == 3
        assert commands[1].args == (IdentifierNode("printf"), StringNode('"%s"', "%s"))

    def test_declaration(self) -> None:
        """$x := pipeline records a declaration."""
        action = parse("t", "{{$x := 1}}")["t"].children[0]
        assert isinstance(action, ActionNode)
        assert action.pipe.declarations == (VariableNode(("$x",)),)
        assert action.pipe.is_assign is False

    def test_assignment(self) -> None:
        """$x = pipeline is a rebinding."""
        action = parse("t", "{{$x := 1}}{{$x = 2}}")["t"].children[1]
        assert isinstance(action, ActionNode)
        assert action.pipe.is_assign is True

    def test_variable_fields(self) -> None:
        """$x.A.B keeps the variable name first."""
        node = first_arg("{{$.A.B}}")
        assert node == VariableNode(("$", "A", "B"))

    def test_field_chain(self) -> None:
        """.A.B is one FieldNode."""
        assert first_arg("{{.A.B}}") == FieldNode(("A", "B"))

    def test_parenthesized_chain(self) -> None:
        """(pipeline).Field is a ChainNode."""
        node = first_arg("{{(index .M 0).Name}}")
        assert isinstance(node, ChainNode)
        assert isinstance(node.node, PipeNode)
        assert node.fields == ["Name"]

    def test_trailing_pipe(self) -> None:
        """A pipe with nothing after it is missing a value."""
        with pytest.raises(TemplateSyntaxError, match="missing value for pipe"):
            parse("t", "{{.A | }}")

    def test_empty_action(self) -> None:
        """{{}} has no command."""
        with pytest.raises(TemplateSyntaxError, match="missing value"):
            parse("t", "{{ }}")

    def test_literal_after_pipe(self) -> None:
        """A literal cannot receive a piped value."""
        with pytest.raises(TemplateSyntaxError, match="non executable command in pipeline stage 2"):
            parse("t", "{{.A | 3}}")

    def test_field_on_literal(self) -> None:
        """Field access on a literal is a syntax error."""
        with pytest.raises(TemplateSyntaxError, match="unexpected . after term"):
            parse("t", '{{"a".X}}')

    def test_too_many_declarations(self) -> None:
        """Only range may declare two variables; never three."""
        with pytest.raises(TemplateSyntaxError, match="too many declarations in action"):
            parse("t", "{{$a, $b := 1}}")
        with pytest.raises(TemplateSyntaxError, match="too many declarations in range"):
            parse("t", "{{range $a, $b, $c := .}}{{end}}")

    def test_template_name_must_be_string(self) -> None:
        """{{template}} needs a quoted name."""
        with pytest.raises(TemplateSyntaxError, match="template clause"):
            parse("t", "{{template .X}}")


class TestFunctionCheck:
    """Parse-time function name validation."""

    def test_unknown_function_rejected(self) -> None:
        """With a function set, unknown identifiers are errors."""
        with pytest.raises(TemplateSyntaxError, match='function "nope" not defined'):
            parse("t", "{{nope 1}}", functions={"len"})

    def test_known_function_accepted(self) -> None:
        """Known identifiers parse to IdentifierNode."""
        assert first_arg("{{len .A}}") == IdentifierNode("len")
        parse("t", "{{len .A}}", functions={"len"})

    def test_no_function_set_skips_check(self) -> None:
        """Without a function set any identifier is accepted."""
        assert first_arg("{{anything}}") == IdentifierNode("anything")


class TestLiterals:
    """Number, string and character literals."""

    @pytest.mark.parametrize(
        ("source", "expected"),
        [
            ("42", 42),
            ("-7", -7),
            ("0x1F", 31),
            ("017", 15),
            ("0o17", 15),
            ("0b101", 5),
            ("1.5", 1.5),
            ("1e3", 1000.0),
            ("'a'", 97),
            ("2i", 2j),
            ("1+2i", 1 + 2j),
        ],
    )
    def test_number_values(self, source: str, expected: object) -> None:
        """Numeric literals evaluate to Python numbers of the matching type."""
        node = first_arg("{{" + source + "}}")
        assert isinstance(node, NumberNode)
        assert node.value == expected
        assert type(node.value) is type(expected)

    def test_float_spelling_stays_float(self) -> None:
        """1.0 is a float even though it is integral."""
        node = first_arg("{{1.0}}")
        assert isinstance(node, NumberNode)
        assert isinstance(node.value, float)

    def test_char_constant_flag(self) -> None:
        """Character constants are marked as such."""
        node = first_arg("{{'\\n'}}")
        assert isinstance(node, NumberNode)
        assert node.is_char
        assert node.value == 10

    def test_string_unquoting(self) -> None:
        """Quoted strings are unescaped; raw strings are taken verbatim."""
        node = first_arg('{{"a\\tb"}}')
        assert isinstance(node, StringNode)
        assert node.text == "a\tb"
        raw = first_arg("{{`a\\tb`}}")
        assert isinstance(raw, StringNode)
        assert raw.text == "a\\tb"

    def test_lone_sign_rejected(self) -> None:
        with pytest.raises(TemplateSyntaxError, match="bad number syntax"):
            parse("t", "{{ - }}")

    def test_lexer_error_surfaces(self) -> None:
        """Lexical faults raise TemplateSyntaxError with a position."""
        with pytest.raises(TemplateSyntaxError, match="unclosed action") as exc_info:
            parse("t", "ab\n{{.A")
        assert exc_info.value.line == 2


class TestCommentsAndLimits:
    """keep_comments, source size limit and is_empty_tree."""

    def test_comments_kept(self) -> None:
        """keep_comments stores CommentNode children."""
        body = parse("t", "a{{/* c */}}b", keep_comments=True)["t"]
        assert body.children == [TextNode("a"), CommentNode("/* c */"), TextNode("b")]

    def test_comments_dropped_by_default(self) -> None:
        """Comments vanish from the default tree."""
        assert parse("t", "a{{/* c */}}b")["t"].children == [TextNode("a"), TextNode("b")]

    def test_source_size_limit(self) -> None:
        """Oversized text is rejected before lexing."""
        with pytest.raises(TemplateSyntaxError, match="too large"):
            parse("t", "abc", max_source_size=2)

    def test_is_empty_tree(self) -> None:
        """Only whitespace text and comments count as empty."""
        assert is_empty_tree(ListNode([TextNode(" \n"), CommentNode("/* */")]))
        assert not is_empty_tree(ListNode([TextNode("x")]))
        assert not is_empty_tree(parse("t", "{{.A}}")["t"])

    def test_custom_delimiters(self) -> None:
        """Delimiters are configurable."""
        roots = parse("t", "<<.A>>{{.B}}", left_delim="<<", right_delim=">>")
        body = roots["t"]
        assert isinstance(body.children[0], ActionNode)
        assert body.children[1] == TextNode("{{.B}}")
