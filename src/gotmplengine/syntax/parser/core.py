"""Recursive-descent template parser.

Consumes the lexer's token stream and produces a root registry: the
primary body under the caller's name plus every {{define}} and {{block}}
found in the text. Parsing is all-or-nothing; the first fault raises
TemplateSyntaxError and no partial registry escapes.

Grammar outline:
    list      := (TEXT | COMMENT | action)*
    action    := "{{" (control | pipeline) "}}"
    control   := if | range | with | template | block | else | end
    pipeline  := [decl ("," decl)? (":=" | "=")] command ("|" command)*
    command   := operand (SPACE operand)*
    operand   := term FIELD*
    term      := IDENTIFIER | "." | nil | $var | FIELD | BOOL | NUMBER
               | STRING | "(" pipeline ")"

Python 3.13+.
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Sequence
from dataclasses import dataclass

from gotmplengine.constants import (
    DEFAULT_LEFT_COMMENT,
    DEFAULT_LEFT_DELIM,
    DEFAULT_RIGHT_COMMENT,
    DEFAULT_RIGHT_DELIM,
    MAX_DEPTH,
    MAX_SOURCE_SIZE,
)
from gotmplengine.core.depth_guard import DepthGuard
from gotmplengine.diagnostics import ErrorTemplate, TemplateSyntaxError
from gotmplengine.diagnostics.codes import Diagnostic
from gotmplengine.enums import PipeContext, TokenKind
from gotmplengine.syntax.ast import (
    ActionNode,
    BoolNode,
    BranchNode,
    ChainNode,
    CommandNode,
    CommentNode,
    DotNode,
    FieldNode,
    IdentifierNode,
    IfNode,
    ListNode,
    NilNode,
    Node,
    NumberNode,
    PipeNode,
    RangeNode,
    RootRegistry,
    Statement,
    StringNode,
    TemplateNode,
    TextNode,
    VariableNode,
    WithNode,
)
from gotmplengine.syntax.lexer import lex
from gotmplengine.syntax.tokens import Token

from .primitives import number_node, string_node

__all__ = ["Parser", "is_empty_tree", "parse"]

logger = logging.getLogger(__name__)

_OPERAND_START = frozenset({
    TokenKind.BOOL,
    TokenKind.CHAR_CONSTANT,
    TokenKind.COMPLEX,
    TokenKind.DOT,
    TokenKind.FIELD,
    TokenKind.IDENTIFIER,
    TokenKind.NUMBER,
    TokenKind.NIL,
    TokenKind.RAW_STRING,
    TokenKind.STRING,
    TokenKind.VARIABLE,
    TokenKind.LEFT_PAREN,
})

_BRANCH_TYPES: dict[TokenKind, type[BranchNode]] = {
    TokenKind.IF: IfNode,
    TokenKind.RANGE: RangeNode,
    TokenKind.WITH: WithNode,
}

_BRANCH_CONTEXT: dict[TokenKind, PipeContext] = {
    TokenKind.IF: PipeContext.IF,
    TokenKind.RANGE: PipeContext.RANGE,
    TokenKind.WITH: PipeContext.WITH,
}


@dataclass(frozen=True, slots=True)
class _Terminator:
    """{{end}} or {{else}} returned by the action parser to the enclosing list."""

    token: Token

    @property
    def is_else(self) -> bool:
        return self.token.kind is TokenKind.ELSE


def is_empty_tree(node: Node) -> bool:
    """True when a body contains nothing but whitespace text and comments.

    Empty bodies never replace an existing definition, which lets a file
    consisting only of {{define}} blocks be merged into a template set
    without clobbering the set's main body.
    """
    match node:
        case ListNode():
            return all(is_empty_tree(child) for child in node.children)
        case TextNode():
            return not node.text.strip()
        case CommentNode():
            return True
        case _:
            return False


class Parser:
    """Builds the root registry for one template text.

    Not reusable: create one Parser per token stream.

    Args:
        tokens: Output of the lexer
        name: Name bound to the primary body
        functions: Names accepted in function position; None disables the check
        max_nesting_depth: Limit for nested blocks and parenthesized pipelines
    """

    __slots__ = ("_depth", "_functions", "_index", "_name", "_roots", "_tokens")

    def __init__(
        self,
        tokens: Sequence[Token],
        *,
        name: str = "",
        functions: Collection[str] | None = None,
        max_nesting_depth: int = MAX_DEPTH,
    ) -> None:
        if not tokens or tokens[-1].kind not in (TokenKind.EOF, TokenKind.ERROR):
            msg = "token stream must end with EOF or ERROR"
            raise ValueError(msg)
        self._tokens = tokens
        self._index = 0
        self._name = name
        self._functions = functions
        self._roots: RootRegistry = {}
        self._depth = DepthGuard(
            max_depth=max_nesting_depth,
            error_factory=lambda limit: TemplateSyntaxError(
                ErrorTemplate.parse_depth_exceeded(limit)
            ),
        )

    def parse(self) -> RootRegistry:
        """Parse the whole token stream.

        Returns:
            Mapping of template name to body; the primary body is bound
            to the parser's name

        Raises:
            TemplateSyntaxError: On any lexical or structural fault
        """
        root = ListNode(pos=self._peek().offset)
        while self._peek().kind is not TokenKind.EOF:
            if self._peek().kind is TokenKind.LEFT_DELIM:
                mark = self._index
                self._next()
                if self._next_non_space().kind is TokenKind.DEFINE:
                    self._parse_definition()
                    continue
                self._index = mark
            node = self._text_or_action()
            if isinstance(node, _Terminator):
                raise self._unexpected_terminator(node)
            root.append(node)
        self._add_root(self._name, root)
        logger.debug("Parsed template %r: %d root(s)", self._name, len(self._roots))
        return self._roots

    # ------------------------------------------------------------------
    # Token navigation
    # ------------------------------------------------------------------

    def _next(self) -> Token:
        token = self._tokens[self._index]
        if token.kind is TokenKind.ERROR:
            raise TemplateSyntaxError(
                ErrorTemplate.lex_error(token.text, token.offset, token.line, token.column)
            )
        if token.kind is not TokenKind.EOF:
            self._index += 1
        return token

    def _peek(self) -> Token:
        token = self._tokens[self._index]
        if token.kind is TokenKind.ERROR:
            raise TemplateSyntaxError(
                ErrorTemplate.lex_error(token.text, token.offset, token.line, token.column)
            )
        return token

    def _backup(self, token: Token) -> None:
        """Step back over token (EOF is never consumed, so it needs no step)."""
        if token.kind is not TokenKind.EOF:
            self._index -= 1

    def _next_non_space(self) -> Token:
        token = self._next()
        while token.kind is TokenKind.SPACE:
            token = self._next()
        return token

    def _peek_non_space(self) -> Token:
        token = self._next_non_space()
        self._backup(token)
        return token

    def _expect(self, kind: TokenKind, context: str) -> Token:
        token = self._next_non_space()
        if token.kind is not kind:
            raise self._unexpected(token, context)
        return token

    # ------------------------------------------------------------------
    # Errors
    # ------------------------------------------------------------------

    def _error(self, diagnostic: Diagnostic) -> TemplateSyntaxError:
        return TemplateSyntaxError(diagnostic)

    def _unexpected(self, token: Token, context: str) -> TemplateSyntaxError:
        if token.kind is TokenKind.EOF:
            return self._error(
                ErrorTemplate.unexpected_eof(context, token.offset, token.line, token.column)
            )
        return self._error(
            ErrorTemplate.unexpected_token(
                str(token), context, token.offset, token.line, token.column
            )
        )

    def _unexpected_terminator(self, terminator: _Terminator) -> TemplateSyntaxError:
        token = terminator.token
        if terminator.is_else:
            return self._error(
                ErrorTemplate.unexpected_else(
                    "unmatched {{else}}", token.offset, token.line, token.column
                )
            )
        return self._error(ErrorTemplate.unexpected_end(token.offset, token.line, token.column))

    # ------------------------------------------------------------------
    # Root registry
    # ------------------------------------------------------------------

    def _add_root(self, name: str, body: ListNode, token: Token | None = None) -> None:
        existing = self._roots.get(name)
        if existing is not None:
            if is_empty_tree(body):
                return
            if not is_empty_tree(existing):
                offset, line, column = (
                    (token.offset, token.line, token.column) if token else (0, 1, 1)
                )
                raise self._error(
                    ErrorTemplate.syntax_error(
                        f"multiple definition of template {name!r}", offset, line, column
                    )
                )
        self._roots[name] = body

    def _parse_template_name(self, context: str) -> tuple[str, Token]:
        token = self._next_non_space()
        if token.kind not in (TokenKind.STRING, TokenKind.RAW_STRING):
            raise self._unexpected(token, context)
        return string_node(token).text, token

    def _parse_definition(self) -> None:
        """{{define "name"}} body {{end}} (the "define" token is consumed)."""
        context = "define clause"
        name, token = self._parse_template_name(context)
        self._expect(TokenKind.RIGHT_DELIM, context)
        with self._depth:
            body, terminator = self._item_list("define", token)
        if terminator.is_else:
            raise self._unexpected(terminator.token, context)
        self._add_root(name, body, token)

    # ------------------------------------------------------------------
    # Lists and actions
    # ------------------------------------------------------------------

    def _item_list(self, keyword: str, opener: Token) -> tuple[ListNode, _Terminator]:
        """Collect nodes up to the {{end}} or {{else}} closing a block."""
        body = ListNode(pos=self._peek_non_space().offset)
        while self._peek_non_space().kind is not TokenKind.EOF:
            node = self._text_or_action()
            if isinstance(node, _Terminator):
                return body, node
            body.append(node)
        raise self._error(
            ErrorTemplate.unclosed_block(keyword, opener.offset, opener.line, opener.column)
        )

    def _text_or_action(self) -> Statement | _Terminator:
        token = self._next_non_space()
        match token.kind:
            case TokenKind.TEXT:
                return TextNode(token.text, pos=token.offset)
            case TokenKind.LEFT_DELIM:
                return self._action()
            case TokenKind.COMMENT:
                return CommentNode(token.text, pos=token.offset)
            case _:
                raise self._unexpected(token, "input")

    def _action(self) -> Statement | _Terminator:
        token = self._next_non_space()
        match token.kind:
            case TokenKind.BLOCK:
                return self._block_control(token)
            case TokenKind.ELSE:
                return self._else_control(token)
            case TokenKind.END:
                self._expect(TokenKind.RIGHT_DELIM, "end")
                return _Terminator(token)
            case TokenKind.IF | TokenKind.RANGE | TokenKind.WITH:
                return self._branch_control(token)
            case TokenKind.TEMPLATE:
                return self._template_control(token)
        self._backup(token)
        start = self._peek()
        return ActionNode(
            self._pipeline(PipeContext.ACTION, TokenKind.RIGHT_DELIM), pos=start.offset
        )

    def _else_control(self, token: Token) -> _Terminator:
        # "{{else if ...}}" / "{{else with ...}}": leave the keyword pending so
        # the enclosing branch parses it as a nested branch.
        following = self._peek_non_space()
        if following.kind not in (TokenKind.IF, TokenKind.WITH):
            self._expect(TokenKind.RIGHT_DELIM, "else")
        return _Terminator(token)

    def _branch_control(self, opener: Token) -> BranchNode:
        node_type = _BRANCH_TYPES[opener.kind]
        keyword = opener.text
        with self._depth:
            pipe = self._pipeline(_BRANCH_CONTEXT[opener.kind], TokenKind.RIGHT_DELIM)
            body, terminator = self._item_list(keyword, opener)
            else_body: ListNode | None = None
            if terminator.is_else:
                else_body = self._else_branch(opener, terminator.token)
        return node_type(pipe, body, else_body, pos=opener.offset)

    def _else_branch(self, opener: Token, else_token: Token) -> ListNode:
        following = self._peek()
        chained = (opener.kind is TokenKind.IF and following.kind is TokenKind.IF) or (
            opener.kind is TokenKind.WITH and following.kind is TokenKind.WITH
        )
        if chained:
            # {{if a}}x{{else if b}}y{{end}} == {{if a}}x{{else}}{{if b}}y{{end}}{{end}}:
            # the nested branch consumes the single shared {{end}}.
            nested_opener = self._next()
            return ListNode([self._branch_control(nested_opener)], pos=else_token.offset)
        else_body, terminator = self._item_list(opener.text, opener)
        if terminator.is_else:
            token = terminator.token
            raise self._error(
                ErrorTemplate.unexpected_else(
                    f"multiple {{{{else}}}} in {opener.text}",
                    token.offset,
                    token.line,
                    token.column,
                )
            )
        return else_body

    def _template_control(self, opener: Token) -> TemplateNode:
        context = "template clause"
        name, _ = self._parse_template_name(context)
        pipe: PipeNode | None = None
        token = self._next_non_space()
        if token.kind is not TokenKind.RIGHT_DELIM:
            self._backup(token)
            pipe = self._pipeline(PipeContext.TEMPLATE, TokenKind.RIGHT_DELIM)
        return TemplateNode(name, pipe, pos=opener.offset)

    def _block_control(self, opener: Token) -> TemplateNode:
        """{{block "name" pipeline}} body {{end}}: define name and invoke it here."""
        context = "block clause"
        name, name_token = self._parse_template_name(context)
        pipe = self._pipeline(PipeContext.BLOCK, TokenKind.RIGHT_DELIM)
        with self._depth:
            body, terminator = self._item_list("block", opener)
        if terminator.is_else:
            raise self._unexpected(terminator.token, context)
        self._add_root(name, body, name_token)
        return TemplateNode(name, pipe, pos=opener.offset)

    # ------------------------------------------------------------------
    # Pipelines
    # ------------------------------------------------------------------

    def _pipeline(self, context: PipeContext, end: TokenKind) -> PipeNode:
        start = self._peek_non_space()
        declarations, is_assign = self._declarations(context)

        commands: list[CommandNode] = []
        after_pipe = False
        while True:
            token = self._next_non_space()
            if token.kind is end:
                if after_pipe:
                    raise self._error(
                        ErrorTemplate.missing_value(
                            "pipe", token.offset, token.line, token.column
                        )
                    )
                break
            if token.kind in _OPERAND_START:
                self._backup(token)
                commands.append(self._command())
                after_pipe = self._tokens[self._index - 1].kind is TokenKind.PIPE
                continue
            raise self._unexpected(token, str(context))

        pipe = PipeNode(
            context,
            tuple(declarations),
            tuple(commands),
            is_assign=is_assign,
            pos=start.offset,
        )
        self._check_pipeline(pipe, start)
        return pipe

    def _declarations(self, context: PipeContext) -> tuple[list[VariableNode], bool]:
        """Parse "$x :=", "$x =" or (range only) "$i, $e :=".

        Returns:
            Declared variables and whether "=" (rebind) was used
        """
        declarations: list[VariableNode] = []
        while (variable := self._peek_non_space()).kind is TokenKind.VARIABLE:
            mark = self._index
            self._next_non_space()
            following = self._peek_non_space()
            if following.kind in (TokenKind.ASSIGN, TokenKind.DECLARE):
                self._next_non_space()
                declarations.append(VariableNode((variable.text,), pos=variable.offset))
                return declarations, following.kind is TokenKind.ASSIGN
            if following.kind is TokenKind.CHAR and following.text == ",":
                self._next_non_space()
                declarations.append(VariableNode((variable.text,), pos=variable.offset))
                if context is PipeContext.RANGE and len(declarations) < 2:
                    if self._peek_non_space().kind is TokenKind.VARIABLE:
                        continue
                    reason = "range can only initialize variables"
                else:
                    reason = f"too many declarations in {context}"
                raise self._error(
                    ErrorTemplate.invalid_declaration(
                        reason, following.offset, following.line, following.column
                    )
                )
            # Not a declaration: the variable is the first operand.
            self._index = mark
            break
        if declarations:
            token = self._peek_non_space()
            raise self._error(
                ErrorTemplate.invalid_declaration(
                    "expected := or = after variable list",
                    token.offset,
                    token.line,
                    token.column,
                )
            )
        return declarations, False

    def _check_pipeline(self, pipe: PipeNode, start: Token) -> None:
        if not pipe.commands:
            raise self._error(
                ErrorTemplate.missing_value(str(pipe.context), start.offset, start.line, start.column)
            )
        for stage, command in enumerate(pipe.commands[1:], start=2):
            first = command.args[0]
            if isinstance(first, BoolNode | DotNode | NilNode | NumberNode | StringNode):
                line, column = self._line_col(command.pos)
                raise self._error(
                    ErrorTemplate.syntax_error(
                        f"non executable command in pipeline stage {stage}",
                        command.pos,
                        line,
                        column,
                    )
                )

    def _line_col(self, offset: int) -> tuple[int, int]:
        for token in self._tokens:
            if token.offset >= offset:
                return token.line, token.column
        return self._tokens[-1].line, self._tokens[-1].column

    def _command(self) -> CommandNode:
        start = self._peek_non_space()
        args: list[Node] = []
        while True:
            self._peek_non_space()
            operand = self._operand()
            if operand is not None:
                args.append(operand)
            token = self._next()
            match token.kind:
                case TokenKind.SPACE:
                    continue
                case TokenKind.RIGHT_DELIM | TokenKind.RIGHT_PAREN:
                    self._backup(token)
                case TokenKind.PIPE:
                    pass
                case _:
                    raise self._unexpected(token, "operand")
            break
        if not args:
            raise self._error(
                ErrorTemplate.syntax_error("empty command", start.offset, start.line, start.column)
            )
        return CommandNode(tuple(args), pos=start.offset)

    def _operand(self) -> Node | None:
        node = self._term()
        if node is None:
            return None
        if self._peek().kind is not TokenKind.FIELD:
            return node
        start = self._peek()
        chain = ChainNode(node, pos=start.offset)
        while self._peek().kind is TokenKind.FIELD:
            chain.append(self._next().text)
        match node:
            case FieldNode():
                return FieldNode(node.identifiers + tuple(chain.fields), pos=node.pos)
            case VariableNode():
                return VariableNode(node.identifiers + tuple(chain.fields), pos=node.pos)
            case BoolNode() | StringNode() | NumberNode() | NilNode() | DotNode():
                raise self._error(
                    ErrorTemplate.syntax_error(
                        f"unexpected . after term {str(node)!r}",
                        start.offset,
                        start.line,
                        start.column,
                    )
                )
            case _:
                return chain

    def _term(self) -> Node | None:  # noqa: PLR0911
        token = self._next_non_space()
        match token.kind:
            case TokenKind.IDENTIFIER:
                if self._functions is not None and token.text not in self._functions:
                    raise self._error(
                        ErrorTemplate.function_not_defined(
                            token.text, token.offset, token.line, token.column
                        )
                    )
                return IdentifierNode(token.text, pos=token.offset)
            case TokenKind.DOT:
                return DotNode(pos=token.offset)
            case TokenKind.NIL:
                return NilNode(pos=token.offset)
            case TokenKind.VARIABLE:
                return VariableNode((token.text,), pos=token.offset)
            case TokenKind.FIELD:
                return FieldNode((token.text[1:],), pos=token.offset)
            case TokenKind.BOOL:
                return BoolNode(token.text == "true", pos=token.offset)
            case TokenKind.CHAR_CONSTANT | TokenKind.COMPLEX | TokenKind.NUMBER:
                try:
                    return number_node(token)
                except ValueError as e:
                    raise self._error(
                        ErrorTemplate.invalid_number(
                            token.text, token.offset, token.line, token.column
                        )
                    ) from e
            case TokenKind.LEFT_PAREN:
                with self._depth:
                    return self._pipeline(PipeContext.PAREN, TokenKind.RIGHT_PAREN)
            case TokenKind.STRING | TokenKind.RAW_STRING:
                return string_node(token)
        self._backup(token)
        return None


def parse(
    name: str,
    source: str,
    *,
    functions: Collection[str] | None = None,
    keep_comments: bool = False,
    left_delim: str = DEFAULT_LEFT_DELIM,
    right_delim: str = DEFAULT_RIGHT_DELIM,
    left_comment: str = DEFAULT_LEFT_COMMENT,
    right_comment: str = DEFAULT_RIGHT_COMMENT,
    max_nesting_depth: int = MAX_DEPTH,
    max_source_size: int = MAX_SOURCE_SIZE,
) -> RootRegistry:
    """Lex and parse template text into a root registry.

    Args:
        name: Name bound to the primary body
        source: Template text
        functions: Known function names; None skips the parse-time check
        keep_comments: Keep comments as CommentNode entries
        left_delim: Action opening delimiter
        right_delim: Action closing delimiter
        left_comment: Comment opening marker
        right_comment: Comment closing marker
        max_nesting_depth: Limit for nested blocks
        max_source_size: Maximum accepted source length in characters

    Returns:
        Mapping of template name to body

    Raises:
        TemplateSyntaxError: If the text is not a valid template

    Example:
        >>> roots = parse("page", '{{define "t"}}T{{end}}main')
        >>> sorted(roots)
        ['page', 't']
    """
    if len(source) > max_source_size:
        raise TemplateSyntaxError(ErrorTemplate.source_too_large(len(source), max_source_size))
    tokens = lex(source, keep_comments, left_delim, right_delim, left_comment, right_comment)
    return Parser(
        tokens,
        name=name,
        functions=functions,
        max_nesting_depth=max_nesting_depth,
    ).parse()
