"""Nesting limits at their boundaries.

Depth close to the limit must succeed; depth past it must fail with the
engine's own error, never RecursionError.

Python 3.13+.
"""

from __future__ import annotations

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from gotmplengine import DepthLimitExceededError, TemplateFactory, TemplateSyntaxError, parse
from gotmplengine.constants import MAX_DEPTH

pytestmark = pytest.mark.fuzz


def _nested_ifs(depth: int) -> str:
    return "{{if true}}" * depth + "x" + "{{end}}" * depth


class TestParserDepth:
    @given(depth_offset=st.integers(min_value=-5, max_value=5))
    @settings(max_examples=20, deadline=None)
    def test_nested_blocks_at_boundary(self, depth_offset: int) -> None:
        depth = MAX_DEPTH + depth_offset
        if depth <= MAX_DEPTH:
            roots = parse("deep", _nested_ifs(depth))
            assert "deep" in roots
        else:
            with pytest.raises(TemplateSyntaxError):
                parse("deep", _nested_ifs(depth))

    def test_far_past_limit_fails_cleanly(self) -> None:
        with pytest.raises(TemplateSyntaxError):
            parse("deep", _nested_ifs(MAX_DEPTH * 20))

    def test_nested_parentheses(self) -> None:
        text = "{{ " + "(" * (MAX_DEPTH * 2) + "1" + ")" * (MAX_DEPTH * 2) + " }}"
        with pytest.raises(TemplateSyntaxError):
            parse("parens", text)


class TestExecutionDepth:
    @given(limit=st.integers(min_value=1, max_value=50))
    @settings(max_examples=20, deadline=None)
    def test_self_invocation_hits_limit(self, limit: int) -> None:
        factory = TemplateFactory(max_nesting_depth=limit)
        factory.parse("t", '{{define "r"}}{{template "r" .}}{{end}}{{template "r" .}}')
        with pytest.raises(DepthLimitExceededError):
            factory.render("t")

    @given(limit=st.integers(min_value=1, max_value=50))
    @settings(max_examples=20, deadline=None)
    def test_self_include_hits_limit(self, limit: int) -> None:
        factory = TemplateFactory(max_nesting_depth=limit)
        factory.parse("t", '{{define "r"}}{{include "r" .}}{{end}}{{include "r" .}}')
        with pytest.raises(DepthLimitExceededError):
            factory.render("t")
