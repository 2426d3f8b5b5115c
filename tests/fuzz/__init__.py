"""Fuzz tests for GoTmplEngine.

This package contains:
- test_parser_fuzz: arbitrary and generated template text through the parser
- test_depth_exhaustion: nesting limits at parse and execution time

Python 3.13+.
"""
