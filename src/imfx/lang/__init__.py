"""
The LANGUAGE layer: grammar, evaluator and diagnostic rendering of imfx
expressions such as ``0.fl(640x480).gb(150).pi(1.ft(200x200))``.
"""
from imfx.lang.evaluator import evaluate
from imfx.lang.parser import Parser, parse, parse_into
from imfx.lang.tree import decode, dump_words, render_tree, unparse

__all__ = [
    "Parser",
    "decode",
    "dump_words",
    "evaluate",
    "parse",
    "parse_into",
    "render_tree",
    "unparse",
]
