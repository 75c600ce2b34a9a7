"""
Diagnostic rendering of encoded expressions.

The decoder walks the words exactly like the evaluator does but builds a
:class:`Node` tree instead of applying image operations. The tree can be
pretty-printed or turned back into canonical expression text.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from imfx.errors import MalformedExpression
from imfx.model.tags import Tag


@dataclass(frozen=True)
class Node:
    """
    One decoded operation.

    Attributes:
        tag: The operation.
        operands: Operand words in source order (image index, width/height, strength).
        source: The sub-expression the operation is applied to; None for an image reference.
        argument: The nested expression of an overlay.
    """
    tag: Tag
    operands: tuple[int, ...] = ()
    source: Optional[Node] = None
    argument: Optional[Node] = None


def decode(expression: Sequence[int]) -> Node:
    """
    Rebuild the operation tree from encoded words.

    Raises:
        MalformedExpression: If the words are not exactly one expression.
    """
    words = tuple(expression)
    if not words:
        raise MalformedExpression("Cannot decode an empty expression.")
    cursor, node = _decode(words, len(words))
    if cursor != 0:
        raise MalformedExpression(f"{cursor} word(s) left undecoded before the root image reference.")
    return node


def render_tree(expression: Sequence[int]) -> str:
    """
    Render the operations as an indented tree, last applied operation first.

    ``0.ft(100x50).pi(1.gb(200))`` renders as::

        pi
          gb
            200
          id 1
        ft
          100
          50
        id 0
    """
    lines: list[str] = []
    _render(decode(expression), 0, lines)
    return "\n".join(lines)


def unparse(expression: Sequence[int]) -> str:
    """Regenerate canonical expression text from encoded words."""
    return _unparse(decode(expression))


def dump_words(expression: Sequence[int]) -> str:
    """Two rows of hexadecimal: word offsets, then word values."""
    words = tuple(expression)
    offsets = " ".join(f"{i:8x}" for i in range(len(words)))
    values = " ".join(f"{word:8x}" for word in words)
    return f"{offsets}\n{values}"


def _decode(words: tuple[int, ...], cursor: int) -> tuple[int, Node]:
    steps: list[tuple[Tag, tuple[int, ...], Optional[Node]]] = []
    while True:
        cursor, word = _read(words, cursor)
        tag = Tag.from_word(word)

        if tag.is_nested:
            cursor, argument = _decode(words, cursor)
            steps.append((tag, (), argument))
            continue

        operands: list[int] = []
        for _ in range(tag.arity):
            cursor, operand = _read(words, cursor)
            operands.append(operand)
        operands.reverse()

        if tag is Tag.IMAGE:
            node = Node(tag, tuple(operands))
            break
        steps.append((tag, tuple(operands), None))

    for tag, operands, argument in reversed(steps):
        node = Node(tag, operands, source=node, argument=argument)
    return cursor, node


def _read(words: tuple[int, ...], cursor: int) -> tuple[int, int]:
    if cursor <= 0:
        raise MalformedExpression("Expression ran past the start of the buffer.")
    return cursor - 1, words[cursor - 1]


def _render(node: Optional[Node], indent: int, lines: list[str]) -> None:
    while node is not None:
        pad = " " * indent
        if node.tag is Tag.IMAGE:
            lines.append(f"{pad}{node.tag.mnemonic} {node.operands[0]}")
        else:
            lines.append(f"{pad}{node.tag.mnemonic}")
            lines.extend(f"{pad}  {operand}" for operand in node.operands)
            if node.argument is not None:
                _render(node.argument, indent + 2, lines)
        node = node.source


def _unparse(node: Node) -> str:
    steps: list[Node] = []
    while node.tag is not Tag.IMAGE:
        steps.append(node)
        node = node.source
    text = str(node.operands[0])

    for step in reversed(steps):
        match step.tag:
            case Tag.FIT | Tag.FILL:
                width, height = step.operands
                text += f".{step.tag.mnemonic}({width}x{height})"
            case Tag.BLUR:
                text += f".{step.tag.mnemonic}({step.operands[0]})"
            case Tag.OVERLAY:
                text += f".{step.tag.mnemonic}({_unparse(step.argument)})"
            case _:
                raise MalformedExpression(f"Unhandled tag {step.tag!r}.")
    return text
