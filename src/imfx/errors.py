"""
Error Taxonomy
==============
All user-facing failures derive from :class:`ImfxError`; the CLI catches that
base class, prints a single diagnostic line and exits with code 1.

:class:`MalformedExpression` is deliberately *not* an :class:`ImfxError`. It
signals a broken parser/evaluator invariant and is left to propagate.
"""
from __future__ import annotations

from typing import Optional


class ImfxError(Exception):
    """Base class for every error reported to the user."""


class UsageError(ImfxError):
    """Wrong command-line arguments."""


class BufferOverflowError(ImfxError):
    """The encode buffer is already at capacity."""

    def __init__(self, capacity: int) -> None:
        super().__init__(f"encode buffer capacity of {capacity} words exceeded")
        self.capacity = capacity


class IllegalExpression(ImfxError):
    """
    The expression text does not match the grammar.

    Args:
        expression: The full source text.
        position: Farthest input offset the parser reached, if known.
        detail: Human-readable reason appended to the message.
    """

    def __init__(self, expression: str, position: Optional[int] = None, detail: Optional[str] = None) -> None:
        self.expression = expression
        self.position = position
        self.detail = detail or self._describe_position(expression, position)
        message = f"illegal expression '{expression}'"
        if self.detail:
            message += f": {self.detail}"
        super().__init__(message)

    @staticmethod
    def _describe_position(expression: str, position: Optional[int]) -> str:
        if position is None:
            return ""
        if position >= len(expression):
            return f"unexpected end of input at column {position + 1}"
        return f"unexpected '{expression[position]}' at column {position + 1}"


class ImageIndexOutOfRange(IllegalExpression):
    """An image reference names an image that was not supplied."""

    def __init__(self, expression: str, position: int, index: int, image_count: int) -> None:
        self.index = index
        self.image_count = image_count
        super().__init__(
            expression,
            position,
            f"image index {index} at column {position + 1} is out of range "
            f"({image_count} image{'s' if image_count != 1 else ''} given)",
        )


class ExpressionTooLong(IllegalExpression):
    """The encoded expression does not fit into the encode buffer."""


class ExpressionTooDeep(IllegalExpression):
    """Overlay nesting exceeds the configured maximum depth."""


class NumberTooLarge(IllegalExpression):
    """A numeric argument exceeds the configured maximum."""


class DecodeError(ImfxError):
    """An input image could not be read."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"cannot decode image '{path}': {reason}")
        self.path = path


class ImageTooLarge(ImfxError):
    """An operation would produce an image above the configured pixel limit."""

    def __init__(self, width: int, height: int, limit: int) -> None:
        super().__init__(f"result of {width}x{height} pixels exceeds the limit of {limit} pixels")
        self.width = width
        self.height = height
        self.limit = limit


class EncodeError(ImfxError):
    """The final image could not be encoded."""


class MalformedExpression(RuntimeError):
    """The encoded buffer violates its structural invariants."""
