"""
Expression Parser
=================
Ordered-choice recursive-descent parser for the imfx expression language.

Grammar::

    digit    := '0'..'9'
    number   := digit+
    size     := number 'x' number
    imageRef := digit
    fit      := "ft(" size ")"
    fill     := "fl(" size ")"
    blur     := "gb(" number ")"
    overlay  := "pi(" expr ")"
    step     := fit | fill | overlay | blur | imageRef
    expr     := imageRef ('.' step)*

Words are emitted into an :class:`EncodeBuffer` while matching: a number pushes
its value, an image reference pushes its index followed by ``Tag.IMAGE`` and a
compound step pushes its tag once fully matched. An image reference used as a
chained step replaces everything before it in its chain, so the words of that
chain are discarded and the buffer stays readable from the end by arity alone.
Every rule restores both the input position and the buffer length when it
fails, so a failed alternative leaves no operand words behind at any nesting
depth.
"""
from __future__ import annotations

import functools
import logging
from typing import Callable, Optional

from imfx import config
from imfx.errors import BufferOverflowError, ExpressionTooDeep, ExpressionTooLong, IllegalExpression, \
    ImageIndexOutOfRange, NumberTooLarge
from imfx.model.buffer import EncodeBuffer, EncodedExpression
from imfx.model.tags import Tag

logger = logging.getLogger(__name__)

DIGITS = "0123456789"

RuleMethod = Callable[["Parser"], bool]


def rule(method: RuleMethod) -> RuleMethod:
    """
    Turn a matching method into a grammar rule with rollback.

    The input position and buffer mark are captured on entry. They are restored
    if the method returns False or raises.
    """
    @functools.wraps(method)
    def wrapper(self: Parser) -> bool:
        position, mark = self.position, self.buffer.mark()
        try:
            matched = method(self)
        except Exception:
            self._rewind(position, mark)
            raise
        if not matched:
            self._rewind(position, mark)
        return matched

    return wrapper


class Parser:
    """
    Matches one expression text against the grammar.

    Each public rule method returns True and advances :attr:`position` on a
    match, or returns False leaving position and buffer untouched.

    Args:
        text: Source expression.
        buffer: Buffer receiving the encoded words.
        image_count: Number of available images. When given, image references
            must be below it.
        max_depth: Maximum overlay nesting depth.
        max_number: Largest accepted numeric argument.
    """
    def __init__(
        self,
        text: str,
        buffer: EncodeBuffer,
        image_count: Optional[int] = None,
        max_depth: Optional[int] = None,
        max_number: Optional[int] = None,
    ) -> None:
        self.text = text
        self.buffer = buffer
        self.image_count = image_count
        self.max_depth: int = config.MAX_NESTING_DEPTH if max_depth is None else max_depth
        self.max_number: int = config.MAX_NUMBER if max_number is None else max_number
        self.position = 0
        self.farthest = 0
        self._depth = 0

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(text={self.text!r}, position={self.position})"

    @property
    def at_end(self) -> bool:
        return self.position >= len(self.text)

    # --------------------------------------------------------------------------
    # Grammar rules
    # --------------------------------------------------------------------------
    @rule
    def number(self) -> bool:
        start = self.position
        while not self.at_end and self.text[self.position] in DIGITS:
            self.position += 1
        if self.position == start:
            self._fail()
            return False
        digits = self.text[start:self.position].lstrip("0") or "0"
        if len(digits) > len(str(self.max_number)) or int(digits) > self.max_number:
            raise NumberTooLarge(
                self.text,
                start,
                f"number at column {start + 1} exceeds the maximum of {self.max_number}",
            )
        self._emit(int(digits))
        return True

    @rule
    def size(self) -> bool:
        return self.number() and self._literal("x") and self.number()

    @rule
    def image_ref(self) -> bool:
        start = self.position
        index = self._digit()
        if index is None:
            return False
        if self.image_count is not None and index >= self.image_count:
            raise ImageIndexOutOfRange(self.text, start, index, self.image_count)
        self._emit(index)
        self._emit(Tag.IMAGE)
        return True

    @rule
    def fit(self) -> bool:
        return self._call(Tag.FIT, self.size)

    @rule
    def fill(self) -> bool:
        return self._call(Tag.FILL, self.size)

    @rule
    def blur(self) -> bool:
        return self._call(Tag.BLUR, self.number)

    @rule
    def overlay(self) -> bool:
        return self._call(Tag.OVERLAY, self._nested_expression)

    @rule
    def step(self) -> bool:
        return self.fit() or self.fill() or self.overlay() or self.blur() or self.image_ref()

    @rule
    def expression(self) -> bool:
        start = self.buffer.mark()
        if not self.image_ref():
            return False
        while self._chained_step():
            if self.buffer[-1] == Tag.IMAGE:
                # A chained image reference ignores its input; drop the dead chain.
                index = self.buffer[-2]
                self.buffer.rollback_to(start)
                self._emit(index)
                self._emit(Tag.IMAGE)
        return True

    @rule
    def _chained_step(self) -> bool:
        return self._literal(".") and self.step()

    def _nested_expression(self) -> bool:
        if self._depth >= self.max_depth:
            raise ExpressionTooDeep(
                self.text,
                self.position,
                f"overlay nesting deeper than {self.max_depth} levels at column {self.position + 1}",
            )
        self._depth += 1
        try:
            return self.expression()
        finally:
            self._depth -= 1

    # --------------------------------------------------------------------------
    # Terminals & helpers
    # --------------------------------------------------------------------------
    def _call(self, tag: Tag, argument: Callable[[], bool]) -> bool:
        """Match ``<mnemonic>(<argument>)`` and emit `tag` on success."""
        if self._literal(f"{tag.mnemonic}(") and argument() and self._literal(")"):
            self._emit(tag)
            return True
        return False

    def _literal(self, literal: str) -> bool:
        if self.text.startswith(literal, self.position):
            self.position += len(literal)
            return True
        matched = 0
        while (
            matched < len(literal)
            and self.position + matched < len(self.text)
            and self.text[self.position + matched] == literal[matched]
        ):
            matched += 1
        self._fail(self.position + matched)
        return False

    def _digit(self) -> Optional[int]:
        if not self.at_end and self.text[self.position] in DIGITS:
            value = DIGITS.index(self.text[self.position])
            self.position += 1
            return value
        self._fail()
        return None

    def _emit(self, word: int) -> None:
        try:
            self.buffer.push(word)
        except BufferOverflowError as exc:
            raise ExpressionTooLong(self.text, self.position, str(exc)) from exc

    def _fail(self, position: Optional[int] = None) -> None:
        self.farthest = max(self.farthest, self.position if position is None else position)

    def _rewind(self, position: int, mark: int) -> None:
        self.position = position
        self.buffer.rollback_to(mark)


def parse_into(
    text: str,
    buffer: EncodeBuffer,
    image_count: Optional[int] = None,
    max_depth: Optional[int] = None,
) -> None:
    """
    Parse `text` and append its encoding to `buffer`.

    On failure the buffer is left exactly as long as it was on entry.

    Raises:
        IllegalExpression: If the text is not a complete expression.
    """
    parser = Parser(text, buffer, image_count=image_count, max_depth=max_depth)
    mark = buffer.mark()
    if parser.expression() and parser.at_end:
        return
    buffer.rollback_to(mark)
    raise IllegalExpression(text, max(parser.farthest, parser.position))


def parse(
    text: str,
    image_count: Optional[int] = None,
    capacity: Optional[int] = None,
    max_depth: Optional[int] = None,
) -> EncodedExpression:
    """
    Compile an expression into its frozen encoded form.

    Args:
        text: Expression such as ``"0.ft(100x100)"``.
        image_count: Number of images the expression may reference.
        capacity: Encode buffer capacity in words.
        max_depth: Maximum overlay nesting depth.

    Raises:
        IllegalExpression: If the text does not match the grammar, references an
            image that does not exist, or exceeds the configured limits.

    Returns:
        The encoded expression.
    """
    logger.debug(f"Parsing expression {text!r}")
    buffer = EncodeBuffer(capacity)
    parse_into(text, buffer, image_count=image_count, max_depth=max_depth)
    encoded = buffer.freeze(text)
    logger.debug(f"Encoded {text!r} into {len(encoded)} words.")
    return encoded
