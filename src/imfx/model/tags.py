"""Operation tags stored in the encoded expression."""
from __future__ import annotations

from enum import IntEnum
from typing import Optional

from imfx.errors import MalformedExpression


# ------------------------------------------------------------------------------
# Enums
# ------------------------------------------------------------------------------
class Tag(IntEnum):
    """
    Closed set of operations. The integer value is the word written to the buffer.
    """
    FIT = 0
    FILL = 1
    OVERLAY = 2
    BLUR = 3
    IMAGE = 4

    @property
    def mnemonic(self) -> str:
        """Two-letter name used in the expression language."""
        return _MNEMONICS[self]

    @property
    def arity(self) -> Optional[int]:
        """
        Number of operand words preceding the tag, or None when the operand is a
        nested sub-expression (Overlay).
        """
        return _ARITY[self]

    @property
    def is_nested(self) -> bool:
        return self.arity is None

    @classmethod
    def from_word(cls, word: int) -> Tag:
        """
        Decode a buffer word into a tag.

        Raises:
            MalformedExpression: If `word` is not a tag value.
        """
        try:
            return cls(word)
        except ValueError:
            raise MalformedExpression(f"word {word!r} is not an operation tag") from None


_MNEMONICS: dict[Tag, str] = {
    Tag.FIT: "ft",
    Tag.FILL: "fl",
    Tag.OVERLAY: "pi",
    Tag.BLUR: "gb",
    Tag.IMAGE: "id",
}

_ARITY: dict[Tag, Optional[int]] = {
    Tag.FIT: 2,
    Tag.FILL: 2,
    Tag.OVERLAY: None,
    Tag.BLUR: 1,
    Tag.IMAGE: 1,
}
