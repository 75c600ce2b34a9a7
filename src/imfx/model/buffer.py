"""
Encode Buffer
=============
Append-only word storage for the compiled expression.

The parser is the only writer. It pushes operand and tag words while matching
and truncates back to a previously taken mark when an alternative fails. Once
parsing succeeds the buffer is frozen into an :class:`EncodedExpression`, the
immutable input of the evaluator.

Classes:
    EncodedExpression: Frozen word sequence plus the source text.
    EncodeBuffer: Growable, bounded word buffer with mark/rollback.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Iterator, Optional

from imfx import config
from imfx.errors import BufferOverflowError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EncodedExpression:
    """
    The intermediate representation: a self-delimiting postfix word sequence.
    """
    words: tuple[int, ...]
    source: str = ""

    def __len__(self) -> int:
        return len(self.words)

    def __iter__(self) -> Iterator[int]:
        return iter(self.words)


class EncodeBuffer:
    """
    Bounded word buffer supporting tentative writes.

    Args:
        capacity: Maximum number of words. Defaults to ``config.BUFFER_CAPACITY``.
    """
    def __init__(self, capacity: Optional[int] = None) -> None:
        self.capacity: int = config.BUFFER_CAPACITY if capacity is None else capacity
        if self.capacity <= 0:
            raise ValueError(f"Buffer capacity must be positive, got {self.capacity}.")
        self._words: list[int] = []
        self._frozen = False

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(len={len(self._words)}, capacity={self.capacity})"

    def __len__(self) -> int:
        return len(self._words)

    def __iter__(self) -> Iterator[int]:
        return iter(self._words)

    def __getitem__(self, index: int) -> int:
        return self._words[index]

    @property
    def words(self) -> tuple[int, ...]:
        """Snapshot of the current content."""
        return tuple(self._words)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def push(self, word: int) -> None:
        """
        Append one word.

        Raises:
            BufferOverflowError: If the buffer is full.
            RuntimeError: If the buffer has been frozen.
        """
        if self._frozen:
            raise RuntimeError("Cannot push to a frozen encode buffer.")
        if len(self._words) >= self.capacity:
            raise BufferOverflowError(self.capacity)
        self._words.append(int(word))
        logger.debug(f"PUT {word!r} @{len(self._words) - 1}")

    def mark(self) -> int:
        """Return the current length, to be passed to :meth:`rollback_to` later."""
        return len(self._words)

    def rollback_to(self, mark: int) -> None:
        """
        Truncate the buffer back to `mark`.

        Raises:
            ValueError: If `mark` lies beyond the current length.
        """
        if self._frozen:
            raise RuntimeError("Cannot roll back a frozen encode buffer.")
        if not 0 <= mark <= len(self._words):
            raise ValueError(f"Invalid rollback mark {mark} for buffer of length {len(self._words)}.")
        if mark < len(self._words):
            logger.debug(f"UNDO {len(self._words) - mark} word(s) back to @{mark}")
            del self._words[mark:]

    def freeze(self, source: str = "") -> EncodedExpression:
        """Stop accepting writes and return the immutable IR."""
        self._frozen = True
        return EncodedExpression(words=tuple(self._words), source=source)
