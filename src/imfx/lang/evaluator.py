"""
Expression Evaluator
====================
Interprets an encoded expression against a set of images.

The buffer is read from its end. Each tag is followed, reading backwards, by
exactly the words it owns: a fixed number of operands, or for an overlay two
complete sub-expressions. No lengths are stored, so the walk is driven only by
the tag read next.

A chain is walked in a loop down to its root image reference and its steps are
then applied in source order. Only overlay arguments recurse, so stack depth
follows overlay nesting and not chain length.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional, Sequence

import numpy as np

from imfx.backend import imaging
from imfx.dev import timed, timer
from imfx.errors import MalformedExpression
from imfx.model.tags import Tag

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)


def fit_scale(box_width: int, box_height: int, width: int, height: int) -> float:
    """Scale factor that makes a width x height image fit inside the box, never enlarging it."""
    return min(1.0, min(box_width / width, box_height / height))


def fill_scale(box_width: int, box_height: int, width: int, height: int) -> float:
    """Scale factor that makes a width x height image cover the box."""
    return max(box_width / width, box_height / height)


@timer
def evaluate(
    expression: Sequence[int],
    images: Sequence[npt.NDArray[np.uint8]],
) -> npt.NDArray[np.uint8]:
    """
    Run an encoded expression.

    Args:
        expression: Encoded words, usually an ``EncodedExpression``.
        images: Image set addressed by the expression's image references.

    Raises:
        MalformedExpression: If the words are not exactly one well-formed
            expression, or an image index is out of range.

    Returns:
        The final image. Input images are never modified.
    """
    words = tuple(expression)
    if not words:
        raise MalformedExpression("Cannot evaluate an empty expression.")

    cursor, image = _evaluate(words, len(words), images)
    if cursor != 0:
        raise MalformedExpression(f"{cursor} word(s) left unconsumed before the root image reference.")
    return image


def _evaluate(
    words: tuple[int, ...],
    cursor: int,
    images: Sequence[npt.NDArray[np.uint8]],
) -> tuple[int, npt.NDArray[np.uint8]]:
    """Evaluate the sub-expression ending just before `cursor`; return its start and result."""
    steps: list[tuple[Tag, tuple[int, ...], Optional[npt.NDArray[np.uint8]]]] = []
    while True:
        cursor, word = _read(words, cursor)
        tag = Tag.from_word(word)

        match tag:
            case Tag.IMAGE:
                cursor, index = _read(words, cursor)
                if not 0 <= index < len(images):
                    raise MalformedExpression(f"Image index {index} out of range for {len(images)} image(s).")
                image = imaging.clone(images[index])
                break

            case Tag.FIT | Tag.FILL:
                cursor, box_height = _read(words, cursor)
                cursor, box_width = _read(words, cursor)
                steps.append((tag, (box_width, box_height), None))

            case Tag.BLUR:
                cursor, strength = _read(words, cursor)
                steps.append((tag, (strength,), None))

            case Tag.OVERLAY:
                cursor, overlay = _evaluate(words, cursor, images)
                steps.append((tag, (), overlay))

            case _:
                raise MalformedExpression(f"Unhandled tag {tag!r}.")

    for tag, operands, overlay in reversed(steps):
        image = _apply(tag, operands, overlay, image)
    return cursor, image


def _apply(
    tag: Tag,
    operands: tuple[int, ...],
    overlay: Optional[npt.NDArray[np.uint8]],
    image: npt.NDArray[np.uint8],
) -> npt.NDArray[np.uint8]:
    match tag:
        case Tag.FIT | Tag.FILL:
            box_width, box_height = operands
            height, width = image.shape[:2]
            if tag is Tag.FIT:
                factor = fit_scale(box_width, box_height, width, height)
            else:
                factor = fill_scale(box_width, box_height, width, height)
            with timed(f"{tag.mnemonic}({box_width}x{box_height})"):
                return imaging.resize(image, factor)

        case Tag.BLUR:
            (strength,) = operands
            with timed(f"gb({strength})"):
                return imaging.gaussian_blur(image, strength / 100.0)

        case Tag.OVERLAY:
            with timed("pi"):
                return imaging.overlay_centered(image, overlay)

        case _:
            raise MalformedExpression(f"Unhandled tag {tag!r}.")


def _read(words: tuple[int, ...], cursor: int) -> tuple[int, int]:
    if cursor <= 0:
        raise MalformedExpression("Expression ran past the start of the buffer.")
    return cursor - 1, words[cursor - 1]
