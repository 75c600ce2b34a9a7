from __future__ import annotations

import pytest

from imfx.errors import MalformedExpression
from imfx.model.tags import Tag


@pytest.mark.parametrize(
    "tag, mnemonic, arity",
    [
        (Tag.FIT, "ft", 2),
        (Tag.FILL, "fl", 2),
        (Tag.OVERLAY, "pi", None),
        (Tag.BLUR, "gb", 1),
        (Tag.IMAGE, "id", 1),
    ],
)
def test_tag_table(tag: Tag, mnemonic: str, arity: int | None) -> None:
    assert tag.mnemonic == mnemonic
    assert tag.arity == arity
    assert tag.is_nested is (arity is None)


def test_word_values_are_stable() -> None:
    assert [int(tag) for tag in (Tag.FIT, Tag.FILL, Tag.OVERLAY, Tag.BLUR, Tag.IMAGE)] == [0, 1, 2, 3, 4]


def test_from_word_decodes_tags() -> None:
    assert Tag.from_word(2) is Tag.OVERLAY


@pytest.mark.parametrize("word", [-1, 5, 100])
def test_from_word_rejects_unknown_words(word: int) -> None:
    with pytest.raises(MalformedExpression):
        Tag.from_word(word)
