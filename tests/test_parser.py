"""Grammar, emission and rollback behaviour of the expression parser."""
from __future__ import annotations

import pytest

from imfx import config
from imfx.errors import ExpressionTooDeep, ExpressionTooLong, IllegalExpression, ImageIndexOutOfRange, \
    NumberTooLarge
from imfx.lang.parser import Parser, parse, parse_into
from imfx.model.buffer import EncodeBuffer
from imfx.model.tags import Tag

ID = Tag.IMAGE
FT = Tag.FIT
FL = Tag.FILL
GB = Tag.BLUR
PI = Tag.OVERLAY


@pytest.mark.parametrize(
    "text, words",
    [
        ("0", (0, ID)),
        ("0.ft(100x50)", (0, ID, 100, 50, FT)),
        ("3.fl(7x8)", (3, ID, 7, 8, FL)),
        ("0.gb(200)", (0, ID, 200, GB)),
        ("0.gb(007)", (0, ID, 7, GB)),
        ("0.pi(1)", (0, ID, 1, ID, PI)),
        ("0.ft(100x50).pi(1.gb(200))", (0, ID, 100, 50, FT, 1, ID, 200, GB, PI)),
        ("0.pi(1.pi(2.fl(3x4)))", (0, ID, 1, ID, 2, ID, 3, 4, FL, PI, PI)),
        ("0.pi(1).pi(2)", (0, ID, 1, ID, PI, 2, ID, PI)),
    ],
)
def test_parse_emits_postfix_words(text: str, words: tuple[int, ...]) -> None:
    encoded = parse(text)

    assert encoded.words == words
    assert encoded.source == text


@pytest.mark.parametrize(
    "text, words",
    [
        ("0.1", (1, ID)),
        ("0.ft(1x2).gb(3).1", (1, ID)),
        ("0.1.gb(5)", (1, ID, 5, GB)),
        ("0.pi(1.gb(5).2)", (0, ID, 2, ID, PI)),
    ],
)
def test_chained_image_reference_discards_its_chain(text: str, words: tuple[int, ...]) -> None:
    assert parse(text).words == words


@pytest.mark.parametrize(
    "text",
    [
        "",
        "ft(100x100)",
        "a",
        "00",
        "0 ",
        "0.",
        "0.ft(100x)",
        "0.ft(1x2",
        "0.ft(1X2)",
        "0.ft(1x2)x",
        "0.gb()",
        "0.gb(1.5)",
        "0.gb(-1)",
        "0.pi()",
        "0.pi(1",
        "0.pi(ft(1x1))",
        "0.xx(1)",
        "0.²",
    ],
)
def test_illegal_expressions_are_rejected(text: str) -> None:
    with pytest.raises(IllegalExpression):
        parse(text)


@pytest.mark.parametrize(
    "text, position, detail",
    [
        ("ft(100x100)", 0, "unexpected 'f' at column 1"),
        ("0.ft(100x)", 9, "unexpected ')' at column 10"),
        ("0.ft(1x2", 8, "unexpected end of input at column 9"),
        ("0.gb(12)z", 8, "unexpected 'z' at column 9"),
    ],
)
def test_illegal_expression_reports_farthest_position(text: str, position: int, detail: str) -> None:
    with pytest.raises(IllegalExpression) as info:
        parse(text)

    assert info.value.position == position
    assert info.value.detail == detail
    assert str(info.value) == f"illegal expression '{text}': {detail}"


@pytest.mark.parametrize("text", ["0.ft(1x2", "0.pi(1.fl(3x4).gb(", "ft(1x1)", "0.pi(1.pi(2.gb(1)"])
def test_failed_parse_leaves_buffer_length_unchanged(text: str) -> None:
    buffer = EncodeBuffer(capacity=64)
    buffer.push(9)
    buffer.push(9)


    with pytest.raises(IllegalExpression):
        parse_into(text, buffer)

    assert buffer.words == (9, 9)


def test_partial_match_rolls_back_nested_words() -> None:
    buffer = EncodeBuffer(capacity=64)
    parser = Parser("0.ft(1x2).pi(1.fl(3x4).gb(", buffer)

    assert parser.expression()

    # The overlay matched "1.fl(3x4)" before failing on the missing ')'.
    assert parser.position == 9
    assert buffer.words == (0, ID, 1, 2, FT)


@pytest.mark.parametrize(
    "rule_name, text",
    [
        ("number", "x1"),
        ("size", "12x"),
        ("size", "12y3"),
        ("image_ref", "x"),
        ("fit", "ft(1x"),
        ("fill", "fl(2x3"),
        ("blur", "gb(12"),
        ("overlay", "pi(1.gb(2)"),
        ("overlay", "pi(1.pi(2)"),
        ("step", "ft(1x2"),
        ("expression", ".0"),
    ],
)
def test_failing_rule_restores_position_and_buffer(rule_name: str, text: str) -> None:
    buffer = EncodeBuffer(capacity=64)
    buffer.push(7)
    parser = Parser(text, buffer)

    assert getattr(parser, rule_name)() is False
    assert parser.position == 0
    assert buffer.words == (7,)


def test_step_prefers_earlier_alternatives() -> None:
    buffer = EncodeBuffer(capacity=64)
    parser = Parser("fl(4x5)", buffer)

    assert parser.step()
    assert parser.at_end
    assert buffer.words == (4, 5, FL)


def test_image_index_must_be_below_image_count() -> None:
    with pytest.raises(ImageIndexOutOfRange) as info:
        parse("0.pi(2)", image_count=2)

    assert isinstance(info.value, IllegalExpression)
    assert info.value.index == 2
    assert info.value.image_count == 2
    assert info.value.position == 5
    assert "image index 2 at column 6 is out of range (2 images given)" in str(info.value)


def test_image_index_error_leaves_buffer_untouched() -> None:
    buffer = EncodeBuffer(capacity=64)
    buffer.push(5)

    with pytest.raises(ImageIndexOutOfRange):
        parse_into("0.ft(10x10).pi(3)", buffer, image_count=2)

    assert buffer.words == (5,)


def test_image_index_is_unchecked_without_image_count() -> None:
    assert parse("9").words == (9, ID)


def test_buffer_capacity_is_enforced() -> None:
    assert parse("0.gb(1)", capacity=4).words == (0, ID, 1, GB)

    with pytest.raises(ExpressionTooLong) as info:
        parse("0.gb(1).gb(2)", capacity=4)

    assert "capacity of 4 words exceeded" in str(info.value)


def test_overlay_nesting_depth_is_limited() -> None:
    assert parse("0.pi(1.pi(2))", max_depth=2).words == (0, ID, 1, ID, 2, ID, PI, PI)

    with pytest.raises(ExpressionTooDeep):
        parse("0.pi(1.pi(2))", max_depth=1)


def test_nesting_limit_defaults_to_config(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "MAX_NESTING_DEPTH", 1)

    with pytest.raises(ExpressionTooDeep):
        parse("0.pi(1.pi(2))")


def test_deep_nesting_fails_cleanly_with_default_limit() -> None:
    depth = config.MAX_NESTING_DEPTH + 1
    text = "0" + ".pi(0" * depth + ")" * depth

    with pytest.raises(ExpressionTooDeep):
        parse(text)


@pytest.mark.parametrize(
    "text, column",
    [
        ("0.gb(" + "1" * 5000 + ")", 6),
        ("0.ft(" + "9" * 400 + "x1)", 6),
        ("0.fl(1x" + "9" * 20 + ")", 8),
    ],
)
def test_numbers_above_the_maximum_are_rejected(text: str, column: int) -> None:
    with pytest.raises(NumberTooLarge) as info:
        parse(text)

    assert info.value.position == column - 1
    assert info.value.detail == f"number at column {column} exceeds the maximum of {config.MAX_NUMBER}"


def test_number_limit_defaults_to_config(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "MAX_NUMBER", 100)

    assert parse("0.gb(100)").words == (0, ID, 100, GB)
    with pytest.raises(NumberTooLarge):
        parse("0.gb(101)")


def test_leading_zeros_do_not_count_against_the_maximum() -> None:
    assert parse("0.gb(" + "0" * 5000 + "7)").words == (0, ID, 7, GB)


def test_long_chains_parse_iteratively() -> None:
    words = parse("0" + ".gb(0)" * 1500, capacity=4000).words

    assert len(words) == 2 + 2 * 1500
    assert words[-2:] == (0, GB)
