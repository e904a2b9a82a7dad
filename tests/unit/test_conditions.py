"""Unit tests for the guard condition language."""

from __future__ import annotations

import logging

import pytest

from workflow_runtime.conditions import MAX_NESTING_DEPTH, ConditionEvaluator, parse_condition
from workflow_runtime.errors import ConditionEvaluationError

CONTEXT = {
    "validation": {"isValid": True, "errors": []},
    "cart": {"items": [{"id": "a"}, {"id": "b"}], "total": 24.5},
    "user": {"role": "admin", "name": "Ada"},
    "count": 3,
    "flag": False,
    "one": 1,
    "zero": 0,
}


@pytest.mark.parametrize(
    ("expression", "expected"),
    [
        ("validation.isValid", True),
        ("validation.isValid == true", True),
        ("validation.isValid === true && cart.total > 20", True),
        ("cart.items.length >= 2", True),
        ("cart.items.length > 2", False),
        ("cart.items.0.id == 'a'", True),
        ('user.role == "admin" || flag', True),
        ("!flag", True),
        ("not flag and count == 3", True),
        ("count != 3", False),
        ("count !== 4", True),
        ("count < 3 or count <= 3", True),
        ("(flag || count > 1) && !(user.role == 'guest')", True),
        ("user.name.length == 3", True),
        ("missing.path == null", True),
        ("missing.path == undefined", True),
        ("missing.path > 1", False),
        ("-count < 0", True),
        ("validation.errors.length == 0", True),
        ("one == true", True),
        ("one === true", False),
        ("zero === false", False),
        ("zero !== false", True),
        ("flag === false", True),
        ("one === 1.0", True),
        ("count === 3", True),
    ],
)
def test_expressions(expression: str, expected: bool) -> None:
    assert ConditionEvaluator().check(expression, CONTEXT) is expected


@pytest.mark.parametrize("expression", ["", "   ", None])
def test_empty_expression_is_true(expression: str | None) -> None:
    assert ConditionEvaluator().evaluate(expression, {}) is True


def test_string_escapes() -> None:
    assert ConditionEvaluator().check(r"name == 'it\'s'", {"name": "it's"}) is True


@pytest.mark.parametrize(
    "expression",
    [
        "count >",
        "(count > 1",
        "count > 1 > 0",
        "count = 3",
        "count > 1)",
        "__import__('os')",
        "count; 1",
    ],
)
def test_malformed_expressions_raise_on_check(expression: str) -> None:
    with pytest.raises(ConditionEvaluationError):
        ConditionEvaluator().check(expression, CONTEXT)


def test_incompatible_ordering_raises_on_check() -> None:
    with pytest.raises(ConditionEvaluationError):
        ConditionEvaluator().check("user.name > 3", CONTEXT)


def test_evaluate_treats_malformed_as_false_and_logs(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.ERROR, logger="workflow_runtime.conditions"):
        assert ConditionEvaluator().evaluate("count >", CONTEXT) is False
    assert any("count >" in r.getMessage() for r in caplog.records)


def test_evaluation_does_not_mutate_context() -> None:
    ctx = {"a": {"b": [1, 2]}}
    ConditionEvaluator().check("a.b.length == 2 && a.b.0 == 1", ctx)
    assert ctx == {"a": {"b": [1, 2]}}


def test_parse_is_cached() -> None:
    assert parse_condition("count > 1") is parse_condition("count > 1")


@pytest.mark.parametrize(
    "expression",
    [
        "!" * 5000 + "true",
        "(" * 3000 + "true" + ")" * 3000,
        "not " * 500 + "flag",
        "-" * 200 + "count",
    ],
)
def test_deeply_nested_expression_is_rejected(expression: str) -> None:
    with pytest.raises(ConditionEvaluationError, match="nested too deeply"):
        ConditionEvaluator().check(expression, CONTEXT)
    assert ConditionEvaluator().evaluate(expression, CONTEXT) is False


def test_nesting_up_to_the_limit_is_accepted() -> None:
    expression = "(" * MAX_NESTING_DEPTH + "count == 3" + ")" * MAX_NESTING_DEPTH
    assert ConditionEvaluator().check(expression, CONTEXT) is True


def test_long_boolean_chains_are_not_nesting() -> None:
    assert ConditionEvaluator().check(" && ".join(["count > 1"] * 5000), CONTEXT) is True
    assert ConditionEvaluator().check(" || ".join(["flag"] * 5000 + ["one"]), CONTEXT) is True
