"""Unit tests for context merging and parameter resolution."""

from __future__ import annotations

from workflow_runtime.context import merge_context, resolve_params, resolve_path


def test_merge_is_shallow() -> None:
    ctx = merge_context({}, {"a": {"x": 1}})
    ctx = merge_context(ctx, {"a": {"y": 1}})
    assert ctx["a"] == {"y": 1}


def test_merge_returns_new_dict() -> None:
    original = {"keep": 1}
    merged = merge_context(original, {"new": 2})
    assert merged == {"keep": 1, "new": 2}
    assert original == {"keep": 1}


def test_merge_with_no_updates() -> None:
    assert merge_context({"a": 1}, None) == {"a": 1}
    assert merge_context({"a": 1}, {}) == {"a": 1}


def test_resolve_path_walks_nested_objects() -> None:
    ctx = {"user": {"email": "a@b.com"}}
    assert resolve_path(ctx, "user.email") == "a@b.com"


def test_resolve_path_missing_intermediate_is_none() -> None:
    ctx = {"user": {"email": "a@b.com"}}
    assert resolve_path(ctx, "user.missing.field") is None
    assert resolve_path(ctx, "nothing.here") is None


def test_resolve_path_indexes_lists() -> None:
    ctx = {"cart": {"items": [{"id": "a"}, {"id": "b"}]}}
    assert resolve_path(ctx, "cart.items.1.id") == "b"
    assert resolve_path(ctx, "cart.items.5.id") is None


def test_resolve_path_through_scalar_is_none() -> None:
    assert resolve_path({"a": 3}, "a.b") is None


def test_resolve_params_only_resolves_dotted_strings() -> None:
    ctx = {"user": {"email": "a@b.com"}, "plain": "ignored"}
    params = {
        "to": "user.email",
        "literal": "plain",
        "count": 3,
        "nested": {"path": "user.email"},
        "missing": "user.phone.number",
    }

    resolved = resolve_params(params, ctx)

    assert resolved == {
        "to": "a@b.com",
        "literal": "plain",
        "count": 3,
        "nested": {"path": "user.email"},
        "missing": None,
    }
