"""End-to-end run of the bundled checkout workflow with the reference handlers."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import pytest

from workflow_runtime.catalog import WorkflowCatalog, load_logic_document
from workflow_runtime.handlers import UiHandler, register_default_handlers
from workflow_runtime.registry import ActionHandlerRegistry

CHECKOUT_LOGIC = Path(__file__).resolve().parents[2] / "examples" / "checkout_logic.json"


@pytest.fixture
def displayed() -> list[tuple[str, str]]:
    return []


@pytest.fixture
def checkout_catalog(displayed: list[tuple[str, str]]) -> WorkflowCatalog:
    registry = register_default_handlers(ActionHandlerRegistry())
    registry.register("ui", UiHandler(display=lambda m, k: displayed.append((m, k))))
    return WorkflowCatalog(load_logic_document(CHECKOUT_LOGIC, fallback=False), registry=registry)


def _selection(price: float, quantity: int = 1) -> dict[str, Any]:
    return {"selection": {"product": {"id": "sku-1", "price": price}, "quantity": quantity}}


def test_checkout_happy_path(
    checkout_catalog: WorkflowCatalog, displayed: list[tuple[str, str]]
) -> None:
    async def scenario() -> tuple[list[str], dict[str, Any]]:
        machine = await checkout_catalog.create("checkout")
        states: list[str] = []
        machine.subscribe(lambda state, ctx: states.append(state))
        await machine.send("ADD_TO_CART", _selection(12.5))
        await machine.send("CHECKOUT")
        await machine.send("PAY")
        return states, machine.get_context()

    states, context = asyncio.run(scenario())

    assert states == ["browsing", "cart", "checkout", "paid"]
    assert context["cart"]["total"] == 12.5
    assert context["validation"] == {"isValid": True, "errors": []}
    assert context["order"] == {"status": "paid"}
    assert displayed == [("Ready for payment", "success")]


def test_checkout_below_minimum_is_rejected(
    checkout_catalog: WorkflowCatalog, displayed: list[tuple[str, str]]
) -> None:
    async def scenario() -> tuple[list[str], dict[str, Any]]:
        machine = await checkout_catalog.create("checkout")
        states: list[str] = []
        machine.subscribe(lambda state, ctx: states.append(state))
        await machine.send("ADD_TO_CART", _selection(4))
        await machine.send("CHECKOUT")
        # Second unit of the same product brings the total to 8, still short.
        await machine.send("ADD_TO_CART")
        await machine.send("CHECKOUT")
        await machine.send("ADD_TO_CART", _selection(4, quantity=2))
        await machine.send("CHECKOUT")
        return states, machine.get_context()

    states, context = asyncio.run(scenario())

    assert states == [
        "browsing",
        "cart",
        "rejected",
        "cart",
        "rejected",
        "cart",
        "checkout",
    ]
    assert context["cart"]["itemCount"] == 4
    assert context["cart"]["total"] == 16
    assert displayed.count(("Orders must total at least 10", "warning")) == 2


def test_clear_cart_returns_to_browsing(checkout_catalog: WorkflowCatalog) -> None:
    async def scenario() -> tuple[str, dict[str, Any]]:
        machine = await checkout_catalog.create("checkout")
        await machine.send("ADD_TO_CART", _selection(20))
        await machine.send("CLEAR_CART")
        return machine.get_state(), machine.get_context()

    state, context = asyncio.run(scenario())

    assert state == "browsing"
    assert context["cart"] == {"items": [], "itemCount": 0, "total": 0}


def test_checkout_from_browsing_is_ignored(checkout_catalog: WorkflowCatalog) -> None:
    async def scenario() -> tuple[bool, str]:
        machine = await checkout_catalog.create("checkout")
        return await machine.send("CHECKOUT"), machine.get_state()

    assert asyncio.run(scenario()) == (False, "browsing")
