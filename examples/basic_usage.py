#!/usr/bin/env python3
"""Programmatic workflow example.

This demonstrates using the runtime components directly:

* load settings from `.env`
* load `checkout_logic.json` into a catalog with the reference handlers
* drive a checkout state machine and print every notification
"""

from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path
from typing import Sequence

from workflow_runtime import ActionHandlerRegistry, RuntimeSettings, WorkflowCatalog
from workflow_runtime.catalog import load_logic_document
from workflow_runtime.handlers import register_default_handlers
from workflow_runtime.logging import configure_logging


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Drive the example checkout workflow.")
    parser.add_argument(
        "--logic",
        type=Path,
        default=Path(__file__).with_name("checkout_logic.json"),
        help="Logic document to load",
    )
    parser.add_argument("--price", type=float, default=12.5, help="Price of the product added")
    return parser.parse_args(argv)


async def _drive(catalog: WorkflowCatalog, price: float) -> None:
    machine = await catalog.create("checkout")
    machine.subscribe(lambda state, context: print(f"[{state}] {json.dumps(context)}"))

    product = {"id": "sku-1", "name": "Notebook", "price": price}
    await machine.send("ADD_TO_CART", {"selection": {"product": product, "quantity": 1}})
    await machine.send("CHECKOUT")
    await machine.send("PAY")


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    settings = RuntimeSettings()
    configure_logging(settings.log_level)

    registry = register_default_handlers(ActionHandlerRegistry(), settings)
    catalog = WorkflowCatalog(load_logic_document(args.logic), registry=registry)

    asyncio.run(_drive(catalog, args.price))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
