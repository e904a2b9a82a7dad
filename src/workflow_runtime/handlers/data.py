from __future__ import annotations

from collections.abc import Mapping
from typing import Any


def _empty_cart() -> dict[str, Any]:
    return {"items": [], "itemCount": 0, "total": 0}


class DataHandler:
    """Context data operations selected by the ``dataAction`` param.

    - ``clearCart``: replace ``cart`` with an empty cart.
    - ``addToCart``: add ``product`` (with ``quantity``, default 1) to ``cart``,
      merging quantities for an existing product id.
    - ``set``: return ``{key: value}``, overwriting that top-level key.

    The context passed in is a snapshot; a new cart is built rather than
    mutating nested objects.
    """

    async def execute(
        self, params: Mapping[str, Any], context: Mapping[str, Any]
    ) -> dict[str, Any]:
        action = params.get("dataAction")
        if action == "clearCart":
            return {"cart": _empty_cart()}
        if action == "addToCart":
            return self._add_to_cart(params, context)
        if action == "set":
            key = params.get("key")
            if not isinstance(key, str) or not key:
                raise ValueError("'set' requires a string 'key'")
            return {key: params.get("value")}
        return {"data": {"success": True, "message": "Data action completed successfully"}}

    def _add_to_cart(self, params: Mapping[str, Any], context: Mapping[str, Any]) -> dict[str, Any]:
        product = params.get("product")
        if not isinstance(product, Mapping):
            return {"error": {"message": "Product is required"}}
        quantity = int(params.get("quantity") or 1)
        price = product.get("price", 0)

        current = context.get("cart")
        cart = current if isinstance(current, Mapping) else _empty_cart()
        items = [dict(item) for item in cart.get("items", [])]

        for item in items:
            if item.get("product", {}).get("id") == product.get("id"):
                item["quantity"] += quantity
                item["total"] = item["price"] * item["quantity"]
                break
        else:
            items.append(
                {
                    "product": dict(product),
                    "quantity": quantity,
                    "price": price,
                    "total": price * quantity,
                }
            )

        return {
            "cart": {
                "items": items,
                "itemCount": sum(item["quantity"] for item in items),
                "total": sum(item["total"] for item in items),
            }
        }
