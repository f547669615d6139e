"""
Session cart entity.

The cart is never persisted to the database. It lives in the visitor's session as
a JSON-safe dict (see ``Cart.to_session``) and is rebuilt on every request by
``CartSessionStore``.
"""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List


# Largest quantity a single cart or order line can hold.
MAX_LINE_QUANTITY = 99


def coerce_quantity(raw: Any) -> int:
    """
    Return ``raw`` as an int in ``1..MAX_LINE_QUANTITY``.

    Malformed or non-positive input falls back to 1; larger values are clamped.
    """
    try:
        quantity = int(raw)
    except (TypeError, ValueError, OverflowError):
        return 1
    if quantity < 1:
        return 1
    return min(quantity, MAX_LINE_QUANTITY)


@dataclass
class CartItem:
    product_id: str
    product_name: str
    quantity: int
    unit_price: Decimal

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity

    def to_session(self) -> Dict[str, Any]:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "unit_price": str(self.unit_price),
        }

    @classmethod
    def from_session(cls, data: Dict[str, Any]) -> "CartItem":
        return cls(
            product_id=str(data["product_id"]),
            product_name=str(data.get("product_name", "")),
            quantity=coerce_quantity(data.get("quantity")),
            unit_price=Decimal(str(data["unit_price"])),
        )


@dataclass
class Cart:
    """
    Collection of cart lines keyed by product id.

    Invariant: at most one line per product id; re-adding a product increments
    the existing line's quantity.
    """

    lines: Dict[str, CartItem] = field(default_factory=dict)

    @property
    def items(self) -> List[CartItem]:
        return list(self.lines.values())

    @property
    def is_empty(self) -> bool:
        return not self.lines

    @property
    def items_count(self) -> int:
        return len(self.lines)

    def add(self, product, quantity: int = 1) -> CartItem:
        """Merge ``quantity`` of ``product`` into the cart, capturing its current price."""
        quantity = coerce_quantity(quantity)
        line = self.lines.get(product.id)
        if line is not None:
            line.quantity = min(line.quantity + quantity, MAX_LINE_QUANTITY)
            return line

        line = CartItem(
            product_id=product.id,
            product_name=product.name,
            quantity=quantity,
            unit_price=Decimal(product.price),
        )
        self.lines[product.id] = line
        return line

    def remove(self, product_id: str) -> bool:
        """Drop the line for ``product_id``. Returns False when there was nothing to remove."""
        return self.lines.pop(product_id, None) is not None

    def total(self) -> Decimal:
        return sum((line.subtotal for line in self.lines.values()), Decimal("0.00"))

    def clear(self) -> None:
        self.lines.clear()

    def to_session(self) -> Dict[str, Any]:
        return {"items": [line.to_session() for line in self.lines.values()]}

    @classmethod
    def from_session(cls, data: Any) -> "Cart":
        """
        Rebuild a cart from its session representation.

        Raises:
            ValueError: if ``data`` does not look like a serialized cart
        """
        if not isinstance(data, dict) or not isinstance(data.get("items", []), list):
            raise ValueError("Session cart is not a mapping with an 'items' list")

        cart = cls()
        try:
            for raw_line in data.get("items", []):
                line = CartItem.from_session(raw_line)
                existing = cart.lines.get(line.product_id)
                if existing is not None:
                    existing.quantity = min(existing.quantity + line.quantity, MAX_LINE_QUANTITY)
                else:
                    cart.lines[line.product_id] = line
        except (KeyError, TypeError, InvalidOperation) as e:
            raise ValueError(f"Malformed cart line in session: {e}") from e
        return cart
