from .cart import Cart, CartItem, coerce_quantity


__all__ = [
    "Cart",
    "CartItem",
    "coerce_quantity",
]
