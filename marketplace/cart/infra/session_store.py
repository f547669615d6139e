"""
Typed access to the cart held in a Django session.

One serialized ``Cart`` lives under a fixed key. Sessions expire after
``SESSION_COOKIE_AGE`` (24h) and are created lazily by Django's session middleware
on the first write.
"""

import logging

from marketplace.cart.domain.models import Cart


logger = logging.getLogger(__name__)

SESSION_CART_KEY = "cart"


class CartSessionStore:
    """
    Read-modify-write access to a single session's cart.

    Overlapping requests of the same session each load, mutate and save the whole
    cart; the last save wins.
    """

    def __init__(self, session, key: str = SESSION_CART_KEY):
        self.session = session
        self.key = key

    def load(self) -> Cart:
        data = self.session.get(self.key)
        if data is None:
            return Cart()

        try:
            return Cart.from_session(data)
        except ValueError as e:
            logger.warning(f"Discarding unreadable cart in session {self.session_key}: {e}")
            self.clear()
            return Cart()

    def save(self, cart: Cart) -> None:
        self.session[self.key] = cart.to_session()
        self.session.modified = True

    def clear(self) -> None:
        if self.key in self.session:
            del self.session[self.key]
        self.session.modified = True

    @property
    def session_key(self) -> str:
        return getattr(self.session, "session_key", None) or "<new>"
