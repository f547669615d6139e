import uuid
from decimal import Decimal

from django.db import models
from django.utils import timezone

from marketplace.cart.domain.models.cart import MAX_LINE_QUANTITY, coerce_quantity


class OrderStatus(models.TextChoices):
    PENDING = "pending", "Pending"  # Created at checkout, waiting for the payment provider
    COMPLETED = "completed", "Completed"  # Set by the checkout.session.completed webhook
    FAILED = "failed", "Failed"  # Session expired or checkout cancelled by the customer

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.COMPLETED, OrderStatus.FAILED)

    def can_transition_to(self, target: "OrderStatus") -> bool:
        return OrderStatus(target) in ALLOWED_TRANSITIONS[self]


ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING: frozenset({OrderStatus.COMPLETED, OrderStatus.FAILED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.FAILED: frozenset(),
}


class OrderStateConflict(Exception):
    """Raised when a status change would leave a terminal state."""

    def __init__(self, order_id, current, target):
        self.order_id = order_id
        self.current = current
        self.target = target
        super().__init__(f"Order {order_id} cannot move from {current} to {target}")


class Order(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    customer_email = models.EmailField(blank=True)
    total_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    status = models.CharField(max_length=20, choices=OrderStatus.choices, default=OrderStatus.PENDING)

    # Provider checkout session, assigned once after the gateway call succeeds
    payment_session_id = models.CharField(max_length=255, null=True, blank=True, unique=True)

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    # Working copy of the line items, replaced wholesale on save
    _lines = None

    # Set by OrderService.update_status: whether the last call changed the stored status
    status_changed = False

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        app_label = "marketplace"

    def __str__(self):
        return f"Order {str(self.id)[:8]} ({self.status})"

    @property
    def lines(self) -> list:
        if self._lines is None:
            self._lines = [] if self._state.adding else list(self.items.all())
        return self._lines

    @property
    def current_status(self) -> OrderStatus:
        return OrderStatus(self.status)

    def add_item(self, product, quantity: int) -> "OrderItem":
        """Add ``quantity`` of ``product``, merging into an existing line for the same product."""
        quantity = coerce_quantity(quantity)
        for line in self.lines:
            if line.product_id == product.id:
                line.quantity = min(line.quantity + quantity, MAX_LINE_QUANTITY)
                self.calculate_total()
                return line

        line = OrderItem(
            product_id=product.id,
            product_name=product.name,
            quantity=quantity,
            unit_price=Decimal(product.price),
        )
        self.lines.append(line)
        self.calculate_total()
        return line

    def calculate_total(self) -> Decimal:
        self.total_amount = sum((line.subtotal for line in self.lines), Decimal("0.00"))
        return self.total_amount

    def transition_to(self, target: OrderStatus) -> bool:
        """
        Apply a status change in memory.

        Returns False when the order is already in ``target`` (duplicate delivery),
        True when the status changed.

        Raises:
            OrderStateConflict: if the current status does not allow ``target``
        """
        target = OrderStatus(target)
        current = self.current_status
        if current == target:
            return False
        if not current.can_transition_to(target):
            raise OrderStateConflict(self.id, current, target)

        self.status = target
        self.updated_at = timezone.now()
        return True


class OrderItem(models.Model):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")

    # Snapshot of the product at checkout time, no FK to the catalogue
    product_id = models.CharField(max_length=64)
    product_name = models.CharField(max_length=200)
    quantity = models.PositiveIntegerField(default=1)
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)

    class Meta:
        db_table = "order_items"
        ordering = ["id"]
        app_label = "marketplace"

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity

    def __str__(self):
        return f"{self.quantity}x {self.product_name} in order {str(self.order_id)[:8]}"
