class OrderError(Exception):
    """Base class for order placement and fulfilment errors"""


class OrderNotAllowed(OrderError):
    """Raised when the account or company may not place the order"""


class InvalidOrderItem(OrderError):
    """Raised when an order line cannot be priced or fulfilled"""


class InvalidOrderTransition(OrderError):
    """Raised when an order is moved to a status it cannot reach"""

    def __init__(self, order, new_status):
        self.order = order
        self.new_status = new_status
        super().__init__(f"Order {order.order_number} cannot move from {order.status} to {new_status}.")
