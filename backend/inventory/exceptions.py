class InventoryError(Exception):
    """Base class for stock movement errors"""


class InvalidStockLevel(InventoryError):
    """Raised when a product is not stocked at the requested packaging level"""

    def __init__(self, product, level):
        self.product = product
        self.level = level
        super().__init__(f"{product.name} is not stocked as {level}.")


class InsufficientStock(InventoryError):
    """Raised when a stock movement would leave a negative count"""

    def __init__(self, product, level, requested, available):
        self.product = product
        self.level = level
        self.requested = requested
        self.available = available
        super().__init__(
            f"Not enough stock for {product.name}: requested {requested} {level}, {available} available."
        )
