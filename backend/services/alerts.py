# backend/services/alerts.py
"""Low stock classification.

One inclusive policy everywhere: a product is low on stock when
current_stock <= min_stock. Among active products, zero stock is
out-of-stock, any other low level is low-stock, the rest is healthy.
"""
from dataclasses import dataclass, field
from typing import Iterable, List

OUT_OF_STOCK = "out_of_stock"
LOW_STOCK = "low_stock"
HEALTHY = "healthy"


def is_low_stock(product) -> bool:
    return product.current_stock <= product.min_stock


def classify(product) -> str:
    if product.current_stock == 0:
        return OUT_OF_STOCK
    if is_low_stock(product):
        return LOW_STOCK
    return HEALTHY


@dataclass
class AlertSummary:
    out_of_stock: List = field(default_factory=list)
    low_stock: List = field(default_factory=list)
    healthy: List = field(default_factory=list)

    @property
    def out_of_stock_count(self) -> int:
        return len(self.out_of_stock)

    @property
    def low_stock_count(self) -> int:
        return len(self.low_stock)

    @property
    def has_alerts(self) -> bool:
        return bool(self.out_of_stock or self.low_stock)


def evaluate(products: Iterable) -> AlertSummary:
    """Partition the active products, keeping input order in each bucket."""
    summary = AlertSummary()
    buckets = {
        OUT_OF_STOCK: summary.out_of_stock,
        LOW_STOCK: summary.low_stock,
        HEALTHY: summary.healthy,
    }
    for product in products:
        if not product.is_active:
            continue
        buckets[classify(product)].append(product)
    return summary
