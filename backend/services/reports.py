# backend/services/reports.py
"""Flat report rows over products, categories and movements, plus CSV."""
from typing import Dict, Iterable, List, Sequence

import pandas as pd

from services.alerts import is_low_stock
from services.references import (
    UNKNOWN_PRODUCT, UNKNOWN_SKU, UNKNOWN_USER, category_label, index_by_id,
)

INVENTORY_COLUMNS = [
    "Product Name", "SKU", "Category", "Current Stock", "Minimum Stock",
    "Cost Price", "Selling Price", "Total Value", "Status",
]
CATEGORY_COLUMNS = [
    "Category Name", "Description", "Number of Products", "Total Stock",
    "Total Value", "Created Date",
]
MOVEMENT_COLUMNS = [
    "Date", "Product Name", "SKU", "Type", "Quantity", "Previous Stock",
    "New Stock", "User", "Reason",
]

# The report page never looked further back than this
MOVEMENT_REPORT_LIMIT = 1000


def stock_value(product) -> float:
    return product.current_stock * (product.cost_price or 0)


def _active(products: Iterable) -> List:
    return [p for p in products if p.is_active]


def inventory_report(products: Iterable, categories: Iterable) -> List[Dict]:
    index = index_by_id(categories)
    rows = []
    for p in _active(products):
        rows.append({
            "Product Name": p.name,
            "SKU": p.sku,
            "Category": category_label(index, p.category_id),
            "Current Stock": p.current_stock,
            "Minimum Stock": p.min_stock,
            "Cost Price": p.cost_price or 0,
            "Selling Price": p.selling_price or 0,
            "Total Value": stock_value(p),
            "Status": "Low Stock" if is_low_stock(p) else "In Stock",
        })
    return rows


def category_report(products: Iterable, categories: Iterable) -> List[Dict]:
    # Products without a matching category are not counted anywhere
    active = _active(products)
    rows = []
    for category in categories:
        members = [p for p in active if p.category_id == category.id]
        rows.append({
            "Category Name": category.name,
            "Description": category.description or "N/A",
            "Number of Products": len(members),
            "Total Stock": sum(p.current_stock for p in members),
            "Total Value": sum(stock_value(p) for p in members),
            "Created Date": category.created_at.date().isoformat() if category.created_at else "",
        })
    return rows


def movement_report(movements: Iterable, products: Iterable, users: Iterable) -> List[Dict]:
    """Newest first, capped at MOVEMENT_REPORT_LIMIT rows."""
    product_index = index_by_id(products)
    user_index = index_by_id(users)
    ordered = sorted(movements, key=lambda m: (m.created_at, m.id), reverse=True)
    rows = []
    for m in ordered[:MOVEMENT_REPORT_LIMIT]:
        product = product_index.get(m.product_id)
        user = user_index.get(m.user_id)
        rows.append({
            "Date": m.created_at.isoformat() if m.created_at else "",
            "Product Name": product.name if product else UNKNOWN_PRODUCT,
            "SKU": product.sku if product else UNKNOWN_SKU,
            "Type": m.movement_type,
            "Quantity": m.quantity,
            "Previous Stock": m.previous_stock,
            "New Stock": m.new_stock,
            "User": user.email if user else UNKNOWN_USER,
            "Reason": m.reason or "",
        })
    return rows


def to_csv(rows: List[Dict], columns: Sequence[str]) -> str:
    """Comma separated text with a header row.

    Fields containing a comma, quote or line break are quoted and embedded
    quotes are doubled. An empty report still has its header.
    """
    frame = pd.DataFrame(rows, columns=list(columns))
    return frame.to_csv(index=False, lineterminator="\n")
