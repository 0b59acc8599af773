# backend/services/references.py
"""Id -> row indexes for the weak references between entities.

Products point at categories and suppliers by id, movements point at
products and users by id. None of these are enforced by the database, so
every lookup has a display fallback instead of failing.
"""
from typing import Dict, Iterable, Optional

NO_CATEGORY = "No Category"
UNKNOWN_CATEGORY = "Unknown Category"
NO_SUPPLIER = "No Supplier"
UNKNOWN_SUPPLIER = "Unknown Supplier"
UNKNOWN_PRODUCT = "Unknown Product"
UNKNOWN_SKU = "N/A"
UNKNOWN_USER = "Unknown User"


def index_by_id(rows: Iterable) -> Dict[int, object]:
    return {row.id: row for row in rows}


def resolve_name(index: Dict[int, object], ref_id: Optional[int], missing: str, dangling: str) -> str:
    if ref_id is None:
        return missing
    row = index.get(ref_id)
    if row is None:
        return dangling
    return row.name or dangling


def category_label(categories: Dict[int, object], category_id: Optional[int]) -> str:
    return resolve_name(categories, category_id, NO_CATEGORY, UNKNOWN_CATEGORY)


def supplier_label(suppliers: Dict[int, object], supplier_id: Optional[int]) -> str:
    return resolve_name(suppliers, supplier_id, NO_SUPPLIER, UNKNOWN_SUPPLIER)
