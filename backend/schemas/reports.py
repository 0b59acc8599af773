# schemas/reports.py
from typing import List
from pydantic import BaseModel

# Schemas for stock alerts
class AlertItem(BaseModel):
    product_id: int
    name: str
    sku: str
    category_name: str
    current_stock: int
    min_stock: int

class AlertsResponse(BaseModel):
    out_of_stock: List[AlertItem]
    low_stock: List[AlertItem]
    out_of_stock_count: int
    low_stock_count: int

# Dashboard figures over active products
class DashboardSummary(BaseModel):
    total_products: int
    total_stock: int
    total_value: float
    low_stock_items: int
    out_of_stock_items: int
    total_movements: int
    low_stock_products: List[AlertItem]

class ReportSummary(BaseModel):
    total_value: float
    low_stock_count: int
    out_of_stock_count: int
    movement_count: int
