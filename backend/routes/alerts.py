# backend/routes/alerts.py
from typing import Iterable, List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from models.category import Category
from models.product import Product
from models.users import User
from schemas.reports import AlertItem, AlertsResponse
from services import alerts
from services.references import category_label, index_by_id
from utils.tokenJWT import get_current_user

router = APIRouter(prefix="/alerts", tags=["Alerts"])


def alert_items(products: Iterable[Product], categories: dict) -> List[AlertItem]:
    return [
        AlertItem(
            product_id=p.id,
            name=p.name,
            sku=p.sku,
            category_name=category_label(categories, p.category_id),
            current_stock=p.current_stock,
            min_stock=p.min_stock,
        )
        for p in products
    ]


# Out-of-stock and low-stock active products, in product id order
@router.get("", response_model=AlertsResponse)
def get_alerts(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    products = db.query(Product).filter(Product.is_active.is_(True)).order_by(Product.id.asc()).all()
    categories = index_by_id(db.query(Category).all())
    summary = alerts.evaluate(products)
    return AlertsResponse(
        out_of_stock=alert_items(summary.out_of_stock, categories),
        low_stock=alert_items(summary.low_stock, categories),
        out_of_stock_count=summary.out_of_stock_count,
        low_stock_count=summary.low_stock_count,
    )
