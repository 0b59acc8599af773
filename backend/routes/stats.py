# backend/routes/stats.py

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import get_current_user
from models.users import User
from models.category import Category
from models.product import Product
from models.stock import StockMovement
from routes.alerts import alert_items
from schemas.reports import DashboardSummary
from services import alerts, reports
from services.references import index_by_id

router = APIRouter(
    prefix="/stats",
    tags=["Stats"]
)

# Number of low stock products listed on the dashboard
DASHBOARD_LOW_STOCK_LIMIT = 5


# === Dashboard Summary ===

@router.get("/summary", response_model=DashboardSummary)
def get_stats_summary(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    active = db.query(Product).filter(Product.is_active.is_(True)).order_by(Product.id.asc()).all()

    # Low stock on the dashboard uses the same inclusive rule as alerts,
    # so it counts out-of-stock products too
    low_stock = [p for p in active if alerts.is_low_stock(p)]
    summary = alerts.evaluate(active)
    categories = index_by_id(db.query(Category).all())

    return DashboardSummary(
        total_products=len(active),
        total_stock=sum(p.current_stock for p in active),
        total_value=sum(reports.stock_value(p) for p in active),
        low_stock_items=len(low_stock),
        out_of_stock_items=summary.out_of_stock_count,
        total_movements=db.query(StockMovement).count(),
        low_stock_products=alert_items(low_stock[:DASHBOARD_LOW_STOCK_LIMIT], categories),
    )
