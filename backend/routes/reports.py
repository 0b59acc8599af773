# routes/reports.py
from typing import Literal

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import Response
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import get_current_user
from utils.audit import client_ip, write_log
from models.users import User
from models.product import Product
from models.category import Category
from models.stock import StockMovement
from schemas.reports import ReportSummary
from services import alerts, reports

router = APIRouter(prefix="/reports", tags=["Reports"])

ReportFormat = Literal["json", "csv"]


def _render(rows, columns, filename: str, fmt: str, db: Session, request: Request, user: User):
    if fmt == "csv":
        write_log(db, user_id=user.id, action="REPORT_EXPORT", resource="reports",
                  ip=client_ip(request), meta={"file": filename, "rows": len(rows)})
        return Response(
            content=reports.to_csv(rows, columns),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )
    return rows


# -----------------------------
# 1) Inventory
# -----------------------------
@router.get("/inventory")
def inventory_report(
    request: Request,
    format: ReportFormat = Query("json"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    rows = reports.inventory_report(
        db.query(Product).order_by(Product.id.asc()).all(),
        db.query(Category).all(),
    )
    return _render(rows, reports.INVENTORY_COLUMNS, "inventory-report.csv", format, db, request, current_user)


# -----------------------------
# 2) Categories
# -----------------------------
@router.get("/categories")
def category_report(
    request: Request,
    format: ReportFormat = Query("json"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    rows = reports.category_report(
        db.query(Product).all(),
        db.query(Category).order_by(Category.id.asc()).all(),
    )
    return _render(rows, reports.CATEGORY_COLUMNS, "category-report.csv", format, db, request, current_user)


# -----------------------------
# 3) Movements
# -----------------------------
@router.get("/movements")
def movement_report(
    request: Request,
    format: ReportFormat = Query("json"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    movements = (db.query(StockMovement)
                 .order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
                 .limit(reports.MOVEMENT_REPORT_LIMIT)
                 .all())
    rows = reports.movement_report(movements, db.query(Product).all(), db.query(User).all())
    return _render(rows, reports.MOVEMENT_COLUMNS, "movement-report.csv", format, db, request, current_user)


@router.get("/summary", response_model=ReportSummary)
def report_summary(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    active = db.query(Product).filter(Product.is_active.is_(True)).all()
    return ReportSummary(
        total_value=sum(reports.stock_value(p) for p in active),
        low_stock_count=sum(1 for p in active if alerts.is_low_stock(p)),
        out_of_stock_count=sum(1 for p in active if p.current_stock == 0),
        movement_count=db.query(StockMovement).count(),
    )
