# backend/routes/stock.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel
from sqlalchemy.orm import Session

from database import get_db
from models.product import Product
from models.stock import MovementType
from models.users import User
from services import ledger
from utils.audit import client_ip, write_log
from utils.tokenJWT import get_current_user
import schemas.stock as stock_schemas

router = APIRouter(tags=["Stock"])


class ProductLedger(BaseModel):
    product_id: int
    current_stock: Optional[int] = None
    consistent: bool
    items: List[stock_schemas.StockMovementResponse]


@router.get("", response_model=stock_schemas.StockMovementPage)
def list_movements(
    product_id: Optional[int] = Query(None),
    movement_type: Optional[MovementType] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=1000),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    items, total = ledger.list_movements(
        db, product_id=product_id, movement_type=movement_type, page=page, page_size=page_size,
    )
    return {"items": ledger.describe(db, items), "total": total, "page": page, "page_size": page_size}


@router.post("/movements", response_model=stock_schemas.StockMovementResponse)
def record_movement(
    payload: stock_schemas.StockMovementCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    movement = ledger.record_movement(
        db,
        product_id=payload.product_id,
        movement_type=payload.movement_type,
        quantity=payload.quantity,
        actor_id=current_user.id,
        reason=payload.reason,
        notes=payload.notes,
    )
    write_log(
        db, user_id=current_user.id, action="STOCK_MOVEMENT", resource="stock", ip=client_ip(request),
        meta={"id": movement.id, "product_id": movement.product_id, "delta": movement.delta},
    )
    return ledger.describe(db, [movement])[0]


@router.post("/delivery", response_model=stock_schemas.DeliveryResult)
def receive_delivery(
    payload: stock_schemas.DeliveryCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    movements = ledger.receive_delivery(
        db, payload.items, actor_id=current_user.id, reason=payload.reason, supplier_id=payload.supplier_id,
    )
    write_log(db, user_id=current_user.id, action="STOCK_DELIVERY", resource="stock",
              ip=client_ip(request), meta={"count": len(movements)})
    return {"received": len(movements), "movements": ledger.describe(db, movements)}


# Full ledger of one product, oldest first
@router.get("/products/{product_id}", response_model=ProductLedger)
def product_ledger(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    movements = ledger.product_history(db, product_id)
    product = db.get(Product, product_id)
    return {
        "product_id": product_id,
        "current_stock": product.current_stock if product else None,
        "consistent": ledger.is_consistent(product, movements),
        "items": ledger.describe(db, movements),
    }
