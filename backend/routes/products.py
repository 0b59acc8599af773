# backend/routes/products.py
from typing import Iterable, List, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from database import get_db
from models.category import Category
from models.product import Product
from models.supplier import Supplier
from models.users import User
import schemas.product as product_schemas
from services.entity_store import products
from services.references import category_label, index_by_id, supplier_label
from utils.audit import client_ip, write_log
from utils.tokenJWT import get_current_user

router = APIRouter(tags=["Products"])


# ---- HELPERS ----
def serialize_products(db: Session, items: Iterable[Product]) -> List[product_schemas.ProductOut]:
    """Attach category / supplier display names, tolerating dangling ids."""
    items = list(items)
    category_ids = {p.category_id for p in items if p.category_id is not None}
    supplier_ids = {p.supplier_id for p in items if p.supplier_id is not None}
    cats = index_by_id(db.query(Category).filter(Category.id.in_(category_ids)).all()) if category_ids else {}
    sups = index_by_id(db.query(Supplier).filter(Supplier.id.in_(supplier_ids)).all()) if supplier_ids else {}

    product_fields = list(product_schemas.ProductOut.model_fields.keys())
    serialized = []
    for p in items:
        data = {f: getattr(p, f) for f in product_fields if hasattr(p, f)}
        data["category_name"] = category_label(cats, p.category_id)
        data["supplier_name"] = supplier_label(sups, p.supplier_id)
        serialized.append(product_schemas.ProductOut.model_validate(data))
    return serialized


def _one(db: Session, product: Product) -> product_schemas.ProductOut:
    return serialize_products(db, [product])[0]


# =========================
# PRODUCT LIST
# =========================
@router.get("/products", response_model=product_schemas.ProductListPage)
def list_products(
    q: Optional[str] = Query(None, description="Search name, SKU or barcode"),
    category_id: Optional[int] = Query(None),
    supplier_id: Optional[int] = Query(None),
    active_only: bool = Query(False),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=1000),
    sort_by: str = Query("id"),
    order: str = Query("asc", pattern="^(asc|desc)$"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    items, total = products.search(
        db, q=q, category_id=category_id, supplier_id=supplier_id, active_only=active_only,
        sort_by=sort_by, order=order, page=page, page_size=page_size,
    )
    return {"items": serialize_products(db, items), "total": total, "page": page, "page_size": page_size}


# =========================
# BARCODE LOOKUP
# =========================
@router.get("/products/barcode/{barcode}", response_model=product_schemas.ProductOut)
def get_product_by_barcode(
    barcode: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user),
):
    return _one(db, products.get_by_barcode(db, barcode))


# =========================
# SINGLE PRODUCT
# =========================
@router.get("/products/{product_id}", response_model=product_schemas.ProductOut)
def get_product(
    product_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user),
):
    return _one(db, products.get(db, product_id))


@router.post("/products", response_model=product_schemas.ProductOut)
def add_product(
    payload: product_schemas.ProductCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    product = products.create(db, payload.model_dump())
    write_log(
        db, user_id=current_user.id, action="PRODUCT_CREATE", resource="products",
        ip=client_ip(request), meta={"id": product.id, "sku": product.sku, "opening_stock": product.current_stock},
    )
    return _one(db, product)


# Partial update; current_stock is not editable here
@router.put("/products/{product_id}", response_model=product_schemas.ProductOut)
def update_product(
    product_id: int,
    payload: product_schemas.ProductUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    product = products.update(db, product_id, payload.model_dump(exclude_unset=True))
    write_log(
        db, user_id=current_user.id, action="PRODUCT_UPDATE", resource="products",
        ip=client_ip(request), meta={"id": product.id},
    )
    return _one(db, product)


# Movements of a deleted product stay in the ledger as "Unknown Product"
@router.delete("/products/{product_id}")
def delete_product(
    product_id: int, request: Request,
    db: Session = Depends(get_db), current_user: User = Depends(get_current_user),
):
    product = products.get(db, product_id)
    pname = product.name
    products.delete(db, product_id)
    write_log(db, user_id=current_user.id, action="PRODUCT_DELETE", resource="products",
              ip=client_ip(request), meta={"id": product_id})
    return {"success": True, "message": f"Product '{pname}' deleted"}
