# backend/routes/suppliers.py
from typing import List

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from database import get_db
from models.supplier import Supplier
from models.users import User
from schemas.supplier import SupplierCreate, SupplierOut, SupplierUpdate
from services.entity_store import suppliers
from utils.audit import client_ip, write_log
from utils.tokenJWT import get_current_user

router = APIRouter(prefix="/suppliers", tags=["Suppliers"])


@router.get("", response_model=List[SupplierOut])
def list_suppliers(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return suppliers.list(db, order_by=Supplier.name.asc())


@router.get("/{supplier_id}", response_model=SupplierOut)
def get_supplier(supplier_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return suppliers.get(db, supplier_id)


@router.post("", response_model=SupplierOut)
def create_supplier(
    payload: SupplierCreate, request: Request,
    db: Session = Depends(get_db), current_user: User = Depends(get_current_user),
):
    supplier = suppliers.create(db, payload.model_dump())
    write_log(db, user_id=current_user.id, action="SUPPLIER_CREATE", resource="suppliers",
              ip=client_ip(request), meta={"id": supplier.id})
    return supplier


@router.put("/{supplier_id}", response_model=SupplierOut)
def update_supplier(
    supplier_id: int, payload: SupplierUpdate, request: Request,
    db: Session = Depends(get_db), current_user: User = Depends(get_current_user),
):
    supplier = suppliers.update(db, supplier_id, payload.model_dump(exclude_unset=True))
    write_log(db, user_id=current_user.id, action="SUPPLIER_UPDATE", resource="suppliers",
              ip=client_ip(request), meta={"id": supplier.id})
    return supplier


# Products of a deleted supplier keep the id and show as "Unknown Supplier"
@router.delete("/{supplier_id}")
def delete_supplier(
    supplier_id: int, request: Request,
    db: Session = Depends(get_db), current_user: User = Depends(get_current_user),
):
    suppliers.delete(db, supplier_id)
    write_log(db, user_id=current_user.id, action="SUPPLIER_DELETE", resource="suppliers",
              ip=client_ip(request), meta={"id": supplier_id})
    return {"success": True, "message": "Supplier deleted"}
