# backend/routes/categories.py
from typing import List

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from database import get_db
from models.category import Category
from models.users import User
from schemas.category import CategoryCreate, CategoryOut, CategoryUpdate
from services.entity_store import categories
from utils.audit import client_ip, write_log
from utils.tokenJWT import get_current_user

router = APIRouter(prefix="/categories", tags=["Categories"])


@router.get("", response_model=List[CategoryOut])
def list_categories(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return categories.list(db, order_by=Category.name.asc())


@router.get("/{category_id}", response_model=CategoryOut)
def get_category(category_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return categories.get(db, category_id)


@router.post("", response_model=CategoryOut)
def create_category(
    payload: CategoryCreate, request: Request,
    db: Session = Depends(get_db), current_user: User = Depends(get_current_user),
):
    category = categories.create(db, payload.model_dump())
    write_log(db, user_id=current_user.id, action="CATEGORY_CREATE", resource="categories",
              ip=client_ip(request), meta={"id": category.id})
    return category


@router.put("/{category_id}", response_model=CategoryOut)
def update_category(
    category_id: int, payload: CategoryUpdate, request: Request,
    db: Session = Depends(get_db), current_user: User = Depends(get_current_user),
):
    category = categories.update(db, category_id, payload.model_dump(exclude_unset=True))
    write_log(db, user_id=current_user.id, action="CATEGORY_UPDATE", resource="categories",
              ip=client_ip(request), meta={"id": category.id})
    return category


# Products of a deleted category keep the id and show as "Unknown Category"
@router.delete("/{category_id}")
def delete_category(
    category_id: int, request: Request,
    db: Session = Depends(get_db), current_user: User = Depends(get_current_user),
):
    categories.delete(db, category_id)
    write_log(db, user_id=current_user.id, action="CATEGORY_DELETE", resource="categories",
              ip=client_ip(request), meta={"id": category_id})
    return {"success": True, "message": "Category deleted"}
