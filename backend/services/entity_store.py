# backend/services/entity_store.py
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from models.category import Category
from models.product import Product
from models.supplier import Supplier
from utils.errors import DuplicateSku, InventoryError, NotFound, PersistenceFailure

logger = logging.getLogger(__name__)


class EntityStore:
    """CRUD over one table. Timestamps are assigned by the database."""

    def __init__(self, model, label: str):
        self.model = model
        self.label = label

    def list(self, db: Session, order_by=None) -> List[Any]:
        query = db.query(self.model)
        return query.order_by(order_by if order_by is not None else self.model.id.asc()).all()

    def get(self, db: Session, entity_id: int):
        row = db.get(self.model, entity_id)
        if row is None:
            raise NotFound(f"{self.label} not found")
        return row

    def create(self, db: Session, data: Dict[str, Any]):
        row = self.model(**data)
        db.add(row)
        self._commit(db, "create")
        db.refresh(row)
        logger.info("Created %s %s", self.label.lower(), row.id)
        return row

    def update(self, db: Session, entity_id: int, patch: Dict[str, Any]):
        row = self.get(db, entity_id)
        for key, value in patch.items():
            setattr(row, key, value)
        self._commit(db, "update")
        db.refresh(row)
        return row

    def delete(self, db: Session, entity_id: int) -> None:
        # No cascade: rows referencing this id keep the dangling reference
        row = self.get(db, entity_id)
        db.delete(row)
        self._commit(db, "delete")
        logger.info("Deleted %s %s", self.label.lower(), entity_id)

    def _commit(self, db: Session, action: str) -> None:
        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception("Failed to %s %s", action, self.label.lower())
            raise PersistenceFailure(f"Failed to {action} {self.label.lower()}") from e


def normalize_sku(sku: Optional[str]) -> Optional[str]:
    if sku is None:
        return None
    s = sku.strip().upper()
    return s if s else None


class ProductStore(EntityStore):
    """Products add SKU uniqueness, barcode lookup and filtered listing."""

    SORT_COLUMNS = {
        "id": Product.id,
        "sku": Product.sku,
        "name": Product.name,
        "current_stock": Product.current_stock,
        "created_at": Product.created_at,
    }

    def __init__(self):
        super().__init__(Product, "Product")

    def create(self, db: Session, data: Dict[str, Any]):
        data = dict(data)
        data["sku"] = normalize_sku(data.get("sku"))
        self._ensure_sku_free(db, data["sku"])
        try:
            return super().create(db, data)
        except PersistenceFailure as e:
            if isinstance(e.__cause__, IntegrityError):
                raise DuplicateSku(f"SKU {data['sku']} already exists") from e
            raise

    def update(self, db: Session, entity_id: int, patch: Dict[str, Any]):
        patch = dict(patch)
        # Stock is owned by the ledger
        patch.pop("current_stock", None)
        if "sku" in patch:
            patch["sku"] = normalize_sku(patch["sku"])
            self._ensure_sku_free(db, patch["sku"], exclude_id=entity_id)
        return super().update(db, entity_id, patch)

    def get_by_barcode(self, db: Session, barcode: str):
        code = (barcode or "").strip()
        row = db.query(Product).filter(Product.barcode == code).order_by(Product.id.asc()).first()
        if row is None:
            raise NotFound(f"No product with barcode {code}")
        return row

    def search(
        self,
        db: Session,
        q: Optional[str] = None,
        category_id: Optional[int] = None,
        supplier_id: Optional[int] = None,
        active_only: bool = False,
        sort_by: str = "id",
        order: str = "asc",
        page: int = 1,
        page_size: int = 50,
    ):
        query = db.query(Product)
        if q:
            like = f"%{q}%"
            query = query.filter(or_(Product.name.ilike(like), Product.sku.ilike(like), Product.barcode.ilike(like)))
        if category_id is not None:
            query = query.filter(Product.category_id == category_id)
        if supplier_id is not None:
            query = query.filter(Product.supplier_id == supplier_id)
        if active_only:
            query = query.filter(Product.is_active.is_(True))

        col = self.SORT_COLUMNS.get(sort_by.lower(), Product.id)
        query = query.order_by(col.asc() if order == "asc" else col.desc(), Product.id.asc())

        total = query.count()
        items = query.offset((page - 1) * page_size).limit(page_size).all()
        return items, total

    def _ensure_sku_free(self, db: Session, sku: Optional[str], exclude_id: Optional[int] = None) -> None:
        if not sku:
            raise InventoryError("SKU must not be empty")
        query = db.query(Product.id).filter(Product.sku == sku)
        if exclude_id is not None:
            query = query.filter(Product.id != exclude_id)
        if query.first() is not None:
            raise DuplicateSku(f"SKU {sku} already exists")


categories = EntityStore(Category, "Category")
suppliers = EntityStore(Supplier, "Supplier")
products = ProductStore()
