# backend/services/ledger.py
"""Stock ledger.

Product.current_stock is only ever changed here, and every change appends
an immutable StockMovement carrying the stock before and after it. The
product update and the movement insert are committed in one transaction.

Sign convention: StockMovement.quantity is stored unsigned and the
direction comes from movement_type. incoming adds the quantity, outgoing
subtracts it, adjustment applies the caller's signed value. The signed
change of a stored movement is always new_stock - previous_stock.
"""
import logging
import threading
from contextlib import ExitStack, contextmanager
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models.product import Product
from models.stock import MovementType, StockMovement
from models.supplier import Supplier
from models.users import User
from services.references import UNKNOWN_PRODUCT, UNKNOWN_SKU, UNKNOWN_USER, index_by_id
from utils.errors import InventoryError, InvalidMovement, NotFound, PersistenceFailure

logger = logging.getLogger(__name__)

# One lock per product id, so concurrent requests in this process cannot
# both read the same previous_stock. Each entry is [lock, holders] and is
# dropped when its last holder or waiter leaves.
_product_locks: Dict[int, list] = {}
_registry_lock = threading.Lock()


@contextmanager
def product_lock(product_id: int):
    with _registry_lock:
        entry = _product_locks.setdefault(product_id, [threading.Lock(), 0])
        entry[1] += 1
    try:
        with entry[0]:
            yield
    finally:
        with _registry_lock:
            entry[1] -= 1
            if entry[1] == 0:
                del _product_locks[product_id]


def _coerce_type(movement_type) -> MovementType:
    try:
        return MovementType(movement_type)
    except ValueError:
        raise InvalidMovement(f"Unknown movement type: {movement_type}")


def resolve_delta(movement_type, quantity) -> int:
    """Turn a (type, quantity) request into the signed stock change."""
    movement_type = _coerce_type(movement_type)
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise InvalidMovement("Quantity must be an integer")
    if quantity == 0:
        raise InvalidMovement("Quantity must not be zero")

    if movement_type == MovementType.ADJUSTMENT:
        return quantity
    if quantity < 0:
        raise InvalidMovement(f"Quantity must be positive for {movement_type.value} movements")
    return quantity if movement_type == MovementType.INCOMING else -quantity


def _locked_product(db: Session, product_id: int) -> Optional[Product]:
    # populate_existing: never trust a stale copy from the identity map
    return (
        db.query(Product)
        .filter(Product.id == product_id)
        .with_for_update()
        .populate_existing()
        .first()
    )


def _apply(db: Session, product_id: int, movement_type: MovementType, delta: int,
           actor_id: Optional[int], reason: Optional[str], notes: Optional[str]) -> StockMovement:
    product = _locked_product(db, product_id)
    if product is None:
        raise NotFound("Product not found")

    previous_stock = product.current_stock or 0
    new_stock = previous_stock + delta
    if new_stock < 0:
        raise InvalidMovement(
            f"Insufficient stock for {product.sku}: available {previous_stock}, requested {-delta}"
        )

    product.current_stock = new_stock
    movement = StockMovement(
        product_id=product.id,
        user_id=actor_id,
        movement_type=movement_type.value,
        quantity=abs(delta),
        previous_stock=previous_stock,
        new_stock=new_stock,
        reason=reason,
        notes=notes,
    )
    db.add(movement)
    # Flush so a later read in the same transaction sees the new stock
    db.flush()
    return movement


def _commit(db: Session, what: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Failed to persist %s", what)
        raise PersistenceFailure(f"Failed to record {what}") from e


def record_movement(db: Session, product_id: int, movement_type, quantity: int,
                    actor_id: Optional[int], reason: Optional[str] = None,
                    notes: Optional[str] = None) -> StockMovement:
    """Apply one movement to a product and append it to the ledger.

    Raises NotFound for an unknown product and InvalidMovement when the
    request is malformed or would take the stock below zero. On any
    failure neither the product nor the ledger is changed.
    """
    movement_type = _coerce_type(movement_type)
    delta = resolve_delta(movement_type, quantity)

    with product_lock(product_id):
        try:
            movement = _apply(db, product_id, movement_type, delta, actor_id, reason, notes)
        except InventoryError:
            db.rollback()
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception("Failed to apply movement to product %s", product_id)
            raise PersistenceFailure("Failed to record stock movement") from e
        _commit(db, "stock movement")

    db.refresh(movement)
    logger.info(
        "Product %s: %s %+d (%s -> %s)",
        product_id, movement.movement_type, movement.delta, movement.previous_stock, movement.new_stock,
    )
    return movement


def receive_delivery(db: Session, items: Iterable, actor_id: Optional[int],
                     reason: Optional[str] = "Delivery",
                     supplier_id: Optional[int] = None) -> List[StockMovement]:
    """Book every delivery line as an incoming movement, all or nothing."""
    lines = [(item.product_id, item.quantity) for item in items]
    if not lines:
        raise InvalidMovement("Delivery has no items")
    for _, quantity in lines:
        resolve_delta(MovementType.INCOMING, quantity)

    notes = None
    if supplier_id is not None:
        supplier = db.get(Supplier, supplier_id)
        notes = f"Supplier: {supplier.name}" if supplier else f"Supplier #{supplier_id}"

    movements = []
    with ExitStack() as stack:
        # Sorted acquisition keeps two deliveries from deadlocking
        for product_id in sorted({pid for pid, _ in lines}):
            stack.enter_context(product_lock(product_id))
        try:
            for product_id, quantity in lines:
                movements.append(
                    _apply(db, product_id, MovementType.INCOMING, quantity, actor_id, reason, notes)
                )
        except InventoryError:
            db.rollback()
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception("Failed to apply delivery")
            raise PersistenceFailure("Failed to record delivery") from e
        _commit(db, "delivery")

    for movement in movements:
        db.refresh(movement)
    logger.info("Delivery received: %d lines", len(movements))
    return movements


# ---- read side ----

def describe(db: Session, movements: List[StockMovement]) -> List[dict]:
    """Movement rows enriched with product and actor labels."""
    product_ids = {m.product_id for m in movements}
    user_ids = {m.user_id for m in movements if m.user_id is not None}
    products = index_by_id(db.query(Product).filter(Product.id.in_(product_ids)).all()) if product_ids else {}
    users = index_by_id(db.query(User).filter(User.id.in_(user_ids)).all()) if user_ids else {}

    rows = []
    for m in movements:
        product = products.get(m.product_id)
        user = users.get(m.user_id)
        rows.append({
            "id": m.id,
            "product_id": m.product_id,
            "movement_type": m.movement_type,
            "quantity": m.quantity,
            "delta": m.delta,
            "previous_stock": m.previous_stock,
            "new_stock": m.new_stock,
            "user_id": m.user_id,
            "reason": m.reason,
            "notes": m.notes,
            "created_at": m.created_at,
            "product_name": product.name if product else UNKNOWN_PRODUCT,
            "product_sku": product.sku if product else UNKNOWN_SKU,
            "user_email": user.email if user else UNKNOWN_USER,
        })
    return rows


def list_movements(db: Session, product_id: Optional[int] = None, movement_type: Optional[str] = None,
                   page: int = 1, page_size: int = 20) -> Tuple[List[StockMovement], int]:
    query = db.query(StockMovement)
    if product_id is not None:
        query = query.filter(StockMovement.product_id == product_id)
    if movement_type:
        query = query.filter(StockMovement.movement_type == _coerce_type(movement_type).value)

    total = query.count()
    items = (query
             .order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
             .offset((page - 1) * page_size)
             .limit(page_size)
             .all())
    return items, total


def product_history(db: Session, product_id: int) -> List[StockMovement]:
    """The ledger of one product, oldest first."""
    movements = (db.query(StockMovement)
                 .filter(StockMovement.product_id == product_id)
                 .order_by(StockMovement.id.asc())
                 .all())
    if not movements and db.get(Product, product_id) is None:
        raise NotFound("Product not found")
    return movements


def is_consistent(product: Optional[Product], movements: List[StockMovement]) -> bool:
    """Check that the snapshots chain up and end at the product's stock."""
    for earlier, later in zip(movements, movements[1:]):
        if later.previous_stock != earlier.new_stock:
            return False
    if product is None or not movements:
        return True
    return movements[-1].new_stock == product.current_stock
