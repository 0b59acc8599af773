# backend/models/stock.py
import enum

from sqlalchemy import Column, Integer, String, DateTime, CheckConstraint, func
from database import Base


class MovementType(str, enum.Enum):
    INCOMING = "incoming"
    OUTGOING = "outgoing"
    ADJUSTMENT = "adjustment"


class StockMovement(Base):
    __tablename__ = "stock_movements"

    id = Column(Integer, primary_key=True, index=True)
    # Weak references: the product or user may be deleted later
    product_id = Column(Integer, nullable=False, index=True)
    user_id = Column(Integer, nullable=True, index=True)

    # incoming / outgoing / adjustment, see MovementType
    movement_type = Column(String(20), nullable=False, index=True)

    # Unsigned quantity; the direction is carried by movement_type
    # (and for adjustments by new_stock - previous_stock)
    quantity = Column(Integer, CheckConstraint("quantity > 0"), nullable=False)

    # Stock snapshot around this movement
    previous_stock = Column(Integer, nullable=False)
    new_stock = Column(Integer, CheckConstraint("new_stock >= 0"), nullable=False)

    reason = Column(String, nullable=True)
    notes = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    @property
    def delta(self) -> int:
        """Signed change applied to the product's stock."""
        return self.new_stock - self.previous_stock

    def __repr__(self):
        return f"<StockMovement {self.id}: {self.movement_type} {self.delta:+d} on product {self.product_id}>"
