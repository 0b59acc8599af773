# backend/models/product.py
from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, CheckConstraint, func
from database import Base

# Model Product
# A single stock keeping unit. category_id and supplier_id are plain ids
# without foreign keys: deleting a category or supplier leaves them dangling.
# current_stock is written on creation (baseline) and afterwards only by
# the stock ledger.
class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    sku = Column(String, unique=True, nullable=False, index=True)
    name = Column(String, nullable=False, index=True)
    description = Column(String)

    category_id = Column(Integer, nullable=True, index=True)
    supplier_id = Column(Integer, nullable=True, index=True)

    # Prices are optional; reports treat a missing price as 0.
    cost_price = Column(Float, CheckConstraint("cost_price >= 0"), nullable=True)
    selling_price = Column(Float, CheckConstraint("selling_price >= 0"), nullable=True)

    # Stock levels.
    current_stock = Column(Integer, CheckConstraint("current_stock >= 0"), nullable=False, default=0)
    min_stock = Column(Integer, CheckConstraint("min_stock >= 0"), nullable=False, default=0)

    manufacturer = Column(String, nullable=True)
    warehouse_location = Column(String, nullable=True)
    weight = Column(Float, nullable=True)
    dimensions = Column(String, nullable=True)
    image_url = Column(String, nullable=True)
    barcode = Column(String, nullable=True, index=True)

    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
