# backend/models/category.py
from sqlalchemy import Column, Integer, String, DateTime, func
from database import Base

# Grouping label for products. Names are not unique in storage;
# products point at a category by id only.
class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    description = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
